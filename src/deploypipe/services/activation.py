"""Activation strategies: make a built artifact live and confirm it is healthy."""

import json
import os
from typing import Tuple

from deploypipe.constants import (
    DEFAULT_REMOTE_PORT,
    DEV_SERVER_COMMAND,
    ENTRY_SCRIPT,
    LOCAL_BASE_URL,
    LOCAL_PORT,
    PROCESS_MANAGER,
    PROCESS_MANAGER_CONFIG,
    PRODUCTION_PORT,
    PROJECT_NAME,
)
from deploypipe.errors import ExecutionError
from deploypipe.models import BuildEnvironment, EnvironmentConfig, ProcessManagerApp, StageOutcome

LOCAL_ENVIRONMENTS = {"development"}


class LocalActivation:
    """Restarts the development server in the background and waits for it."""

    def __init__(
        self,
        command_runner,
        health_checker,
        logger,
        console,
        workspace: str,
        verbose: bool = False,
    ):
        self.command_runner = command_runner
        self.health_checker = health_checker
        self.logger = logger
        self.console = console
        self.workspace = workspace
        self.verbose = verbose
        self.process = None

    def stop_existing(self):
        try:
            self.command_runner.run(
                ["pkill", "-f", f"node.*{LOCAL_PORT}"],
                cwd=self.workspace,
            )
        except ExecutionError as exc:
            # pkill exits 1 when nothing matched
            if exc.exit_code == 1:
                self.logger.debug("No running development server to stop")
            else:
                self.logger.debug("Could not stop existing server: %s", exc)

    def activate(self, environment: EnvironmentConfig) -> Tuple[StageOutcome, str]:
        self.console.print("[blue]Starting local development server...[/blue]")
        self.stop_existing()

        self.process = self.command_runner.launch(
            DEV_SERVER_COMMAND,
            env=BuildEnvironment(mode=environment.name).as_env(),
            cwd=self.workspace,
            stream_output=self.verbose,
        )
        self.logger.warning(
            "Development server (pid %s) keeps running after deploypipe exits; stop it manually.",
            self.process.pid,
        )

        attempts = self.health_checker.wait_for_ready(LOCAL_BASE_URL)
        self.logger.info("Local deployment completed")
        return StageOutcome.SUCCESS, f"pid {self.process.pid} healthy after {len(attempts)} probe(s)"


class RemoteActivation:
    """Starts or restarts the app under pm2, then probes the environment URL."""

    def __init__(
        self,
        command_runner,
        health_checker,
        filesystem_service,
        logger,
        console,
        workspace: str,
        project_name: str = PROJECT_NAME,
        verbose: bool = False,
    ):
        self.command_runner = command_runner
        self.health_checker = health_checker
        self.filesystem = filesystem_service
        self.logger = logger
        self.console = console
        self.workspace = workspace
        self.project_name = project_name
        self.verbose = verbose

    def process_manager_available(self) -> bool:
        return self.command_runner.is_available(PROCESS_MANAGER)

    def build_app(self, environment: EnvironmentConfig) -> ProcessManagerApp:
        port = PRODUCTION_PORT if environment.name == "production" else DEFAULT_REMOTE_PORT
        return ProcessManagerApp(
            name=f"{self.project_name}-{environment.name}",
            script=ENTRY_SCRIPT,
            env={"NODE_ENV": environment.name, "PORT": port},
        )

    def render_config(self, app: ProcessManagerApp) -> str:
        apps = json.dumps(app.as_dict(), indent=2)
        return f"module.exports = {{\n  apps: [{apps}]\n}};\n"

    def write_config(self, environment: EnvironmentConfig) -> str:
        config_path = os.path.join(self.workspace, PROCESS_MANAGER_CONFIG)
        self.filesystem.write_text(config_path, self.render_config(self.build_app(environment)))
        self.logger.debug("Wrote process manager config: %s", config_path)
        return config_path

    def activate(self, environment: EnvironmentConfig) -> Tuple[StageOutcome, str]:
        self.logger.info("Deploying to remote environment: %s", environment.target_url)

        if not self.process_manager_available():
            self.console.print(
                f"[yellow]Warning:[/yellow] {PROCESS_MANAGER} not found, no deployment logic configured."
            )
            self.logger.warning("%s is not available on PATH", PROCESS_MANAGER)
            return StageOutcome.SKIPPED, "no deployment logic configured"

        self.console.print(f"[blue]Deploying with {PROCESS_MANAGER}...[/blue]")
        self.write_config(environment)
        self.command_runner.run(
            [PROCESS_MANAGER, "startOrRestart", PROCESS_MANAGER_CONFIG, "--env", environment.name],
            stream_output=self.verbose,
            cwd=self.workspace,
        )

        attempts = self.health_checker.wait_for_ready(environment.target_url)
        self.logger.info("%s deployment completed", PROCESS_MANAGER)
        return StageOutcome.SUCCESS, f"healthy after {len(attempts)} probe(s)"


def is_local_environment(environment: EnvironmentConfig) -> bool:
    return environment.name in LOCAL_ENVIRONMENTS
