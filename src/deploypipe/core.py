import logging
import os
import subprocess
import time
from typing import Any, Dict, List, Optional, Tuple

import requests
from rich.console import Console
from rich.table import Table

from .constants import (
    BUILD_COMMAND,
    BUILD_DIR,
    HEALTH_CHECK_INTERVAL_SECONDS,
    HEALTH_CHECK_TIMEOUT_SECONDS,
    INTEGRATION_TEST_COMMAND,
    INTEGRATION_TEST_DIR,
    LINT_COMMAND,
    PROJECT_NAME,
    UNIT_TEST_COMMAND,
)
from .errors import DeployError
from .errors_catalog import actionable_error
from .models import BuildEnvironment, PipelineFlags, PipelineRun, StageOutcome, StageResult
from .services.activation import LocalActivation, RemoteActivation, is_local_environment
from .services.backup import BackupService
from .services.command_runner import CommandRunner
from .services.dependencies import DependencyService
from .services.environment_registry import EnvironmentRegistry
from .services.filesystem import FileSystemService
from .services.health_check import FixedIntervalRetry, HealthChecker
from .services.notifier import Notifier
from .services.prerequisites import PrerequisiteService

console = Console()
logger = logging.getLogger("deploypipe")

StageReport = Tuple[StageOutcome, str]


class Deployer:
    """Runs the deployment pipeline for one environment.

    Stages execute in a fixed order. The first failure stops the remaining
    stages, except ``notify`` which is attempted on every terminal outcome.
    """

    def __init__(
        self,
        environment: str = "development",
        skip_tests: bool = False,
        skip_build: bool = False,
        verbose: bool = False,
        workspace: Optional[str] = None,
        project_name: str = PROJECT_NAME,
        webhook_url: Optional[str] = None,
        health_check_timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS,
        health_check_interval: float = HEALTH_CHECK_INTERVAL_SECONDS,
        command_timeout: Optional[float] = None,
        environment_overrides: Optional[Dict[str, Any]] = None,
    ):
        self.registry = EnvironmentRegistry(environment_overrides)
        # unknown names fail here, before any command runs or file is written
        self.environment = self.registry.resolve(environment)
        self.flags = PipelineFlags(skip_tests=skip_tests, skip_build=skip_build, verbose=verbose)
        self.workspace = os.path.abspath(workspace or os.getcwd())
        self.project_name = project_name
        self.build_dir = os.path.join(self.workspace, BUILD_DIR)
        self.build_environment = BuildEnvironment(mode=self.environment.name)
        self.pipeline_run: Optional[PipelineRun] = None
        self.background_process: Optional[subprocess.Popen] = None

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.command_runner = CommandRunner(
            logger=logger,
            console=console,
            default_timeout=command_timeout,
        )
        self.health_checker = HealthChecker(
            logger=logger,
            console=console,
            timeout_seconds=health_check_timeout,
            retry_policy=FixedIntervalRetry(health_check_interval),
            requests_module=requests,
        )
        self.prerequisite_service = PrerequisiteService(
            command_runner=self.command_runner,
            logger=logger,
            console=console,
        )
        self.dependency_service = DependencyService(
            filesystem_service=self.filesystem_service,
            logger=logger,
        )
        self.backup_service = BackupService(
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
        )
        self.notifier = Notifier(webhook_url=webhook_url, logger=logger, requests_module=requests)

    def _run_stage(self, name: str, callback, *args, **kwargs) -> StageOutcome:
        console.print(f"[bold blue]Stage: {name}[/bold blue]")
        logger.debug("Stage started: %s", name)
        started = time.monotonic()

        try:
            outcome, detail = callback(*args, **kwargs)
        except Exception as exc:
            self._record(name, StageOutcome.FAILURE, started, str(exc))
            raise

        self._record(name, outcome, started, detail)
        if outcome is StageOutcome.SKIPPED:
            logger.info("Skipped %s: %s", name, detail)
        return outcome

    def _record(self, name: str, outcome: StageOutcome, started: float, detail: str):
        duration_ms = int((time.monotonic() - started) * 1000)
        self.pipeline_run.record(
            StageResult(stage_name=name, outcome=outcome, duration_ms=duration_ms, detail=detail)
        )

    def _run_cmd(
        self,
        cmd: List[str],
        stream_output: Optional[bool] = None,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(
            cmd,
            stream_output=self.flags.verbose if stream_output is None else stream_output,
            env=env,
            cwd=cwd or self.workspace,
            check=check,
        )

    def check_prerequisites(self) -> StageReport:
        console.print("[blue]Checking prerequisites...[/blue]")
        warnings = self.prerequisite_service.check(self.workspace, self.environment)
        console.print("[green]Prerequisites check passed.[/green]")
        return StageOutcome.SUCCESS, "; ".join(warnings)

    def install_dependencies(self) -> StageReport:
        installed = self.dependency_service.install(
            self.workspace,
            self._run_cmd,
            stream_output=self.flags.verbose,
        )
        if not installed:
            return StageOutcome.SUCCESS, "Dependencies are up to date"
        return StageOutcome.SUCCESS, "clean install"

    def run_tests(self) -> StageReport:
        if self.flags.skip_tests:
            console.print("[yellow]Skipping tests (--skip-tests flag provided).[/yellow]")
            return StageOutcome.SKIPPED, "--skip-tests flag provided"

        console.print("[blue]Running tests...[/blue]")
        suites = ["unit"]
        self._run_cmd(UNIT_TEST_COMMAND)

        if os.path.isdir(os.path.join(self.workspace, INTEGRATION_TEST_DIR)):
            self._run_cmd(INTEGRATION_TEST_COMMAND)
            suites.append("integration")

        self._run_cmd(LINT_COMMAND)
        suites.append("lint")

        console.print("[green]All tests passed.[/green]")
        return StageOutcome.SUCCESS, ", ".join(suites)

    def build(self) -> StageReport:
        if self.flags.skip_build:
            console.print("[yellow]Skipping build (--skip-build flag provided).[/yellow]")
            return StageOutcome.SKIPPED, "--skip-build flag provided"

        console.print("[blue]Building application...[/blue]")
        self.filesystem_service.remove_dir(self.build_dir)
        self._run_cmd(BUILD_COMMAND, env=self.build_environment.as_env())

        console.print("[green]Build completed.[/green]")
        return StageOutcome.SUCCESS, self.build_dir

    def create_backup(self) -> StageReport:
        if self.environment.name != "production":
            return StageOutcome.SKIPPED, "backups are only taken for production"

        backup_dir = self.backup_service.create_backup(self.workspace)
        console.print(f"[green]Backup created: {backup_dir}[/green]")
        return StageOutcome.SUCCESS, backup_dir

    def build_activation(self):
        if is_local_environment(self.environment):
            return LocalActivation(
                command_runner=self.command_runner,
                health_checker=self.health_checker,
                logger=logger,
                console=console,
                workspace=self.workspace,
                verbose=self.flags.verbose,
            )
        return RemoteActivation(
            command_runner=self.command_runner,
            health_checker=self.health_checker,
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
            workspace=self.workspace,
            project_name=self.project_name,
            verbose=self.flags.verbose,
        )

    def activate(self) -> StageReport:
        console.print(f"[blue]Deploying to {self.environment.name} environment...[/blue]")
        strategy = self.build_activation()
        try:
            return strategy.activate(self.environment)
        finally:
            self.background_process = getattr(strategy, "process", None)

    def notify(self, message: str) -> StageReport:
        if not self.notifier.enabled:
            return StageOutcome.SKIPPED, "no webhook configured"
        if self.notifier.notify(message):
            return StageOutcome.SUCCESS, "notification sent"
        return StageOutcome.FAILURE, "notification could not be delivered"

    def print_summary(self):
        table = Table(title=f"{self.project_name} ({self.environment.name})")
        table.add_column("Stage")
        table.add_column("Outcome")
        table.add_column("Duration", justify="right")
        table.add_column("Detail", overflow="fold")

        styles = {
            StageOutcome.SUCCESS: "green",
            StageOutcome.FAILURE: "red",
            StageOutcome.SKIPPED: "yellow",
        }
        for result in self.pipeline_run.stage_results:
            style = styles[result.outcome]
            table.add_row(
                result.stage_name,
                f"[{style}]{result.outcome.value}[/{style}]",
                f"{result.duration_ms / 1000:.2f}s",
                result.detail,
            )
        console.print(table)

    def run(self) -> int:
        exit_code = 1
        error: Optional[str] = None
        self.pipeline_run = PipelineRun(environment=self.environment, flags=self.flags)

        try:
            logger.info("Starting deployment of %s to %s", self.project_name, self.environment.name)

            self._run_stage("prerequisites", self.check_prerequisites)
            self._run_stage("dependencies", self.install_dependencies)
            self._run_stage("tests", self.run_tests)
            self._run_stage("build", self.build)
            self._run_stage("backup", self.create_backup)
            activation = self._run_stage("activation", self.activate)

            if activation is StageOutcome.SKIPPED:
                raise DeployError(
                    actionable_error("activation_not_configured", environment=self.environment.name)
                )

            exit_code = 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            error = "Operation cancelled by user."
        except DeployError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            error = str(exc)
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            error = str(exc)

        if error is not None:
            self.pipeline_run.mark_failed(error)

        duration = self.pipeline_run.duration_seconds
        if exit_code == 0:
            message = f"Deployment completed successfully in {duration:.2f}s"
            console.print(f"[bold green]{message}[/bold green]")
            logger.info(message)
        else:
            message = f"Deployment failed after {duration:.2f}s: {error}"
            console.print(f"[bold red]{message}[/bold red]")
            logger.error(message)

        self._run_stage("notify", self.notify, message)
        self.print_summary()
        return exit_code
