import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_CONFIG_FILE,
    HEALTH_CHECK_INTERVAL_SECONDS,
    HEALTH_CHECK_TIMEOUT_SECONDS,
    PROJECT_NAME,
    WEBHOOK_ENV_VAR,
)
from .core import Deployer
from .errors import DeployError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("environment", required=False)
@click.option("--skip-tests", is_flag=True, default=None, help="Skip running tests")
@click.option("--skip-build", is_flag=True, default=None, help="Skip build step")
@click.option("--verbose", is_flag=True, default=None, help="Show detailed command output")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--workspace",
    required=False,
    type=click.Path(file_okay=False),
    help="Project root to deploy (default: current directory).",
)
@click.option(
    "--health-timeout",
    required=False,
    type=float,
    default=None,
    help=f"Seconds to wait for the health check (default: {HEALTH_CHECK_TIMEOUT_SECONDS:g}).",
)
@click.option(
    "--health-interval",
    required=False,
    type=float,
    default=None,
    help=f"Seconds between health probes (default: {HEALTH_CHECK_INTERVAL_SECONDS:g}).",
)
@click.option(
    "--command-timeout",
    required=False,
    type=float,
    default=None,
    help="Abort any single command running longer than this many seconds.",
)
@click.option(
    "--webhook-url",
    required=False,
    envvar=WEBHOOK_ENV_VAR,
    help=f"Webhook for outcome notifications (env: {WEBHOOK_ENV_VAR}).",
)
def main(
    environment,
    skip_tests,
    skip_build,
    verbose,
    config,
    log_file,
    workspace,
    health_timeout,
    health_interval,
    command_timeout,
    webhook_url,
):
    """Deploy the project to ENVIRONMENT (development, staging or production).

    \b
    Examples:
      deploypipe                    # Deploy to development
      deploypipe staging            # Deploy to staging
      deploypipe production         # Deploy to production
      deploypipe staging --verbose  # Deploy to staging with verbose output
    """
    logger = logging.getLogger("deploypipe")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except DeployError as exc:
        raise click.ClickException(str(exc)) from exc

    environment = _resolve_option(environment, config_values, "environment", default="development")
    skip_tests = bool(_resolve_option(skip_tests, config_values, "skip_tests", default=False))
    skip_build = bool(_resolve_option(skip_build, config_values, "skip_build", default=False))
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    workspace = _resolve_option(workspace, config_values, "workspace")
    health_timeout = float(
        _resolve_option(
            health_timeout,
            config_values,
            "health_check_timeout",
            default=HEALTH_CHECK_TIMEOUT_SECONDS,
        )
    )
    health_interval = float(
        _resolve_option(
            health_interval,
            config_values,
            "health_check_interval",
            default=HEALTH_CHECK_INTERVAL_SECONDS,
        )
    )
    command_timeout = _resolve_option(command_timeout, config_values, "command_timeout")
    if command_timeout is not None:
        command_timeout = float(command_timeout)
    webhook_url = _resolve_option(webhook_url, config_values, "webhook_url")
    project_name = _resolve_option(None, config_values, "project_name", default=PROJECT_NAME)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    try:
        deployer = Deployer(
            environment=environment,
            skip_tests=skip_tests,
            skip_build=skip_build,
            verbose=verbose,
            workspace=workspace,
            project_name=project_name,
            webhook_url=webhook_url,
            health_check_timeout=health_timeout,
            health_check_interval=health_interval,
            command_timeout=command_timeout,
            environment_overrides=config_values.get("environments"),
        )
    except DeployError as exc:
        raise click.ClickException(str(exc)) from exc

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    raise SystemExit(deployer.run())


if __name__ == "__main__":
    main()
