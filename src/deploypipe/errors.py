"""Domain errors for deploypipe."""

from typing import Optional


class DeployError(RuntimeError):
    """Raised when the deployment cannot continue safely."""


class ConfigurationError(DeployError):
    """Unknown environment or invalid configuration."""


class PrerequisiteError(DeployError):
    """The workspace is not ready to be deployed."""


class ExecutionError(DeployError):
    """An external command could not be run or exited non-zero."""

    def __init__(
        self,
        message: str,
        command: str = "",
        exit_code: Optional[int] = None,
        output: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.output = output


class DeployTimeoutError(DeployError):
    """A health check or a command exceeded its deadline."""


class NotificationError(DeployError):
    """The outcome notification could not be delivered."""
