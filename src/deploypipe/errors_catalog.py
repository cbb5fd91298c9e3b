"""Actionable error catalog for deploypipe."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "unknown_environment": {
        "what": "Unknown environment: {name}.",
        "next": "Use one of: {choices}.",
    },
    "manifest_not_found": {
        "what": "{manifest} not found in {workspace}.",
        "next": "Run the deployment from the project root or pass `--workspace`.",
    },
    "tool_not_found": {
        "what": "Required command not found: {tool}.",
        "next": "Install {tool} and make sure it is on your PATH.",
    },
    "dirty_worktree": {
        "what": "Working directory is not clean.",
        "next": "Commit or stash your changes before deploying to production.",
    },
    "health_check_timeout": {
        "what": "Health check timed out after {timeout}s and {attempts} attempt(s): {url}",
        "next": "Inspect the application logs and confirm the service listens on the expected port.",
    },
    "activation_not_configured": {
        "what": "No deployment logic is configured for {environment}.",
        "next": "Install the pm2 process manager on the deploy host and retry.",
    },
    "backup_source_missing": {
        "what": "Build output {build_dir} does not exist, nothing to back up.",
        "next": "Run the deployment without `--skip-build` to produce a fresh artifact.",
    },
    "command_failed": {
        "what": "Command failed ({exit_code}): {command}",
        "next": "Re-run with `--verbose` to see the full command output.",
    },
}


def actionable_error(code: str, **kwargs: object) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
