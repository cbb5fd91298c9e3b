"""Workspace prerequisite checks run before any side effect."""

import os
from typing import List

from deploypipe.constants import MANIFEST_FILE, REQUIRED_TOOLS
from deploypipe.errors import ExecutionError, PrerequisiteError
from deploypipe.errors_catalog import actionable_error
from deploypipe.models import EnvironmentConfig


class PrerequisiteService:
    """Validates manifest, toolchain and version-control state."""

    def __init__(self, command_runner, logger, console):
        self.command_runner = command_runner
        self.logger = logger
        self.console = console

    def check(self, workspace: str, environment: EnvironmentConfig) -> List[str]:
        """Raises PrerequisiteError on a fatal problem, returns warnings otherwise."""
        warnings: List[str] = []

        manifest_path = os.path.join(workspace, MANIFEST_FILE)
        if not os.path.isfile(manifest_path):
            raise PrerequisiteError(
                actionable_error("manifest_not_found", manifest=MANIFEST_FILE, workspace=workspace)
            )

        for tool in REQUIRED_TOOLS:
            if not self.command_runner.is_available(tool):
                raise PrerequisiteError(actionable_error("tool_not_found", tool=tool))

        try:
            if environment.name == "production":
                self.ensure_clean_worktree(workspace)
            branch_warning = self.check_branch(workspace, environment)
            if branch_warning:
                warnings.append(branch_warning)
        except ExecutionError as exc:
            self.logger.debug("git check failed: %s", exc)
            warnings.append("Git not available or not in a git repository")

        for warning in warnings:
            self.logger.warning(warning)
            self.console.print(f"[yellow]Warning:[/yellow] {warning}")

        return warnings

    def ensure_clean_worktree(self, workspace: str):
        result = self.command_runner.run(["git", "status", "--porcelain"], cwd=workspace)
        if (result.stdout or "").strip():
            raise PrerequisiteError(actionable_error("dirty_worktree"))

    def check_branch(self, workspace: str, environment: EnvironmentConfig):
        result = self.command_runner.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=workspace,
        )
        branch = (result.stdout or "").strip()
        if branch and branch != environment.required_branch:
            return (
                f"Current branch '{branch}' differs from '{environment.required_branch}' "
                f"expected for {environment.name}."
            )
        return None
