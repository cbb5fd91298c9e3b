"""Dependency installation with an mtime staleness heuristic."""

import os

from deploypipe.constants import DEPENDENCIES_DIR, INSTALL_COMMAND, LOCK_FILE, MANIFEST_FILE


class DependencyService:
    """Decides whether a clean install is needed and performs it.

    The check compares modification times only, so a stale install can be
    skipped when the lock file was touched without a real change.
    """

    def __init__(self, filesystem_service, logger):
        self.filesystem = filesystem_service
        self.logger = logger

    def install_required(self, workspace: str) -> bool:
        if not os.path.isdir(os.path.join(workspace, DEPENDENCIES_DIR)):
            self.logger.debug("%s is missing, install required.", DEPENDENCIES_DIR)
            return True

        manifest_time = self.filesystem.modified_time(os.path.join(workspace, MANIFEST_FILE))
        lock_time = self.filesystem.modified_time(os.path.join(workspace, LOCK_FILE))
        return manifest_time > lock_time

    def install(self, workspace: str, run_cmd, stream_output: bool = False) -> bool:
        """Runs a clean install when needed. Returns whether it ran."""
        if not self.install_required(workspace):
            self.logger.info("Dependencies are up to date")
            return False

        self.logger.info("Installing dependencies...")
        run_cmd(INSTALL_COMMAND, stream_output=stream_output, cwd=workspace)
        return True
