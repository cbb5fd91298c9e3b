"""Timestamped backups of the build output before production activation."""

import os
from datetime import datetime, timezone
from typing import Optional

from deploypipe.constants import BACKUPS_DIR, BUILD_DIR
from deploypipe.errors import DeployError
from deploypipe.errors_catalog import actionable_error


class BackupService:
    """Copies the build output under ``backups/<timestamp>/``."""

    def __init__(self, filesystem_service, logger, console):
        self.filesystem = filesystem_service
        self.logger = logger
        self.console = console

    @staticmethod
    def timestamp(now: Optional[datetime] = None) -> str:
        moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        # ISO-8601 UTC with millisecond precision, ':' and '.' replaced by '-'
        return f"{moment.strftime('%Y-%m-%dT%H-%M-%S')}-{moment.microsecond // 1000:03d}Z"

    def create_backup(self, workspace: str, now: Optional[datetime] = None) -> str:
        build_dir = os.path.join(workspace, BUILD_DIR)
        if not os.path.isdir(build_dir):
            raise DeployError(actionable_error("backup_source_missing", build_dir=build_dir))

        backup_dir = os.path.join(workspace, BACKUPS_DIR, self.timestamp(now))
        if os.path.exists(backup_dir):
            raise DeployError(f"Backup directory already exists: {backup_dir}")

        self.console.print("[blue]Creating backup...[/blue]")
        try:
            os.makedirs(backup_dir)
        except OSError as exc:
            raise DeployError(f"Could not create backup directory {backup_dir}: {exc}") from exc

        self.filesystem.copy_tree(build_dir, os.path.join(backup_dir, BUILD_DIR))
        self.logger.info("Backup created: %s", backup_dir)
        return backup_dir
