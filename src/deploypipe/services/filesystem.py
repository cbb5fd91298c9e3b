"""Filesystem helpers for deploypipe."""

import logging
import os
import shutil

from rich.console import Console

from deploypipe.errors import DeployError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def modified_time(self, path: str) -> float:
        """Returns the mtime of ``path``, or 0 when it does not exist."""
        try:
            return os.path.getmtime(path)
        except OSError:
            return 0.0

    def remove_dir(self, path: str):
        if not os.path.exists(path):
            return

        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise DeployError(f"Could not remove {path}: {exc}") from exc
        self.logger.debug("Removed directory: %s", path)

    def copy_tree(self, source: str, destination: str):
        try:
            shutil.copytree(source, destination)
        except (OSError, shutil.Error) as exc:
            raise DeployError(f"Could not copy {source} to {destination}: {exc}") from exc
        self.logger.debug("Copied %s to %s", source, destination)

    def write_text(self, path: str, content: str):
        try:
            with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
        except OSError as exc:
            raise DeployError(f"Could not write {path}: {exc}") from exc
