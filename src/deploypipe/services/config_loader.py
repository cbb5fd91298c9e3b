"""Configuration loader for deploypipe."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from deploypipe.errors import ConfigurationError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "environment",
        "skip_tests",
        "skip_build",
        "verbose",
        "log_file",
        "health_check_timeout",
        "health_check_interval",
        "command_timeout",
        "webhook_url",
        "workspace",
        "project_name",
        "environments",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigurationError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigurationError(f"Unknown configuration keys: {unknown_list}")

        environments = parsed.get("environments")
        if environments is not None and not isinstance(environments, dict):
            raise ConfigurationError("`environments` must be a mapping of environment names.")

        return parsed
