"""Static registry of deployment environments."""

from typing import Any, Dict, Mapping, Optional

from deploypipe.errors import ConfigurationError
from deploypipe.errors_catalog import actionable_error
from deploypipe.models import EnvironmentConfig


class EnvironmentRegistry:
    """Maps environment names to their target URL and source branch."""

    DEFAULT_ENVIRONMENTS: Dict[str, Dict[str, str]] = {
        "development": {
            "url": "http://localhost:3000",
            "branch": "develop",
        },
        "staging": {
            "url": "https://staging.subscription-service.com",
            "branch": "staging",
        },
        "production": {
            "url": "https://subscription-service.com",
            "branch": "main",
        },
    }
    OVERRIDABLE_FIELDS = {"url", "branch"}

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None):
        self._environments = {
            name: EnvironmentConfig(
                name=name,
                target_url=values["url"],
                required_branch=values["branch"],
            )
            for name, values in self._merge(overrides or {}).items()
        }

    @property
    def names(self):
        return list(self._environments)

    def resolve(self, name: str) -> EnvironmentConfig:
        try:
            return self._environments[name]
        except KeyError:
            raise ConfigurationError(
                actionable_error(
                    "unknown_environment",
                    name=name,
                    choices=", ".join(self._environments),
                )
            ) from None

    def _merge(self, overrides: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
        merged = {name: dict(values) for name, values in self.DEFAULT_ENVIRONMENTS.items()}

        unknown = sorted(set(overrides) - set(merged))
        if unknown:
            raise ConfigurationError(
                f"Cannot configure unknown environments: {', '.join(unknown)}"
            )

        for name, values in overrides.items():
            if not isinstance(values, dict):
                raise ConfigurationError(f"Environment '{name}' override must be a mapping.")
            bad_fields = sorted(set(values) - self.OVERRIDABLE_FIELDS)
            if bad_fields:
                raise ConfigurationError(
                    f"Unsupported fields for environment '{name}': {', '.join(bad_fields)}"
                )
            for key, value in values.items():
                if not value:
                    raise ConfigurationError(f"Environment '{name}' has an empty {key}.")
                merged[name][key] = str(value)

        return merged
