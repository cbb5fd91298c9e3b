import pytest

from deploypipe.errors import ConfigurationError
from deploypipe.services.environment_registry import EnvironmentRegistry


@pytest.mark.parametrize("name", ["development", "staging", "production"])
def test_resolve_known_environments(name):
    environment = EnvironmentRegistry().resolve(name)

    assert environment.name == name
    assert environment.target_url
    assert environment.required_branch


def test_environments_have_distinct_targets():
    registry = EnvironmentRegistry()
    environments = [registry.resolve(name) for name in registry.names]

    assert len({environment.target_url for environment in environments}) == 3
    assert len({environment.required_branch for environment in environments}) == 3


def test_unknown_environment_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="Unknown environment: qa"):
        EnvironmentRegistry().resolve("qa")


def test_overrides_replace_url_and_branch():
    registry = EnvironmentRegistry({"staging": {"url": "https://staging.internal", "branch": "release"}})

    staging = registry.resolve("staging")

    assert staging.target_url == "https://staging.internal"
    assert staging.required_branch == "release"
    assert registry.resolve("production").required_branch == "main"


def test_overrides_cannot_add_environments():
    with pytest.raises(ConfigurationError, match="unknown environments: qa"):
        EnvironmentRegistry({"qa": {"url": "https://qa.internal"}})


def test_overrides_reject_unsupported_fields():
    with pytest.raises(ConfigurationError, match="Unsupported fields"):
        EnvironmentRegistry({"production": {"port": 8080}})
