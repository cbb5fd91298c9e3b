import pytest

from deploypipe.errors import ConfigurationError
from deploypipe.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".deploypipe.yml"
    config_file.write_text(
        "environment: staging\n"
        "health_check_timeout: 120\n"
        "environments:\n"
        "  staging:\n"
        "    url: https://staging.internal\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded["environment"] == "staging"
    assert loaded["health_check_timeout"] == 120
    assert loaded["environments"]["staging"]["url"] == "https://staging.internal"


def test_config_loader_returns_empty_mapping_without_path():
    assert ConfigLoader().load(None) == {}


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".deploypipe.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
        ConfigLoader().load(str(config_file))


def test_config_loader_rejects_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_config_loader_rejects_non_mapping_environments(tmp_path):
    config_file = tmp_path / ".deploypipe.yml"
    config_file.write_text("environments:\n  - staging\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="must be a mapping"):
        ConfigLoader().load(str(config_file))
