import pytest
import yaml

from github_repo_cloner.config import ConfigManager, AppConfig
from github_repo_cloner.error_handling import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ConfigManager()._env_var_mapping:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = ConfigManager().load_config()

    assert config.github.access_token is None
    assert config.github.user_agent == "UnityGitClient"
    assert config.clone.target_directory == "Assets"
    assert config.clone.template_folder == "Assets/Templates"
    assert config.scaffold.organization_name == "UnityEssentials"
    assert config.scaffold.dependency_name == "com.unityessentials.core"
    assert config.credentials.token_key == "GitToken"


def test_yaml_file_overrides_defaults(tmp_path):
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({
        "clone": {"target_directory": "Packages", "copy_template_files": False},
        "scaffold": {"organization_name": "Acme"},
    }))

    config = ConfigManager(config_file).load_config()

    assert config.clone.target_directory == "Packages"
    assert config.clone.copy_template_files is False
    assert config.clone.create_package_manifest is True
    assert config.scaffold.organization_name == "Acme"


def test_environment_overrides_file(tmp_path, monkeypatch):
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({"github": {"timeout": 10}}))
    monkeypatch.setenv("GITHUB_TIMEOUT", "45")
    monkeypatch.setenv("CLONER_CREATE_ASMDEF", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = ConfigManager(config_file).load_config()

    assert config.github.timeout == 45
    assert config.clone.create_assembly_definition is False
    assert config.logging.level == "DEBUG"


def test_numeric_looking_strings_stay_strings(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "1234567890")
    monkeypatch.setenv("CLONER_ORGANIZATION", "2024")

    config = ConfigManager().load_config()

    assert config.github.access_token == "1234567890"
    assert config.scaffold.organization_name == "2024"


def test_variable_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("MY_TEMPLATES", "/opt/templates")
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({"clone": {"template_folder": "${MY_TEMPLATES}"}}))

    assert ConfigManager(config_file).load_config().clone.template_folder == "/opt/templates"


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigManager().load_config()

    assert exc_info.value.config_key == "logging.level"


@pytest.mark.parametrize("section, key, value", [
    ("github", "timeout", 0),
    ("clone", "lfs_timeout", -5),
    ("github", "max_retries", -1),
    ("scaffold", "organization_name", ""),
])
def test_invalid_values(tmp_path, section, key, value):
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({section: {key: value}}))

    with pytest.raises(ConfigurationError):
        ConfigManager(config_file).load_config()


def test_unknown_keys_are_ignored(tmp_path):
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({"clone": {"target_directory": "X", "bogus": 1}, "extra": {}}))

    config = ConfigManager(config_file).load_config()

    assert config.clone.target_directory == "X"
    assert not hasattr(config.clone, "bogus")


def test_save_config_never_writes_token(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "supersecret")
    output = tmp_path / "saved.yaml"

    ConfigManager().save_config(output)

    assert "supersecret" not in output.read_text()
    assert "access_token" not in yaml.safe_load(output.read_text())["github"]


def test_to_dict_hides_token_by_default():
    config = AppConfig()
    config.github.access_token = "secret"

    assert "access_token" not in config.to_dict()["github"]
    assert config.to_dict(include_secrets=True)["github"]["access_token"] == "secret"


@pytest.mark.parametrize("name, value", [("GITHUB_TIMEOUT", "soon"), ("CLONER_COPY_TEMPLATES", "maybe")])
def test_unconvertible_environment_value(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        ConfigManager().load_config()


@pytest.mark.parametrize("section, value", [("github", "foo"), ("logging", ["INFO"]), ("clone", 3)])
def test_section_that_is_not_a_mapping(tmp_path, section, value):
    config_file = tmp_path / "cloner.yaml"
    config_file.write_text(yaml.safe_dump({section: value}))

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigManager(config_file).load_config()

    assert exc_info.value.config_key == section


def test_structured_logging_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_STRUCTURED", "yes")

    assert ConfigManager().load_config().logging.structured is True
