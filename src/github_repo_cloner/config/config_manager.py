"""
Layered configuration for the repository cloner.

Values come from the dataclass defaults, then an optional YAML file, then
environment variables; ``${VAR}`` references are expanded and the result
is validated before it is turned back into :class:`AppConfig`.
"""

import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, fields, asdict
import logging

from ..error_handling import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class GitHubConfig:
    """GitHub API access."""
    access_token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout: int = 30
    max_retries: int = 3
    per_page: int = 100
    user_agent: str = "UnityGitClient"
    clone_host: str = "github.com"


@dataclass
class CloneConfig:
    """Clone target and post-clone step configuration."""
    target_directory: str = "Assets"
    template_folder: str = "Assets/Templates"
    create_assembly_definition: bool = True
    create_package_manifest: bool = True
    copy_template_files: bool = True
    timeout: int = 600  # seconds a transfer may stall before git aborts
    lfs_timeout: int = 1800


@dataclass
class ScaffoldConfig:
    """Values written into generated assembly definitions and package manifests."""
    organization_name: str = "UnityEssentials"
    author_name: str = "Unity Essentials"
    unity_version: str = "2022.1"
    description: str = "This is a part of the UnityEssentials Ecosystem"
    dependency_name: Optional[str] = "com.unityessentials.core"
    dependency_version: str = "1.0.0"
    exclude_string: str = "Unity"


@dataclass
class CredentialsConfig:
    store_path: str = "~/.github_repo_cloner/credentials.yaml"
    token_key: str = "GitToken"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False  # JSON lines instead of format


@dataclass
class AppConfig:
    """Complete application configuration."""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    clone: CloneConfig = field(default_factory=CloneConfig)
    scaffold: ScaffoldConfig = field(default_factory=ScaffoldConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        if not include_secrets:
            data["github"].pop("access_token", None)
        return data


SECTIONS = {
    "github": GitHubConfig,
    "clone": CloneConfig,
    "scaffold": ScaffoldConfig,
    "credentials": CredentialsConfig,
    "logging": LoggingConfig,
}

ENV_VARS = {
    "GITHUB_TOKEN": "github.access_token",
    "GITHUB_API_URL": "github.api_base_url",
    "GITHUB_TIMEOUT": "github.timeout",
    "GITHUB_MAX_RETRIES": "github.max_retries",
    "CLONER_TARGET_DIR": "clone.target_directory",
    "CLONER_TEMPLATE_DIR": "clone.template_folder",
    "CLONER_CREATE_ASMDEF": "clone.create_assembly_definition",
    "CLONER_CREATE_MANIFEST": "clone.create_package_manifest",
    "CLONER_COPY_TEMPLATES": "clone.copy_template_files",
    "CLONER_ORGANIZATION": "scaffold.organization_name",
    "CLONER_AUTHOR": "scaffold.author_name",
    "CLONER_EXCLUDE_STRING": "scaffold.exclude_string",
    "CLONER_CREDENTIALS_FILE": "credentials.store_path",
    "LOG_LEVEL": "logging.level",
    "LOG_FILE": "logging.file",
    "LOG_STRUCTURED": "logging.structured",
}

_TRUE_WORDS = {'true', 'yes', 'on', '1'}
_FALSE_WORDS = {'false', 'no', 'off', '0'}
_VARIABLE_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``override`` on ``base`` without mutating either."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_references(value: Any) -> Any:
    """
    Replace a string that is exactly ``${VAR}`` with the variable's value.

    Unset variables leave the reference in place.
    """
    if isinstance(value, dict):
        return {k: expand_references(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_references(v) for v in value]
    if isinstance(value, str):
        match = _VARIABLE_REFERENCE.fullmatch(value)
        if match:
            return os.getenv(match.group(1), value)
    return value


def coerce_env_value(path: str, raw: str) -> Any:
    """
    Convert an environment variable to the type of the field at ``path``.

    Fields defaulting to a string or None keep the raw string, so a token
    made only of digits stays a string.

    Raises:
        ConfigurationError: If the value cannot be converted
    """
    section, key = path.split('.')
    default = getattr(SECTIONS[section](), key)

    if isinstance(default, bool):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ConfigurationError(f"{path} expects a boolean, got {raw!r}", config_key=path)

    if isinstance(default, (int, float)):
        try:
            return type(default)(raw)
        except ValueError as e:
            raise ConfigurationError(f"{path} expects a number, got {raw!r}", config_key=path, cause=e) from e

    return raw


class ConfigManager:
    """
    Loads and caches :class:`AppConfig`.

    Precedence, lowest first: defaults, the YAML file, environment
    variables. Command-line options are applied by the caller on the
    returned object.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None
        self._env_var_mapping = dict(ENV_VARS)

    def load_config(self) -> AppConfig:
        """
        Build the configuration from all sources (cached after the first call).

        Raises:
            ConfigurationError: If a value is invalid
        """
        if self._config is not None:
            return self._config

        values = AppConfig().to_dict(include_secrets=True)
        if self.config_file and self.config_file.exists():
            values = merge_dicts(values, self._read_file(self.config_file))
        values = merge_dicts(values, self._read_environment())
        values = expand_references(values)

        self._validate(values)
        self._config = self._build(values)
        return self._config

    def _read_file(self, path: Path) -> Dict[str, Any]:
        """Read a YAML config file; an unreadable or malformed file is logged and ignored."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config file {path}: {e}")
            return {}

        if data is not None and not isinstance(data, dict):
            logger.warning(f"Ignoring config file {path}: top level is not a mapping")
            return {}

        logger.info(f"Loaded configuration from {path}")
        return data or {}

    def _read_environment(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_var, path in self._env_var_mapping.items():
            raw = os.getenv(env_var)
            if raw is None:
                continue
            section, key = path.split('.')
            values.setdefault(section, {})[key] = coerce_env_value(path, raw)
        return values

    def _validate(self, values: Dict[str, Any]) -> None:
        """
        Raises:
            ConfigurationError: For a section that is not a mapping, an
                unknown log level, a non-positive timeout, a negative retry
                count or an empty organization
        """
        for section in SECTIONS:
            if values.get(section) is not None and not isinstance(values[section], dict):
                raise ConfigurationError(
                    f"Configuration section {section} must be a mapping, got {values[section]!r}",
                    config_key=section
                )

        def get(path):
            section, key = path.split('.')
            return (values.get(section) or {}).get(key)

        level = str(get("logging.level") or "").upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {level or None}. Valid levels: {list(_LOG_LEVELS)}",
                config_key="logging.level"
            )

        for path in ("github.timeout", "clone.timeout", "clone.lfs_timeout"):
            value = get(path)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{path} must be a positive number, got {value!r}", config_key=path)

        retries = get("github.max_retries")
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            raise ConfigurationError(
                f"github.max_retries must be a non-negative integer, got {retries!r}",
                config_key="github.max_retries"
            )

        if not get("scaffold.organization_name"):
            raise ConfigurationError("scaffold.organization_name must not be empty",
                                     config_key="scaffold.organization_name")

    def _build(self, values: Dict[str, Any]) -> AppConfig:
        """Turn validated values into dataclasses; unknown keys are logged and dropped."""
        sections = {}
        for name, section_cls in SECTIONS.items():
            section_values = values.get(name) or {}
            known = {f.name for f in fields(section_cls)}
            unknown = sorted(set(section_values) - known)
            if unknown:
                logger.warning(f"Ignoring unknown {name} configuration keys: {unknown}")
            sections[name] = section_cls(**{k: v for k, v in section_values.items() if k in known})

        for name in sorted(set(values) - set(SECTIONS)):
            logger.warning(f"Ignoring unknown configuration section: {name}")

        sections["logging"].level = sections["logging"].level.upper()
        return AppConfig(**sections)

    def get_config(self) -> AppConfig:
        return self.load_config()

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """Write the current configuration as YAML. The access token is never written."""
        config_path = config_path or self.config_file or Path("cloner.yaml")

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.get_config().to_dict(include_secrets=False), f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {config_path}")


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager.

    ``config_file`` is only used when the manager is first created.
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def reset_config_manager() -> None:
    """Drop the global configuration manager so the next access reloads."""
    global _config_manager
    _config_manager = None


def get_config() -> AppConfig:
    return get_config_manager().get_config()
