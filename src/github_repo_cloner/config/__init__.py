"""
Configuration management for the repository cloner.
"""

from .config_manager import (
    ConfigManager, AppConfig, GitHubConfig, CloneConfig, ScaffoldConfig,
    CredentialsConfig, LoggingConfig, get_config_manager, get_config,
    reset_config_manager
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "GitHubConfig",
    "CloneConfig",
    "ScaffoldConfig",
    "CredentialsConfig",
    "LoggingConfig",
    "get_config_manager",
    "get_config",
    "reset_config_manager"
]
