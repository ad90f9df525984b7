"""Layered configuration: bundled defaults, a YAML file, environment overrides."""

from .manager import ENV_PREFIX, USER_CONFIG_DIR_ENV, ConfigManager, get_user_config_dir

__all__ = ["ConfigManager", "get_user_config_dir", "ENV_PREFIX", "USER_CONFIG_DIR_ENV"]
