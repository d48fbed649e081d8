"""Configuration module."""

from .settings import (
    Settings,
    Category,
    Configuration,
    Transformer,
    DEFAULT_CONFIGURATION,
    get_settings,
    parse_configuration,
    load_json_config,
    find_config_file,
    resolve_configuration,
    merge_configuration,
    create_sample_config,
)

__all__ = [
    "Settings",
    "Category",
    "Configuration",
    "Transformer",
    "DEFAULT_CONFIGURATION",
    "get_settings",
    "parse_configuration",
    "load_json_config",
    "find_config_file",
    "resolve_configuration",
    "merge_configuration",
    "create_sample_config",
]
