"""Configuration loading for the clang-format hooks."""

from .config import (
    DEFAULT_STYLE,
    EXCLUDE_FILE_NAME,
    INTERACTIVE_KEY,
    STYLE_KEY,
    HookConfig,
    load_config,
    load_exclusions,
    parse_interactive,
    read_git_config,
    validate_style,
)

__all__ = [
    "DEFAULT_STYLE",
    "EXCLUDE_FILE_NAME",
    "INTERACTIVE_KEY",
    "STYLE_KEY",
    "HookConfig",
    "load_config",
    "load_exclusions",
    "parse_interactive",
    "read_git_config",
    "validate_style",
]
