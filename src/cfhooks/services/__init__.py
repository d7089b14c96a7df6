"""Services package for cfhooks.

This package contains the hook installer, formatter tool discovery, the
formatter invocation and the interactive pre-commit session.
"""

from .formatter import FormatResult, FormatterInvoker, build_include_regex
from .hook_installer import HookInstaller
from .prompt import PreCommitSession, open_terminal
from .tool_discovery import find_clang_format, find_clang_format_diff, find_tool, require_tool

__all__ = [
    "FormatResult",
    "FormatterInvoker",
    "HookInstaller",
    "PreCommitSession",
    "build_include_regex",
    "find_clang_format",
    "find_clang_format_diff",
    "find_tool",
    "open_terminal",
    "require_tool",
]
