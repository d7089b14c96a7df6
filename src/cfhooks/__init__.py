"""clang-format git hooks.

This package provides two command line programs:

- ``git-pre-commit-format`` installs itself as the pre-commit hook of a
  repository and, when run by git, checks that the staged changes are
  formatted with clang-format, offering to apply the fix
- ``apply-format`` formats the lines changed in ``git diff`` (or whole
  files) and prints or applies the result

Basic Usage:
    from cfhooks import FormatterInvoker, load_config

    config = load_config()
    result = FormatterInvoker(config).format_diff(staged=True)
    if result.has_changes:
        print(result.patch)
"""

from .exceptions import (
    CFHooksError,
    CommitCancelledError,
    ExternalToolError,
    NotARepositoryError,
    PatchApplyError,
    ToolNotFoundError,
)
from .git.repository import find_repository_root, relative_path
from .services.formatter import FormatResult, FormatterInvoker
from .services.hook_installer import HookInstaller
from .services.prompt import PreCommitSession
from .settings.config import HookConfig, load_config, load_exclusions
from .types.enums import FormatMode, HookStatus, PromptAnswer

__version__ = "1.0.0"

__all__ = [
    # Exceptions
    "CFHooksError",
    "CommitCancelledError",
    "ExternalToolError",
    "NotARepositoryError",
    "PatchApplyError",
    "ToolNotFoundError",
    # Repository
    "find_repository_root",
    "relative_path",
    # Services
    "FormatResult",
    "FormatterInvoker",
    "HookInstaller",
    "PreCommitSession",
    # Configuration
    "HookConfig",
    "load_config",
    "load_exclusions",
    # Types
    "FormatMode",
    "HookStatus",
    "PromptAnswer",
]
