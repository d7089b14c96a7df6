"""Type definitions for the clang-format hooks."""

from .enums import FormatMode, HookStatus, PromptAnswer

__all__ = [
    "FormatMode",
    "HookStatus",
    "PromptAnswer",
]
