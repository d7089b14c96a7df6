"""Utility helpers for the clang-format hooks."""

from .process import CommandRunner, format_command

__all__ = ["CommandRunner", "format_command"]
