"""Git repository helpers."""

from .repository import (
    MAX_SEARCH_DEPTH,
    RootProbe,
    find_repository_root,
    git_dir,
    hook_path,
    is_merge_in_progress,
    probe_root,
    relative_path,
    show_toplevel,
)

__all__ = [
    "MAX_SEARCH_DEPTH",
    "RootProbe",
    "find_repository_root",
    "git_dir",
    "hook_path",
    "is_merge_in_progress",
    "probe_root",
    "relative_path",
    "show_toplevel",
]
