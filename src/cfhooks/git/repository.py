"""Git repository discovery.

This module finds the repository whose ``.git/hooks`` directory the hook is
installed into. The tools are usually vendored as a git submodule of the
project they format, so the search does not stop at the first working tree:

- plain repository: ``.git`` is a directory, the top level is the root
- linked worktree: ``.git`` is a file and the parent of ``--git-common-dir``
  holds a ``.git`` entry, that parent (the main worktree) is the root
- submodule: ``.git`` is a file and the common dir lives inside the parent
  project's ``.git/modules``, the search continues from the parent directory

It also provides a purely lexical relative-path computation used to create
relative hook symlinks.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import List, Optional, Union

from ..exceptions import NotARepositoryError, RepositoryRootError
from ..utils.process import CommandRunner

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Maximum number of nested submodules walked through before giving up
MAX_SEARCH_DEPTH = 16

HOOK_NAME = "pre-commit"


@dataclass(frozen=True)
class RootProbe:
    """Result of probing one directory during the root search.

    Attributes:
        path: The resolved root when ``resolved`` is true, otherwise the
            directory the search continues from
        resolved: Whether ``path`` is the final repository root
    """
    path: Path
    resolved: bool


def _rev_parse(args: List[str], cwd: Path, runner: CommandRunner) -> str:
    """Run ``git rev-parse`` and return its single line of output."""
    result = runner.run(["git", "rev-parse", *args], cwd=cwd)
    if result.returncode != 0:
        raise NotARepositoryError(cwd, details=result.stderr.strip() or None)
    return result.stdout.strip()


def _absolute(path_text: str, base: Path) -> Path:
    path = Path(path_text)
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def show_toplevel(cwd: Optional[PathLike] = None, runner: Optional[CommandRunner] = None) -> Path:
    """Get the top of the working tree containing ``cwd``.

    Raises:
        NotARepositoryError: If ``cwd`` is not inside a working tree
    """
    runner = runner or CommandRunner()
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    return _absolute(_rev_parse(["--show-toplevel"], cwd, runner), cwd)


def probe_root(directory: Path, runner: CommandRunner) -> RootProbe:
    """Probe a single directory for the repository root.

    Args:
        directory: Directory inside a working tree
        runner: Command runner used to call git

    Returns:
        A resolved probe, or an unresolved one pointing at the directory
        the search should continue from

    Raises:
        NotARepositoryError: If git cannot resolve ``directory``
    """
    top = show_toplevel(directory, runner)
    if (top / ".git").is_dir():
        return RootProbe(top, resolved=True)

    common_dir = _absolute(_rev_parse(["--git-common-dir"], top, runner), top)
    main_worktree = common_dir.parent
    if (main_worktree / ".git").exists():
        logger.debug("%s is a linked worktree of %s", top, main_worktree)
        return RootProbe(main_worktree, resolved=True)

    logger.debug("%s is a submodule, continuing from %s", top, top.parent)
    return RootProbe(top.parent, resolved=False)


def find_repository_root(
    start: Optional[PathLike] = None,
    runner: Optional[CommandRunner] = None,
    max_depth: int = MAX_SEARCH_DEPTH,
) -> Path:
    """Find the top-level repository root.

    Args:
        start: Directory to start from (defaults to the current directory)
        runner: Command runner used to call git
        max_depth: Maximum number of probes before giving up

    Returns:
        Absolute path of a directory containing a ``.git`` directory

    Raises:
        NotARepositoryError: If git reports that a probed directory is not
            inside a repository
        RepositoryRootError: If the root was not found within ``max_depth``
            probes
    """
    runner = runner or CommandRunner()
    start_path = Path(start).resolve() if start is not None else Path.cwd().resolve()

    current = start_path
    for _ in range(max_depth):
        probe = probe_root(current, runner)
        if probe.resolved:
            return probe.path
        current = probe.path

    raise RepositoryRootError(start_path, max_depth)


def relative_path(source: PathLike, target: PathLike) -> str:
    """Compute the path of ``target`` relative to the directory ``source``.

    Both paths are expected to be absolute. Neither has to exist: the
    computation only compares path segments.

    Examples:
        >>> relative_path("/a/b/c", "/a/d")
        '../../d'
        >>> relative_path("/a/b", "/a/b")
        '.'
    """
    source_parts = PurePath(source).parts
    target_parts = PurePath(target).parts

    common = 0
    for source_part, target_part in zip(source_parts, target_parts):
        if source_part != target_part:
            break
        common += 1

    segments = [os.pardir] * (len(source_parts) - common)
    segments.extend(target_parts[common:])
    if not segments:
        return os.curdir
    return os.path.join(*segments)


def git_dir(cwd: Optional[PathLike] = None, runner: Optional[CommandRunner] = None) -> Path:
    """Get the absolute git directory of the repository containing ``cwd``."""
    runner = runner or CommandRunner()
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    return _absolute(_rev_parse(["--git-dir"], cwd, runner), cwd)


def is_merge_in_progress(cwd: Optional[PathLike] = None, runner: Optional[CommandRunner] = None) -> bool:
    """Whether a merge is being concluded (``MERGE_HEAD`` exists)."""
    return (git_dir(cwd, runner) / "MERGE_HEAD").exists()


def hook_path(root: PathLike) -> Path:
    """Get the pre-commit hook path of a repository root."""
    return Path(root) / ".git" / "hooks" / HOOK_NAME
