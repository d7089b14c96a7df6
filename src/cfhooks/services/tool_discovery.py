"""Discovery of clang-format, clang-format-diff and helper tools.

clang-format itself is normally on the PATH, but clang-format-diff ships as a
script in a different place on every platform. The lookup is an ordered chain
of strategies evaluated lazily; the first one producing an existing file wins:

1. Environment override (``CLANG_FORMAT_DIFF``)
2. Versioned package locations for the current OS, newest version first
3. The PATH, as ``clang-format-diff`` or ``clang-format-diff.py``
4. Fixed paths used by distributions
"""

import glob
import logging
import os
import platform
import re
import shutil
import sys
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

CLANG_FORMAT_ENV = "CLANG_FORMAT"
CLANG_FORMAT_DIFF_ENV = "CLANG_FORMAT_DIFF"

DIFF_TOOL_NAMES = ("clang-format-diff", "clang-format-diff.py")

HOMEBREW_PATTERNS = (
    "/usr/local/Cellar/clang-format/*/share/clang/clang-format-diff.py",
    "/opt/homebrew/Cellar/clang-format/*/share/clang/clang-format-diff.py",
    "/usr/local/Cellar/llvm/*/share/clang/clang-format-diff.py",
    "/opt/homebrew/Cellar/llvm/*/share/clang/clang-format-diff.py",
)

LINUX_PATTERNS = (
    "/usr/lib/llvm-*/share/clang/clang-format-diff.py",
    "/usr/share/clang/clang-format-*/clang-format-diff.py",
)

DISTRIBUTION_PATHS = (
    "/usr/share/clang/clang-format-diff.py",        # Fedora, Arch
    "/usr/local/share/clang/clang-format-diff.py",  # FreeBSD, source installs
    "/usr/lib/clang-format/clang-format-diff.py",
    "/usr/share/clang/clang-format-diff",           # openSUSE
)

INSTALL_HINTS = {
    "Darwin": "Install it with:\n    brew install clang-format",
    "Linux": "Install it with your package manager, for instance:\n"
             "    sudo apt install clang-format      # Debian, Ubuntu\n"
             "    sudo dnf install clang-tools-extra  # Fedora",
}


def version_key(path: str) -> Tuple[int, ...]:
    """Sort key ordering paths by the version numbers they contain."""
    return tuple(int(number) for number in re.findall(r"\d+", path))


class LookupStrategy(ABC):
    """One way of locating an executable."""

    description = "lookup"

    @abstractmethod
    def candidates(self) -> Iterator[str]:
        """Yield candidate paths in priority order."""

    def find(self) -> Optional[str]:
        """Return the first existing candidate, if any."""
        for candidate in self.candidates():
            if os.path.isfile(candidate):
                logger.debug("%s: found %s", self.description, candidate)
                return candidate
        return None


class EnvironmentOverride(LookupStrategy):
    """Path (or command name) given in an environment variable.

    An override that cannot be found is an error rather than a reason to
    fall through to the other strategies.
    """

    def __init__(self, variable: str, tool_name: str, environ: Mapping[str, str]):
        self.variable = variable
        self.tool_name = tool_name
        self.environ = environ
        self.description = f"${variable}"

    def candidates(self) -> Iterator[str]:
        value = self.environ.get(self.variable)
        if not value:
            return
        if os.path.isfile(value):
            yield value
            return
        resolved = shutil.which(value, path=self.environ.get("PATH"))
        if resolved is None:
            raise ToolNotFoundError(
                self.tool_name,
                install_hint=f"{self.variable} is set to '{value}', which does not exist.",
            )
        yield resolved


class VersionedGlob(LookupStrategy):
    """Versioned install directories, newest version first."""

    description = "package locations"

    def __init__(self, patterns: Sequence[str]):
        self.patterns = tuple(patterns)

    def candidates(self) -> Iterator[str]:
        matches: List[str] = []
        for pattern in self.patterns:
            matches.extend(glob.glob(pattern))
        yield from sorted(matches, key=version_key, reverse=True)


class PathLookup(LookupStrategy):
    """Executables on the PATH."""

    description = "PATH"

    def __init__(self, names: Sequence[str], environ: Mapping[str, str]):
        self.names = tuple(names)
        self.environ = environ

    def candidates(self) -> Iterator[str]:
        for name in self.names:
            found = shutil.which(name, path=self.environ.get("PATH"))
            if found:
                yield found


class FixedPaths(LookupStrategy):
    """Well-known fixed locations."""

    description = "distribution paths"

    def __init__(self, paths: Sequence[str]):
        self.paths = tuple(paths)

    def candidates(self) -> Iterator[str]:
        yield from self.paths


def first_match(strategies: Iterable[LookupStrategy]) -> Optional[str]:
    """Evaluate strategies in order and stop at the first match."""
    for strategy in strategies:
        found = strategy.find()
        if found:
            return found
    return None


def diff_tool_strategies(
    environ: Mapping[str, str],
    system: Optional[str] = None,
) -> List[LookupStrategy]:
    """Build the clang-format-diff lookup chain for an operating system."""
    system = system or platform.system()
    strategies: List[LookupStrategy] = [
        EnvironmentOverride(CLANG_FORMAT_DIFF_ENV, "clang-format-diff", environ),
    ]
    if system == "Darwin":
        strategies.append(VersionedGlob(HOMEBREW_PATTERNS))
    elif system == "Linux":
        strategies.append(VersionedGlob(LINUX_PATTERNS))
    strategies.append(PathLookup(DIFF_TOOL_NAMES, environ))
    strategies.append(FixedPaths(DISTRIBUTION_PATHS))
    return strategies


def command_for(path: str) -> List[str]:
    """Command prefix running ``path``, through Python if it is not executable."""
    if os.access(path, os.X_OK):
        return [path]
    return [sys.executable, path]


def find_clang_format(environ: Optional[Mapping[str, str]] = None) -> str:
    """Locate the clang-format executable.

    Raises:
        ToolNotFoundError: If it is neither overridden nor on the PATH
    """
    environ = os.environ if environ is None else environ
    found = first_match([
        EnvironmentOverride(CLANG_FORMAT_ENV, "clang-format", environ),
        PathLookup(["clang-format"], environ),
    ])
    if found is None:
        raise ToolNotFoundError(
            "clang-format",
            env_var=CLANG_FORMAT_ENV,
            install_hint=INSTALL_HINTS.get(platform.system()),
        )
    return found


def find_clang_format_diff(
    environ: Optional[Mapping[str, str]] = None,
    strategies: Optional[Iterable[LookupStrategy]] = None,
) -> List[str]:
    """Locate clang-format-diff and return the command prefix running it.

    Args:
        environ: Environment to read overrides and PATH from
        strategies: Lookup chain (defaults to the one for this OS)

    Raises:
        ToolNotFoundError: If no strategy finds it
    """
    environ = os.environ if environ is None else environ
    if strategies is None:
        strategies = diff_tool_strategies(environ)

    found = first_match(strategies)
    if found is None:
        raise ToolNotFoundError(
            "clang-format-diff",
            env_var=CLANG_FORMAT_DIFF_ENV,
            install_hint=INSTALL_HINTS.get(platform.system()),
        )
    return command_for(found)


def find_tool(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Locate a helper tool such as ``patch`` or ``colordiff`` on the PATH."""
    environ = os.environ if environ is None else environ
    return PathLookup([name], environ).find()


def require_tool(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Locate a helper tool that must exist.

    Raises:
        ToolNotFoundError: If the tool is not on the PATH
    """
    found = find_tool(name, environ)
    if found is None:
        raise ToolNotFoundError(name)
    return found
