"""Configuration for the clang-format hooks.

Settings are read once at startup and frozen into a :class:`HookConfig`
which is passed explicitly to every component.

Sources, highest precedence first:
1. Command line (``--style``)
2. git config (``hooks.clangFormatDiffStyle``, ``hooks.clangFormatDiffInteractive``)
3. Environment (``CLANG_FORMAT_STYLE``)
4. Defaults (style ``file``, interactive)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

from ..exceptions import ConfigurationError
from ..utils.process import CommandRunner

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

STYLE_KEY = "hooks.clangFormatDiffStyle"
INTERACTIVE_KEY = "hooks.clangFormatDiffInteractive"

STYLE_ENV = "CLANG_FORMAT_STYLE"
TTY_ENV = "PRE_COMMIT_HOOK_TTY"

DEFAULT_STYLE = "file"
DEFAULT_TTY = "/dev/tty"

EXCLUDE_FILE_NAME = ".clang-format-hook-exclude"


@dataclass(frozen=True)
class HookConfig:
    """Resolved settings shared by the hook runner and the formatter.

    Attributes:
        style: Value passed to clang-format's ``-style`` option
        interactive: Whether the hook prompts instead of failing
        tty_path: Terminal device the prompt reads answers from
        environ: Environment used for tool, style and terminal lookups
    """
    style: str = DEFAULT_STYLE
    interactive: bool = True
    tty_path: str = DEFAULT_TTY
    environ: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)


def read_git_config(
    key: str,
    cwd: Optional[PathLike] = None,
    runner: Optional[CommandRunner] = None,
    as_bool: bool = False,
) -> Optional[str]:
    """Read a single git config value.

    Args:
        key: Config key, e.g. ``hooks.clangFormatDiffStyle``
        cwd: Directory git runs in
        runner: Command runner used to call git
        as_bool: Ask git to canonicalize the value to ``true``/``false``

    Returns:
        The value, or None if the key is not set

    Raises:
        ConfigurationError: If git cannot read or interpret the value
    """
    runner = runner or CommandRunner()
    args = ["git", "config"]
    if as_bool:
        args.append("--bool")
    args.extend(["--get", key])

    result = runner.run(args, cwd=cwd)
    if result.returncode == 0:
        return result.stdout.strip()
    if result.returncode == 1:
        return None
    raise ConfigurationError(
        f"Could not read git config '{key}': {result.stderr.strip()}",
        config_key=key,
    )


def parse_interactive(value: Optional[str]) -> bool:
    """Interpret the tri-state interactive setting.

    Unset and ``true`` both mean interactive; only an explicit ``false``
    disables the prompt.
    """
    return value != "false"


def validate_style(style: Optional[str]) -> str:
    """Validate a clang-format style value.

    Raises:
        ConfigurationError: If the style is empty or looks like an option
    """
    if style is None or not style.strip():
        raise ConfigurationError(
            "The clang-format style cannot be empty.",
            config_key=STYLE_KEY,
            suggested_fix=f"Use a style such as 'file', 'LLVM' or 'Google', for instance:\n"
                          f"    git config {STYLE_KEY} file",
        )
    style = style.strip()
    if style.startswith("-"):
        raise ConfigurationError(
            f"Invalid clang-format style '{style}'.",
            config_key=STYLE_KEY,
            suggested_fix="The style looks like a command line option; did you forget its value?",
        )
    return style


def load_config(
    cwd: Optional[PathLike] = None,
    environ: Optional[Mapping[str, str]] = None,
    style_override: Optional[str] = None,
    runner: Optional[CommandRunner] = None,
) -> HookConfig:
    """Assemble the configuration from all sources.

    Args:
        cwd: Directory git config is read in
        environ: Environment to read (defaults to ``os.environ``)
        style_override: Style given on the command line
        runner: Command runner used to call git

    Returns:
        The frozen configuration

    Raises:
        ConfigurationError: If a value is invalid
    """
    runner = runner or CommandRunner()
    env = dict(os.environ if environ is None else environ)

    if style_override is not None:
        style = style_override
    else:
        style = read_git_config(STYLE_KEY, cwd, runner)
        if style is None:
            style = env.get(STYLE_ENV, DEFAULT_STYLE)

    interactive = parse_interactive(read_git_config(INTERACTIVE_KEY, cwd, runner, as_bool=True))

    config = HookConfig(
        style=validate_style(style),
        interactive=interactive,
        tty_path=env.get(TTY_ENV) or DEFAULT_TTY,
        environ=env,
    )
    logger.debug("configuration: %s", config)
    return config


def load_exclusions(root: PathLike) -> Tuple[str, ...]:
    """Read the exclusion patterns of a repository.

    The file holds one regular expression per line; blank lines and lines
    starting with ``#`` are ignored.

    Args:
        root: Repository root holding ``.clang-format-hook-exclude``

    Returns:
        The patterns in file order (empty if the file does not exist)
    """
    exclude_file = Path(root) / EXCLUDE_FILE_NAME
    if not exclude_file.is_file():
        return ()

    patterns = []
    for line in exclude_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)

    logger.debug("loaded %d exclusion patterns from %s", len(patterns), exclude_file)
    return tuple(patterns)
