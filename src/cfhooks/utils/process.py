"""Synchronous child-process execution.

Every external tool (git, clang-format, clang-format-diff, patch, colordiff)
is run through :class:`CommandRunner` so that commands are logged in one
place and tests can substitute a fake runner.
"""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from ..exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def format_command(args: Sequence[str]) -> str:
    """Render a command for logs and messages."""
    return " ".join(shlex.quote(str(arg)) for arg in args)


class CommandRunner:
    """Run external commands and capture their output as text."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[PathLike] = None,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        encoding: Optional[str] = None,
        errors: Optional[str] = None,
    ) -> "subprocess.CompletedProcess[str]":
        """Run a command to completion.

        The exit status is not checked; callers decide which statuses are
        failures.

        Args:
            args: Program and arguments
            cwd: Working directory for the child
            input: Text written to the child's stdin
            env: Environment for the child (defaults to the current one)
            encoding: Text encoding of the streams (defaults to the locale's)
            errors: Decoding error handler, as for :func:`open`

        Returns:
            The completed process with captured stdout and stderr

        Raises:
            ToolNotFoundError: If the program does not exist
        """
        command = [str(arg) for arg in args]
        logger.debug("$ %s (cwd=%s)", format_command(command), cwd or ".")
        try:
            result = subprocess.run(
                command,
                cwd=str(cwd) if cwd is not None else None,
                input=input,
                env=dict(env) if env is not None else None,
                capture_output=True,
                text=True,
                encoding=encoding,
                errors=errors,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(Path(command[0]).name, original_error=e)
        logger.debug("exit status %d", result.returncode)
        return result
