"""The pre-commit formatting check and its interactive prompt.

Flow of a hook run::

    Start -> ComputeDiff -> Clean  (exit 0)
                         -> Dirty  -> non-interactive: remediation, exit 1
                                   -> interactive: prompt loop

The prompt loop reads single characters from the terminal device (git hooks
have no usable stdin) until one of the terminal answers is given:

- ``a`` apply the patch to the working tree and the index, exit 0
- ``f`` commit anyway, exit 0
- ``c`` cancel the commit, exit 1
- ``?`` show help and ask again; anything else asks again
"""

import logging
import shlex
import sys
import tempfile
import termios
import tty
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Sequence, TextIO, Union

from ..exceptions import CommitCancelledError, TerminalUnavailableError
from ..git.repository import is_merge_in_progress
from ..settings.config import HookConfig
from ..types.enums import PromptAnswer
from ..utils.process import CommandRunner
from .formatter import PATCH_FILE_NAME, FormatterInvoker
from .tool_discovery import find_tool

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

APPLY_FORMAT_PROGRAM = "apply-format"

HELP_TEXT = """\
  a: apply the patch to the staged changes and to the files on disk, then commit
  f: force the commit without applying the patch
  c: cancel the commit
  ?: show this help
"""


@contextmanager
def open_terminal(path: str) -> Iterator[BinaryIO]:
    """Open the terminal device for unbuffered single-character reads.

    A real terminal is switched to cbreak mode so answers do not need Enter;
    its settings are restored on exit. Regular files (used in tests) are
    read as they are.

    Raises:
        TerminalUnavailableError: If the device cannot be opened
    """
    try:
        stream = open(path, "rb", buffering=0)
    except OSError as e:
        raise TerminalUnavailableError(path, details=e.strerror, original_error=e)

    with stream:
        if not stream.isatty():
            yield stream
            return
        fd = stream.fileno()
        saved = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        try:
            yield stream
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class PreCommitSession:
    """One run of the pre-commit hook."""

    def __init__(
        self,
        config: HookConfig,
        invoker: FormatterInvoker,
        runner: Optional[CommandRunner] = None,
        cwd: Optional[PathLike] = None,
        out: Optional[TextIO] = None,
    ):
        self.config = config
        self.invoker = invoker
        self.runner = runner or CommandRunner()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.out = out or sys.stdout

    def _print(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, file=self.out, flush=True)

    def run(self, exclusions: Sequence[str] = ()) -> int:
        """Check the staged changes and dispose of any formatting patch.

        Returns:
            0 when the commit may proceed, 1 when it must be stopped

        Raises:
            CommitCancelledError: If the user cancels from the prompt
        """
        result = self.invoker.format_diff(staged=True, exclusions=exclusions)
        if not result.has_changes:
            self._print("The staged content is formatted correctly.")
            return 0

        with tempfile.TemporaryDirectory(prefix="cfhooks-") as temp_dir:
            patch_file = Path(temp_dir) / PATCH_FILE_NAME
            patch_file.write_text(result.patch, encoding="utf-8")

            self._print("The staged content is not formatted correctly.")
            self._print("The fix shown below can be applied automatically to the commit.")
            self._print()
            self.display_patch(result.patch)
            self._print()

            if not self.config.interactive:
                self._print_remediation(exclusions)
                return 1

            merging = is_merge_in_progress(self.cwd, self.runner)
            return self.prompt(patch_file, merging)

    def display_patch(self, patch: str) -> None:
        """Show the patch, coloured through colordiff when it is installed."""
        colordiff = find_tool("colordiff", self.config.environ)
        if colordiff:
            colored = self.runner.run([colordiff], cwd=self.cwd, input=patch)
            if colored.stdout:
                self._print(colored.stdout, end="")
                return
        self._print("(Install colordiff to see this diff in color!)")
        self._print()
        self._print(patch, end="")

    def _print_remediation(self, exclusions: Sequence[str]) -> None:
        command = [APPLY_FORMAT_PROGRAM, "--apply-to-staged"]
        command.extend(f"--internal-opt-ignore-regex={pattern}" for pattern in exclusions)
        self._print("You can apply these changes and commit again with:")
        self._print(f"    {shlex.join(command)} && git commit")
        self._print()
        self._print("To commit without formatting (not recommended) use:")
        self._print("    git commit --no-verify")

    def prompt(self, patch_file: Path, merging: bool) -> int:
        """Ask the user what to do with the patch until a decision is made."""
        with open_terminal(self.config.tty_path) as terminal:
            if merging:
                self._print("You are in the middle of a merge. The formatting problems shown above")
                self._print("may come from the merged branch rather than from your changes, so")
                self._print("forcing the commit is usually the right choice.")
                recommended = PromptAnswer.FORCE
            else:
                recommended = PromptAnswer.APPLY
            self._print()

            while True:
                self._print(
                    "Do you want to apply that patch "
                    f"(recommended: {recommended.name.lower()})? "
                    "[a]pply / [f]orce / [c]ancel / [?] help: ",
                    end="",
                )
                answer = self._read_answer(terminal)
                logger.debug("prompt answer: %s", answer.name)

                if answer.is_terminal:
                    break
                if answer is PromptAnswer.HELP:
                    self._print(HELP_TEXT, end="")
                else:
                    self._print("Invalid answer.")

            if answer is PromptAnswer.CANCEL:
                raise CommitCancelledError()
            if answer is PromptAnswer.APPLY:
                self.invoker.apply_patch_file(patch_file)
                self._print("The patch was applied to the staged changes and to the files on disk.")
            else:
                self._print("Committing without applying the formatting patch.")
            if merging:
                self._pause(terminal)
            return 0

    def _read_char(self, terminal: BinaryIO) -> str:
        """Read one character, skipping line breaks.

        Raises:
            CommitCancelledError: If the terminal reaches end of input
        """
        while True:
            data = terminal.read(1)
            if not data:
                self._print()
                raise CommitCancelledError(
                    f"No answer could be read from '{self.config.tty_path}'; commit aborted."
                )
            char = data.decode("utf-8", errors="replace")
            if char not in ("\n", "\r"):
                return char

    def _read_answer(self, terminal: BinaryIO) -> PromptAnswer:
        char = self._read_char(terminal)
        self._print(char)
        return PromptAnswer.from_char(char)

    def _pause(self, terminal: BinaryIO) -> None:
        self._print("Press any key to continue with the merge commit.", end="")
        data = terminal.read(1)
        self._print()
        if not data:
            logger.debug("end of input while pausing")
