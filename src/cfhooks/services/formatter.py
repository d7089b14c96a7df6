"""Invocation of clang-format and clang-format-diff.

Diff mode pipes ``git diff`` into clang-format-diff so only changed lines are
reformatted. The patch clang-format-diff prints uses bare paths (no ``a/`` or
``b/`` prefix), so it is applied with ``-p0``.
"""

import difflib
import io
import logging
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from ..exceptions import (
    ExternalToolError,
    IndexApplyError,
    InvalidArgumentError,
    WorkingTreeApplyError,
)
from ..settings.config import HookConfig
from ..utils.process import CommandRunner, format_command
from .tool_discovery import find_clang_format, find_clang_format_diff, require_tool

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SOURCE_EXTENSIONS = (
    "c", "cc", "cpp", "cxx", "c++",
    "h", "hh", "hpp", "hxx", "inc",
    "m", "mm",
    "java", "js", "ts", "proto",
)

WHOLE_FILE_STYLE = "file"

PATCH_FILE_NAME = "clang-format.patch"

# Bytes that are not valid UTF-8 survive as surrogate escapes
SOURCE_ENCODING = "utf-8"

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


@dataclass
class FormatResult:
    """Output of a formatting run.

    Attributes:
        patch: Unified diff of the suggested changes (empty when clean or
            when the changes were written in place)
        exit_code: 0 when there is nothing to change, 1 when a diff was found
    """
    patch: str
    exit_code: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.patch.strip())


def build_include_regex(exclusions: Sequence[str] = ()) -> str:
    """Build the ``-iregex`` value selecting the files to format.

    Each exclusion becomes a negative lookahead placed before the match on
    source file extensions. clang-format-diff matches the regex from the
    start of the path, so lookaheads apply to path prefixes.
    """
    lookaheads = "".join(f"(?!{pattern})" for pattern in exclusions)
    extensions = "|".join(re.escape(extension) for extension in SOURCE_EXTENSIONS)
    return f"{lookaheads}.*\\.({extensions})"


def git_diff_command(staged: bool = False, git_args: Sequence[str] = ()) -> List[str]:
    """Build the ``git diff`` command feeding clang-format-diff."""
    command = [
        "git", "diff",
        "-U0",
        "--no-color",
        "--no-ext-diff",
        "--src-prefix=a/",
        "--dst-prefix=b/",
        "--relative",
    ]
    if staged:
        command.append("--cached")
    command.extend(git_args)
    return command


def diff_tool_command(
    diff_tool: Sequence[str],
    clang_format: str,
    style: str,
    include_regex: str,
    in_place: bool = False,
) -> List[str]:
    """Build the clang-format-diff command."""
    command = [
        *diff_tool,
        "-p1",
        f"-style={style}",
        f"-binary={clang_format}",
        f"-iregex={include_regex}",
    ]
    if in_place:
        command.append("-i")
    return command


def _lines(text: str) -> List[str]:
    return io.StringIO(text, newline="\n").readlines()


def _file_diff(original: str, formatted: str, path: str) -> Iterator[str]:
    """Unified diff of one file, marking a missing final newline the way diff does."""
    for line in difflib.unified_diff(
        _lines(original),
        _lines(formatted),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    ):
        if line.endswith("\n"):
            yield line
        else:
            yield line + "\n"
            yield NO_NEWLINE_MARKER


class FormatterInvoker:
    """Runs the formatters for one working directory.

    Tools are located on first use, so a missing tool is reported before any
    git command runs.
    """

    def __init__(self, config: HookConfig, runner: Optional[CommandRunner] = None,
                 cwd: Optional[PathLike] = None):
        self.config = config
        self.runner = runner or CommandRunner()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self._clang_format: Optional[str] = None
        self._diff_tool: Optional[List[str]] = None

    @property
    def clang_format(self) -> str:
        if self._clang_format is None:
            self._clang_format = find_clang_format(self.config.environ)
        return self._clang_format

    @property
    def diff_tool(self) -> List[str]:
        if self._diff_tool is None:
            self._diff_tool = find_clang_format_diff(self.config.environ)
        return self._diff_tool

    def format_diff(
        self,
        staged: bool = False,
        in_place: bool = False,
        exclusions: Sequence[str] = (),
        git_args: Sequence[str] = (),
    ) -> FormatResult:
        """Format the lines changed in ``git diff``.

        Args:
            staged: Only consider changes in the index
            in_place: Let clang-format-diff rewrite the files
            exclusions: Path regexes to leave alone
            git_args: Extra ``git diff`` arguments (revisions, paths)

        Returns:
            The suggested patch and clang-format-diff's exit status

        Raises:
            ToolNotFoundError: If a formatter cannot be found
            ExternalToolError: If git diff fails or clang-format-diff exits
                with a status greater than 1
        """
        diff_tool = self.diff_tool
        clang_format = self.clang_format

        diff = self.runner.run(git_diff_command(staged, git_args), cwd=self.cwd)
        if diff.returncode != 0:
            raise ExternalToolError(
                f"git diff failed with exit status {diff.returncode}.",
                tool_name="git",
                exit_code=diff.returncode,
                stderr=diff.stderr,
            )
        if not diff.stdout.strip():
            logger.debug("no changes to format")
            return FormatResult("", 0)

        command = diff_tool_command(
            diff_tool,
            clang_format,
            self.config.style,
            build_include_regex(exclusions),
            in_place=in_place,
        )
        result = self.runner.run(command, cwd=self.cwd, input=diff.stdout)
        if result.returncode > 1:
            raise ExternalToolError(
                f"{format_command(diff_tool)} failed with exit status {result.returncode}.",
                tool_name="clang-format-diff",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return FormatResult(result.stdout, result.returncode)

    def format_whole_files(self, paths: Sequence[str], in_place: bool = False) -> FormatResult:
        """Format complete files with clang-format.

        Without ``in_place`` a unified diff between each file and its
        formatted version is returned. Files are read as UTF-8; other bytes are
        carried through unchanged as surrogate escapes.

        Raises:
            InvalidArgumentError: If no file is given
            ExternalToolError: If clang-format fails
        """
        if not paths:
            raise InvalidArgumentError("--whole-file requires at least one file.", argument_name="paths")

        clang_format = self.clang_format
        base_command = [clang_format, f"-style={WHOLE_FILE_STYLE}"]

        if in_place:
            self._run_clang_format([*base_command, "-i", *paths])
            return FormatResult("", 0)

        chunks: List[str] = []
        for path in paths:
            formatted = self._run_clang_format(
                [*base_command, path],
                encoding=SOURCE_ENCODING,
                errors="surrogateescape",
            )
            original = (self.cwd / path).read_text(encoding=SOURCE_ENCODING, errors="surrogateescape")
            chunks.extend(_file_diff(original, formatted, path))
        patch = "".join(chunks)
        return FormatResult(patch, 1 if patch else 0)

    def _run_clang_format(self, command: List[str], **kwargs) -> str:
        result = self.runner.run(command, cwd=self.cwd, **kwargs)
        if result.returncode != 0:
            raise ExternalToolError(
                f"clang-format failed with exit status {result.returncode}.",
                tool_name="clang-format",
                exit_code=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout

    def apply_to_staged(
        self,
        exclusions: Sequence[str] = (),
        git_args: Sequence[str] = (),
    ) -> FormatResult:
        """Reformat the staged changes both on disk and in the index.

        Returns:
            The patch that was applied (empty if nothing needed formatting)

        Raises:
            WorkingTreeApplyError: If the patch does not apply to the files
            IndexApplyError: If the patch does not apply to the index
        """
        result = self.format_diff(staged=True, exclusions=exclusions, git_args=git_args)
        if result.has_changes:
            self.apply_patch(result.patch)
        return result

    def apply_patch(self, patch: str) -> None:
        """Apply a clang-format-diff patch to the working tree, then the index.

        The patch is written to a private temporary file that is removed
        when this returns or raises.
        """
        with tempfile.TemporaryDirectory(prefix="cfhooks-") as temp_dir:
            patch_file = Path(temp_dir) / PATCH_FILE_NAME
            patch_file.write_text(patch, encoding="utf-8")
            self.apply_patch_file(patch_file)

    def apply_patch_file(self, patch_file: Path) -> None:
        """Apply a patch file to the working tree, then the index."""
        patch_tool = require_tool("patch", self.config.environ)

        result = self.runner.run(
            [patch_tool, "-p0", "--quiet", f"--input={patch_file}"],
            cwd=self.cwd,
        )
        if result.returncode != 0:
            raise WorkingTreeApplyError(patch_file, details=(result.stdout + result.stderr).strip())

        result = self.runner.run(
            ["git", "apply", "-p0", "--cached", str(patch_file)],
            cwd=self.cwd,
        )
        if result.returncode != 0:
            raise IndexApplyError(patch_file, details=result.stderr.strip())
        logger.debug("applied %s to the working tree and the index", patch_file)
