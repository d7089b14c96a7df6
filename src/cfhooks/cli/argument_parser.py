"""CLI argument parsers for the cfhooks commands.

Supported commands:
- git-pre-commit-format: install, uninstall or run the pre-commit hook
- apply-format: format changed lines or whole files with clang-format

Usage:
    from cfhooks.cli.argument_parser import parse_apply_format_args

    args = parse_apply_format_args(["--staged", "-i"])
    print(args.staged, args.in_place)
"""

import argparse
from typing import List, NoReturn, Optional, Sequence

from ..exceptions import InvalidArgumentError
from ..types.enums import FormatMode

HOOK_PROGRAM = "git-pre-commit-format"
APPLY_FORMAT_PROGRAM = "apply-format"

HOOK_ACTIONS = ["install", "uninstall"]

HELP_OPTIONS = ["-h", "-?", "--help"]


class ArgumentParser(argparse.ArgumentParser):
    """把用法错误报告为 :class:`InvalidArgumentError` 的ArgumentParser。"""

    def error(self, message: str) -> NoReturn:
        raise InvalidArgumentError(
            message,
            suggested_fix=f"Run '{self.prog} --help' for usage.",
        )


def create_hook_parser() -> ArgumentParser:
    """创建git-pre-commit-format的参数解析器。"""
    parser = ArgumentParser(
        prog=HOOK_PROGRAM,
        description="Check that staged C, C++ and related sources are formatted with "
                    "clang-format before each commit.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
With no action the program behaves as a pre-commit hook and must be run by git.

Configuration:
  git config hooks.clangFormatDiffInteractive false
      Fail the commit instead of asking whether to apply the patch.
  git config hooks.clangFormatDiffStyle STYLE
      clang-format style to use (default: file).

Files listed in .clang-format-hook-exclude (one regex per line) are skipped.
""",
    )
    parser.add_argument(
        "action",
        nargs="?",
        choices=HOOK_ACTIONS,
        help="Install or uninstall the pre-commit hook of the current repository",
    )
    return parser


def create_apply_format_parser() -> ArgumentParser:
    """创建apply-format的参数解析器。"""
    parser = ArgumentParser(
        prog=APPLY_FORMAT_PROGRAM,
        description="Reformat the lines changed in git diff, or whole files, with clang-format.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
examples:
  # show how the unstaged changes should be formatted
  apply-format

  # reformat the staged changes on disk and in the index
  apply-format --apply-to-staged

  # reformat the changes since a revision
  apply-format -i HEAD~1

  # reformat complete files
  apply-format -f -i src/main.cpp

Arguments after -- are passed to git diff unchanged.
""",
    )
    parser.add_argument(
        *HELP_OPTIONS,
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit",
    )
    parser.add_argument(
        "-f", "--whole-file",
        action="store_true",
        help="Format complete files instead of changed lines",
    )
    parser.add_argument(
        "--staged", "--cached",
        dest="staged",
        action="store_true",
        help="Only consider the staged changes",
    )
    parser.add_argument(
        "-i",
        dest="in_place",
        action="store_true",
        help="Rewrite the files instead of printing a patch",
    )
    parser.add_argument(
        "--apply-to-staged",
        action="store_true",
        help="Reformat the staged changes both on disk and in the index",
    )
    parser.add_argument(
        "--style",
        help="clang-format style (default: git config hooks.clangFormatDiffStyle, "
             "$CLANG_FORMAT_STYLE, or file)",
    )
    parser.add_argument(
        "--internal-opt-ignore-regex",
        dest="ignore_regex",
        action="append",
        default=[],
        metavar="PATTERN",
        help=argparse.SUPPRESS,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="ARG",
        help="Files (with --whole-file) or git diff arguments",
    )
    return parser


def _validate_apply_format_arguments(args: argparse.Namespace) -> None:
    """检查选项组合。

    Raises:
        InvalidArgumentError: 选项冲突或缺少必需的路径
    """
    if args.whole_file:
        if args.staged or args.apply_to_staged:
            raise InvalidArgumentError(
                "--whole-file cannot be combined with --staged or --apply-to-staged.",
                argument_name="whole_file",
            )
        if args.git_args:
            raise InvalidArgumentError(
                "-- cannot be used with --whole-file.",
                argument_name="whole_file",
            )
        if not args.paths:
            raise InvalidArgumentError(
                "--whole-file requires at least one file.",
                argument_name="paths",
                suggested_fix=f"Example:\n    {APPLY_FORMAT_PROGRAM} --whole-file -i src/main.cpp",
            )


def _format_mode(args: argparse.Namespace) -> FormatMode:
    if args.whole_file:
        return FormatMode.WHOLE_FILE
    if args.apply_to_staged:
        return FormatMode.APPLY_TO_STAGED
    return FormatMode.DIFF


def parse_apply_format_args(argv: Sequence[str]) -> argparse.Namespace:
    """解析apply-format的参数。

    第一个 ``--`` 之后的参数（包括分隔符本身）单独保存，
    原样传给 ``git diff``。

    Args:
        argv: 不含程序名的参数列表

    Returns:
        设置了 ``mode``、``paths`` 和 ``git_args`` 的Namespace

    Raises:
        InvalidArgumentError: 参数无效
    """
    argv = list(argv)
    git_args: List[str] = []
    if "--" in argv:
        separator = argv.index("--")
        argv, git_args = argv[:separator], argv[separator:]

    args = create_apply_format_parser().parse_args(argv)
    args.git_args = git_args
    _validate_apply_format_arguments(args)
    args.mode = _format_mode(args)
    return args


def parse_hook_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """解析git-pre-commit-format的参数。

    Raises:
        InvalidArgumentError: 未知的动作
    """
    return create_hook_parser().parse_args(list(argv) if argv is not None else None)
