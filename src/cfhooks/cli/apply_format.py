"""apply-format: reformat changed lines or whole files with clang-format."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from ..services.formatter import SOURCE_ENCODING, FormatterInvoker
from ..settings.config import HookConfig, load_config
from ..types.enums import FormatMode
from .argument_parser import APPLY_FORMAT_PROGRAM, parse_apply_format_args
from .main import run

logger = logging.getLogger(__name__)


def _write_patch(patch: str) -> None:
    """把补丁写到标准输出，源文件中无法解码的字节按原样输出。"""
    sys.stdout.flush()
    sys.stdout.buffer.write(patch.encode(SOURCE_ENCODING, "surrogateescape"))
    sys.stdout.buffer.flush()


def _apply_to_staged(invoker: FormatterInvoker, args: argparse.Namespace) -> int:
    result = invoker.apply_to_staged(
        exclusions=args.ignore_regex,
        git_args=[*args.paths, *args.git_args],
    )
    if result.has_changes:
        print("The staged changes were reformatted on disk and in the index.")
    else:
        print("The staged changes are already formatted correctly.")
    return 0


def execute_apply_format(argv: List[str], cwd: Optional[Path] = None) -> int:
    """执行apply-format命令。

    Args:
        argv: 不含程序名的参数列表
        cwd: 工作目录（默认为当前目录）

    Returns:
        无需格式化或文件已被改写时为0，输出了补丁时为1，
        clang-format-diff失败时为其退出状态
    """
    args = parse_apply_format_args(argv)
    cwd = cwd or Path.cwd()
    logger.debug("apply-format mode=%s args=%s", args.mode.value, vars(args))

    if args.mode is FormatMode.WHOLE_FILE:
        # 整个文件总是使用.clang-format中的风格
        config = HookConfig(environ=dict(os.environ))
        result = FormatterInvoker(config, cwd=cwd).format_whole_files(args.paths, args.in_place)
        _write_patch(result.patch)
        return result.exit_code

    config = load_config(cwd, style_override=args.style)
    invoker = FormatterInvoker(config, cwd=cwd)

    if args.mode is FormatMode.APPLY_TO_STAGED:
        return _apply_to_staged(invoker, args)

    result = invoker.format_diff(
        staged=args.staged,
        in_place=args.in_place,
        exclusions=args.ignore_regex,
        git_args=[*args.paths, *args.git_args],
    )
    print(result.patch, end="")
    return result.exit_code


def main() -> NoReturn:
    """控制台脚本入口。"""
    run(APPLY_FORMAT_PROGRAM, lambda: execute_apply_format(sys.argv[1:]))


if __name__ == "__main__":
    main()
