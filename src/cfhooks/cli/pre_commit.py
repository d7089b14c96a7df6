"""git-pre-commit-format: install, uninstall or run the pre-commit hook."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Mapping, NoReturn, Optional

from ..exceptions import NotInvokedAsHookError
from ..git.repository import find_repository_root, show_toplevel
from ..services.formatter import FormatterInvoker
from ..services.hook_installer import HookInstaller
from ..services.prompt import PreCommitSession
from ..settings.config import load_config, load_exclusions
from .argument_parser import HOOK_PROGRAM, parse_hook_args
from .main import run

logger = logging.getLogger(__name__)

# git在运行钩子时至少导出其中一个变量
HOOK_ENVIRONMENT = ("GIT_DIR", "GIT_INDEX_FILE")


def _installer(script_path: Path, cwd: Optional[Path]) -> HookInstaller:
    return HookInstaller(find_repository_root(cwd), script_path)


def install_hook(script_path: Path, cwd: Optional[Path] = None) -> int:
    hook = _installer(script_path, cwd).install()
    print(f"Pre-commit hook installed in '{hook}'.")
    return 0


def uninstall_hook(script_path: Path, cwd: Optional[Path] = None) -> int:
    hook = _installer(script_path, cwd).uninstall()
    print(f"Pre-commit hook '{hook}' removed.")
    return 0


def run_hook(cwd: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """检查正在创建的提交中已暂存的更改。

    Raises:
        NotInvokedAsHookError: 本程序不是由git调用的
    """
    environ = os.environ if environ is None else environ
    if not any(environ.get(name) for name in HOOK_ENVIRONMENT):
        raise NotInvokedAsHookError(HOOK_PROGRAM)

    cwd = cwd or Path.cwd()
    logger.debug("running as pre-commit hook in %s", cwd)
    config = load_config(cwd, environ)
    exclusions = load_exclusions(show_toplevel(cwd))
    session = PreCommitSession(config, FormatterInvoker(config, cwd=cwd), cwd=cwd)
    return session.run(exclusions)


def execute_pre_commit(argv: List[str], script_path: Path, cwd: Optional[Path] = None,
                       environ: Optional[Mapping[str, str]] = None) -> int:
    """根据可选的动作分派命令。

    Args:
        argv: 不含程序名的参数列表
        script_path: 当前脚本的路径，即钩子链接的目标
        cwd: 工作目录（默认为当前目录）
        environ: 环境变量（默认为 ``os.environ``）

    Returns:
        程序的退出状态
    """
    args = parse_hook_args(argv)
    if args.action == "install":
        return install_hook(script_path, cwd)
    if args.action == "uninstall":
        return uninstall_hook(script_path, cwd)
    return run_hook(cwd, environ)


def main() -> NoReturn:
    """控制台脚本入口。"""
    script_path = Path(sys.argv[0]).resolve()
    run(HOOK_PROGRAM, lambda: execute_pre_commit(sys.argv[1:], script_path))


if __name__ == "__main__":
    main()
