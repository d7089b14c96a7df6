"""Shared runtime of the cfhooks command line programs.

This module configures logging, installs the signal handlers and runs a
command function with unified error handling, so that both console scripts
report failures the same way:

- CFHooksError: message and suggested fix on stderr, exit status 1
- ExternalToolError with a status above 1: that status is forwarded
- KeyboardInterrupt: exit status 130
"""

import logging
import os
import signal
import sys
import time
from typing import Any, Callable, NoReturn

import psutil

from ..exceptions import CFHooksError, ExternalToolError

# 全局配置
PERFORMANCE_THRESHOLD_MS = 2000
DEBUG_MODE = os.getenv("CFHOOKS_DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("CFHOOKS_LOG_LEVEL", "DEBUG" if DEBUG_MODE else "WARNING").upper()

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """根据CFHOOKS_DEBUG和CFHOOKS_LOG_LEVEL配置根日志记录器。"""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s" if DEBUG_MODE else "%(message)s",
    )


def _setup_signal_handlers() -> None:
    """把SIGINT和SIGTERM转换为SystemExit，使临时文件得以清理。"""
    def signal_handler(signum: int, frame: Any) -> None:
        logger.debug("received signal %d", signum)
        print("\n\nInterrupted.", file=sys.stderr)
        sys.exit(130)

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)


class PerformanceMonitor:
    """记录命令的执行时间，调试模式下同时记录内存增长。"""

    def __init__(self, command: str):
        self.command = command
        self.start_time = time.perf_counter()
        self.memory_start = None
        if DEBUG_MODE:
            self.memory_start = self._rss_mb()

    @staticmethod
    def _rss_mb() -> float:
        return psutil.Process().memory_info().rss / 1024 / 1024

    def __enter__(self) -> "PerformanceMonitor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        if elapsed_ms > PERFORMANCE_THRESHOLD_MS:
            logger.info("%s took %.0fms", self.command, elapsed_ms)
        elif DEBUG_MODE:
            logger.debug("%s took %.2fms", self.command, elapsed_ms)

        if self.memory_start is not None:
            memory_end = self._rss_mb()
            logger.debug(
                "%s memory: %+.1fMB (start: %.1fMB, end: %.1fMB)",
                self.command, memory_end - self.memory_start, self.memory_start, memory_end,
            )


def _format_error_message(error: CFHooksError) -> str:
    """格式化输出到stderr的错误消息，调试模式下附带详情。"""
    message = error.get_user_message()
    if DEBUG_MODE:
        message += f"\n\n[{error.error_code} {error.error_id}] context: {error.context}"
    return message


def execute_command_safely(command_name: str, command_func: Callable[[], int]) -> int:
    """执行命令函数，并把失败映射为退出状态。

    Args:
        command_name: Name used in logs
        command_func: Function returning the exit status

    Returns:
        The exit status of the program
    """
    try:
        with PerformanceMonitor(command_name):
            return command_func()
    except KeyboardInterrupt:
        logger.debug("%s interrupted by the user", command_name)
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except ExternalToolError as e:
        logger.debug("%s failed: %s", command_name, e.get_full_details())
        print(_format_error_message(e), file=sys.stderr)
        if e.exit_code is not None and e.exit_code > 1:
            return e.exit_code
        return 1
    except CFHooksError as e:
        logger.debug("%s failed: %s", command_name, e.get_full_details())
        print(_format_error_message(e), file=sys.stderr)
        return 1


def run(command_name: str, command_func: Callable[[], int]) -> NoReturn:
    """所有控制台脚本共用的入口。"""
    configure_logging()
    _setup_signal_handlers()
    sys.exit(execute_command_safely(command_name, command_func))
