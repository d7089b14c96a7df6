"""clang-format钩子的异常模块，为所有命令提供统一的错误处理。

所有cfhooks异常都继承自 :class:`CFHooksError`，携带面向用户的消息、
标准化的错误代码、修复建议以及在git钩子中解释失败所需的上下文。

异常分类：
- 用户错误：选项错误、配置错误、钩子安装状态问题
- 系统错误：不在仓库中、未作为钩子运行、缺少工具
- 外部依赖错误：补丁应用失败、外部工具失败
"""

import os
import sys
import traceback
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import psutil


class ErrorSeverity(Enum):
    """错误严重程度枚举。"""
    LOW = "low"               # 提示信息，无需修复
    MEDIUM = "medium"         # 一般错误，用户可修复
    HIGH = "high"             # 需要修复运行环境
    CRITICAL = "critical"     # 仓库状态可能不一致


class ErrorCategory(Enum):
    """错误分类枚举。"""
    USER = "user"             # 用户操作错误
    SYSTEM = "system"         # 系统环境错误
    INTERNAL = "internal"     # 程序内部错误
    EXTERNAL = "external"     # 外部工具错误


class ErrorRecoveryAction(Enum):
    """错误恢复动作枚举。"""
    RETRY = "retry"           # 重试操作
    SKIP = "skip"             # 跳过当前操作
    ABORT = "abort"           # 中止整个流程
    MANUAL = "manual"         # 需要手动干预


class CFHooksError(Exception):
    """cfhooks的基础异常类。

    属性:
        message: 面向用户的错误消息
        error_code: 标准化错误代码 (CATEGORY_SPECIFIC_CODE)
        suggested_fix: 显示在消息下方的修复建议
        context: 错误上下文信息
        original_error: 被包装的原始异常
        severity: 错误严重程度
        category: 错误分类
        recovery_actions: 建议的恢复动作
        error_id: 本次错误的短标识
        timestamp: 错误发生时间
        debug_info: 解释器、平台和进程信息
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        suggested_fix: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
        severity: Union[str, ErrorSeverity] = ErrorSeverity.MEDIUM,
        category: Union[str, ErrorCategory] = ErrorCategory.INTERNAL,
        recovery_actions: Optional[List[ErrorRecoveryAction]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.suggested_fix = suggested_fix
        self.context = context or {}
        self.original_error = original_error

        self.severity = severity if isinstance(severity, ErrorSeverity) else ErrorSeverity(severity)
        self.category = category if isinstance(category, ErrorCategory) else ErrorCategory(category)
        self.recovery_actions = recovery_actions or []

        self.error_id = str(uuid.uuid4())[:8]
        self.timestamp = datetime.now()
        self.debug_info = self._collect_debug_info()

    def _collect_debug_info(self) -> Dict[str, Any]:
        """收集调试信息。"""
        return {
            "python_version": sys.version,
            "platform": sys.platform,
            "cwd": str(Path.cwd()),
            "environment_vars": {
                "GIT_DIR": os.getenv("GIT_DIR"),
                "GIT_INDEX_FILE": os.getenv("GIT_INDEX_FILE"),
                "CLANG_FORMAT": os.getenv("CLANG_FORMAT"),
                "CLANG_FORMAT_DIFF": os.getenv("CLANG_FORMAT_DIFF"),
            },
            "traceback": traceback.format_exc() if self.original_error else None,
            "context_keys": list(self.context.keys()),
            "memory_usage": self._get_memory_usage(),
            "process_id": os.getpid(),
        }

    def _get_memory_usage(self) -> str:
        """获取当前进程的常驻内存。"""
        try:
            process = psutil.Process()
            return f"{process.memory_info().rss / 1024 / 1024:.1f}MB"
        except psutil.Error:
            return "unknown"

    def get_user_message(self) -> str:
        """获取输出到stderr的用户消息。"""
        user_msg = f"error: {self.message}"
        if self.suggested_fix:
            user_msg += f"\n\n{self.suggested_fix}"
        return user_msg

    def get_full_details(self) -> Dict[str, Any]:
        """获取完整的错误详情，用于调试和问题报告。"""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "suggested_fix": self.suggested_fix,
            "recovery_actions": [action.value for action in self.recovery_actions],
            "context": self.context,
            "debug_info": self.debug_info,
            "original_error": str(self.original_error) if self.original_error else None,
        }


# ===== 用户错误 =====

class UserError(CFHooksError):
    """用户可以直接纠正的错误的基类。"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.USER)
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.RETRY])
        super().__init__(message, **kwargs)


class ConfigurationError(UserError):
    """配置值无效（格式风格、git配置项）。"""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        self.config_key = config_key
        kwargs.setdefault("error_code", "USER_CONFIG_INVALID")
        if config_key:
            kwargs.setdefault("suggested_fix", f"Check the value of '{config_key}'.")
            kwargs.setdefault("context", {})["config_key"] = config_key
        super().__init__(message, **kwargs)


class InvalidArgumentError(UserError):
    """命令行选项无效或互相冲突。"""

    def __init__(self, message: str, argument_name: Optional[str] = None, **kwargs):
        self.argument_name = argument_name
        kwargs.setdefault("error_code", "USER_INVALID_ARGUMENT")
        kwargs.setdefault("suggested_fix", "Use --help to see the supported options.")
        if argument_name:
            kwargs.setdefault("context", {})["argument_name"] = argument_name
        super().__init__(message, **kwargs)


class HookError(UserError):
    """pre-commit钩子安装状态错误的基类。"""

    def __init__(self, message: str, hook_path: Optional[Path] = None, **kwargs):
        self.hook_path = hook_path
        kwargs.setdefault("error_code", "USER_HOOK_ERROR")
        if hook_path:
            kwargs.setdefault("context", {})["hook_path"] = str(hook_path)
        super().__init__(message, **kwargs)


class HookAlreadyInstalledError(HookError):
    """钩子已安装并指向本脚本。"""

    def __init__(self, hook_path: Path, **kwargs):
        kwargs.setdefault("error_code", "USER_HOOK_ALREADY_INSTALLED")
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.SKIP])
        super().__init__(f"The hook is already installed at '{hook_path}'.", hook_path, **kwargs)


class ForeignHookError(HookError):
    """存在一个不由本脚本管理的pre-commit钩子。"""

    def __init__(self, hook_path: Path, operation: str = "install", **kwargs):
        self.operation = operation
        kwargs.setdefault("error_code", "USER_FOREIGN_HOOK")
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        if operation == "install":
            message = f"A different pre-commit hook is already installed at '{hook_path}'."
            fix = "Remove or rename the existing hook, then run the install command again."
        else:
            message = f"The pre-commit hook at '{hook_path}' was not installed by this script."
            fix = "The hook was left untouched. Remove it manually if you no longer need it."
        kwargs.setdefault("suggested_fix", fix)
        super().__init__(message, hook_path, **kwargs)


class NoHookInstalledError(HookError):
    """请求卸载但钩子不存在。"""

    def __init__(self, hook_path: Path, **kwargs):
        kwargs.setdefault("error_code", "USER_NO_HOOK")
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.SKIP])
        super().__init__(f"There is no pre-commit hook to remove at '{hook_path}'.", hook_path, **kwargs)


class HookInstallError(HookError):
    """创建或删除钩子符号链接失败。"""

    def __init__(self, message: str, hook_path: Optional[Path] = None, **kwargs):
        kwargs.setdefault("error_code", "USER_HOOK_INSTALL_FAILED")
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        kwargs.setdefault("suggested_fix", "Check the permissions of the .git/hooks directory.")
        super().__init__(message, hook_path, **kwargs)


class CommitCancelledError(UserError):
    """用户在交互提示中取消了提交。"""

    def __init__(self, message: str = "Commit aborted as requested.", **kwargs):
        kwargs.setdefault("error_code", "USER_COMMIT_CANCELLED")
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.ABORT])
        super().__init__(message, **kwargs)


# ===== 系统错误 =====

class SystemError(CFHooksError):
    """钩子运行环境问题的基类。"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.SYSTEM)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        super().__init__(message, **kwargs)


class NotARepositoryError(SystemError):
    """工作目录不在git仓库中。"""

    def __init__(self, path: Path, details: Optional[str] = None, **kwargs):
        self.path = path
        message = f"'{path}' is not inside a git repository."
        if details:
            message += f" ({details})"
        kwargs.setdefault("error_code", "SYSTEM_NOT_A_REPOSITORY")
        kwargs.setdefault("suggested_fix", "Run this command from inside the repository you want to format.")
        kwargs.setdefault("context", {})["path"] = str(path)
        super().__init__(message, **kwargs)


class RepositoryRootError(SystemError):
    """在搜索深度限制内无法确定仓库根目录。"""

    def __init__(self, start_path: Path, max_depth: int, **kwargs):
        self.start_path = start_path
        self.max_depth = max_depth
        kwargs.setdefault("error_code", "SYSTEM_ROOT_NOT_RESOLVED")
        kwargs.setdefault(
            "suggested_fix",
            "Submodules are nested deeper than expected; run the command from the top-level project.",
        )
        context = kwargs.setdefault("context", {})
        context["start_path"] = str(start_path)
        context["max_depth"] = max_depth
        super().__init__(
            f"Could not find the top-level repository of '{start_path}' within {max_depth} levels.",
            **kwargs,
        )


class NotInvokedAsHookError(SystemError):
    """钩子程序被直接执行，而不是由git调用。"""

    def __init__(self, program: str, **kwargs):
        kwargs.setdefault("error_code", "SYSTEM_NOT_A_HOOK")
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault(
            "suggested_fix",
            f"To install the hook run:\n    {program} install\n"
            f"To uninstall it run:\n    {program} uninstall",
        )
        super().__init__(
            "It looks like you invoked this script directly, but it is supposed to be used "
            "as a pre-commit git hook.",
            **kwargs,
        )


class ToolNotFoundError(SystemError):
    """找不到所需的外部可执行文件。"""

    def __init__(self, tool_name: str, env_var: Optional[str] = None,
                 install_hint: Optional[str] = None, **kwargs):
        self.tool_name = tool_name
        self.env_var = env_var
        kwargs.setdefault("error_code", "SYSTEM_TOOL_NOT_FOUND")

        fix = install_hint or f"Install {tool_name} and make sure it is in your PATH."
        if env_var:
            fix += f"\nAlternatively, set the {env_var} environment variable to the full path of {tool_name}."
        kwargs.setdefault("suggested_fix", fix)

        context = kwargs.setdefault("context", {})
        context["tool_name"] = tool_name
        if env_var:
            context["env_var"] = env_var

        super().__init__(f"Could not find {tool_name}.", **kwargs)


class TerminalUnavailableError(SystemError):
    """交互提示无法打开终端设备。"""

    def __init__(self, tty_path: str, details: Optional[str] = None, **kwargs):
        self.tty_path = tty_path
        message = f"Cannot read answers from '{tty_path}'."
        if details:
            message += f" ({details})"
        kwargs.setdefault("error_code", "SYSTEM_TERMINAL_UNAVAILABLE")
        kwargs.setdefault(
            "suggested_fix",
            "If you commit from a tool without a terminal, disable the prompt with:\n"
            "    git config hooks.clangFormatDiffInteractive false",
        )
        kwargs.setdefault("context", {})["tty_path"] = tty_path
        super().__init__(message, **kwargs)


# ===== 外部依赖错误 =====

class ExternalError(CFHooksError):
    """外部工具失败的基类。"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.EXTERNAL)
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("recovery_actions", [ErrorRecoveryAction.MANUAL])
        super().__init__(message, **kwargs)


class ExternalToolError(ExternalError):
    """外部工具以失败状态退出。

    CLI会把 ``exit_code`` 作为进程退出状态转发。
    """

    def __init__(self, message: str, tool_name: Optional[str] = None,
                 exit_code: Optional[int] = None, stderr: Optional[str] = None, **kwargs):
        self.tool_name = tool_name
        self.exit_code = exit_code
        self.stderr = stderr
        kwargs.setdefault("error_code", "EXTERNAL_TOOL_ERROR")
        if stderr:
            kwargs.setdefault("suggested_fix", stderr.strip())

        context = kwargs.setdefault("context", {})
        if tool_name:
            context["tool_name"] = tool_name
        if exit_code is not None:
            context["exit_code"] = exit_code

        super().__init__(message, **kwargs)


class PatchApplyError(ExternalError):
    """应用格式化补丁失败的基类。"""

    def __init__(self, message: str, patch_path: Optional[Path] = None, **kwargs):
        self.patch_path = patch_path
        kwargs.setdefault("error_code", "EXTERNAL_PATCH_FAILED")
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        if patch_path:
            kwargs.setdefault("context", {})["patch_path"] = str(patch_path)
        super().__init__(message, **kwargs)


class WorkingTreeApplyError(PatchApplyError):
    """补丁无法应用到磁盘上的文件。"""

    def __init__(self, patch_path: Optional[Path] = None, details: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", "EXTERNAL_PATCH_WORKING_TREE")
        kwargs.setdefault(
            "suggested_fix",
            "The files on disk probably differ from the staged version. Stage or stash your "
            "local edits and try again.",
        )
        if details:
            kwargs.setdefault("context", {})["details"] = details
        super().__init__("Failed to apply the formatting patch to the files on disk.", patch_path, **kwargs)


class IndexApplyError(PatchApplyError):
    """补丁已应用到工作区，但无法应用到索引。"""

    def __init__(self, patch_path: Optional[Path] = None, details: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", "EXTERNAL_PATCH_INDEX")
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        kwargs.setdefault(
            "suggested_fix",
            "The files on disk were already reformatted, but the staged changes were not. "
            "This usually happens when unstaged changes overlap the reformatted lines. "
            "Review the changes and stage them manually with 'git add'.",
        )
        if details:
            kwargs.setdefault("context", {})["details"] = details
        super().__init__("Failed to apply the formatting patch to the git index.", patch_path, **kwargs)


__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorRecoveryAction",
    "CFHooksError",
    "UserError",
    "SystemError",
    "ExternalError",
    "ConfigurationError",
    "InvalidArgumentError",
    "HookError",
    "HookAlreadyInstalledError",
    "ForeignHookError",
    "NoHookInstalledError",
    "HookInstallError",
    "CommitCancelledError",
    "NotARepositoryError",
    "RepositoryRootError",
    "NotInvokedAsHookError",
    "ToolNotFoundError",
    "TerminalUnavailableError",
    "ExternalToolError",
    "PatchApplyError",
    "WorkingTreeApplyError",
    "IndexApplyError",
]
