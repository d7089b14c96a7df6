"""Installation of the pre-commit hook.

The hook is a relative symlink from ``.git/hooks/pre-commit`` to the hook
runner script, so moving the checkout around keeps it working. Ownership is
decided by resolving the symlink: a hook resolving to this script is ours,
anything else is left untouched.
"""

import logging
from pathlib import Path
from typing import Union

from ..exceptions import (
    ForeignHookError,
    HookAlreadyInstalledError,
    HookInstallError,
    NoHookInstalledError,
)
from ..git.repository import hook_path, relative_path
from ..types.enums import HookStatus

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class HookInstaller:
    """Install, remove and inspect the pre-commit hook of one repository."""

    def __init__(self, root: PathLike, script_path: PathLike):
        """Initialize the installer.

        Args:
            root: Repository root (contains the ``.git`` directory)
            script_path: The hook runner the hook should point to
        """
        self.root = Path(root).resolve()
        self.script_path = Path(script_path).resolve()
        self.hook = hook_path(self.root)

    def _hook_exists(self) -> bool:
        # is_symlink() catches dangling links, which exists() reports as missing
        return self.hook.is_symlink() or self.hook.exists()

    def status(self) -> HookStatus:
        """Get the installation state of the hook."""
        if not self._hook_exists():
            return HookStatus.ABSENT
        try:
            target = self.hook.resolve()
        except (OSError, RuntimeError) as e:
            logger.debug("cannot resolve %s: %s", self.hook, e)
            return HookStatus.FOREIGN
        if target == self.script_path:
            return HookStatus.INSTALLED
        return HookStatus.FOREIGN

    def install(self) -> Path:
        """Create the hook symlink.

        Returns:
            Path of the created hook

        Raises:
            HookAlreadyInstalledError: If the hook already points here
            ForeignHookError: If a different hook exists
            HookInstallError: If the symlink cannot be created
        """
        status = self.status()
        if status is HookStatus.INSTALLED:
            raise HookAlreadyInstalledError(self.hook)
        if status is HookStatus.FOREIGN:
            raise ForeignHookError(self.hook, operation="install")

        target = relative_path(self.hook.parent, self.script_path)
        try:
            self.hook.parent.mkdir(parents=True, exist_ok=True)
            self.hook.symlink_to(target)
        except OSError as e:
            raise HookInstallError(
                f"Could not create the symlink '{self.hook}' -> '{target}': {e.strerror or e}",
                self.hook,
                original_error=e,
            )

        logger.info("installed %s -> %s", self.hook, target)
        return self.hook

    def uninstall(self) -> Path:
        """Remove the hook if it was installed by this script.

        Returns:
            Path of the removed hook

        Raises:
            NoHookInstalledError: If there is no hook
            ForeignHookError: If the hook belongs to something else
            HookInstallError: If the hook cannot be removed
        """
        status = self.status()
        if status is HookStatus.ABSENT:
            raise NoHookInstalledError(self.hook)
        if status is HookStatus.FOREIGN:
            raise ForeignHookError(self.hook, operation="uninstall")

        try:
            self.hook.unlink()
        except OSError as e:
            raise HookInstallError(
                f"Could not remove '{self.hook}': {e.strerror or e}",
                self.hook,
                original_error=e,
            )

        logger.info("removed %s", self.hook)
        return self.hook
