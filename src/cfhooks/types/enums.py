"""Enumerations used by the clang-format hooks.

All enums inherit from str and Enum so they print and compare as their
values.
"""

from enum import Enum
from typing import Optional


class HookStatus(str, Enum):
    """Installation state of the pre-commit hook.

    Values:
        ABSENT: No pre-commit hook exists
        INSTALLED: The hook exists and resolves to this script
        FOREIGN: A hook exists but resolves to something else
    """
    ABSENT = "absent"
    INSTALLED = "installed"
    FOREIGN = "foreign"


class FormatMode(str, Enum):
    """Scope of a formatting run."""
    DIFF = "diff"
    WHOLE_FILE = "whole-file"
    APPLY_TO_STAGED = "apply-to-staged"


class PromptAnswer(str, Enum):
    """Answers accepted by the interactive pre-commit prompt.

    INVALID is never typed by the user; it stands for any unrecognised
    character so the prompt loop only ever dispatches on enum members.
    """
    APPLY = "a"
    FORCE = "f"
    CANCEL = "c"
    HELP = "?"
    INVALID = ""

    @classmethod
    def from_char(cls, char: Optional[str]) -> "PromptAnswer":
        """Parse a single character typed at the prompt.

        Args:
            char: Character read from the terminal

        Returns:
            The matching answer, or INVALID
        """
        if not char:
            return cls.INVALID
        try:
            answer = cls(char.lower())
        except ValueError:
            return cls.INVALID
        return answer

    @property
    def is_terminal(self) -> bool:
        """Whether this answer ends the prompt loop."""
        return self in (PromptAnswer.APPLY, PromptAnswer.FORCE, PromptAnswer.CANCEL)
