from enum import Enum


class LocalChanges(Enum):
    """State of the working tree compared to the versioned revision."""

    NONE = "none"
    STAGED = "staged"
    UNSTAGED = "unstaged"
    STAGED_AND_UNSTAGED = "staged_and_unstaged"

    @property
    def is_dirty(self) -> bool:
        return self is not LocalChanges.NONE

    @classmethod
    def from_flags(cls, staged: bool, unstaged: bool) -> "LocalChanges":
        if staged and unstaged:
            return cls.STAGED_AND_UNSTAGED
        if staged:
            return cls.STAGED
        if unstaged:
            return cls.UNSTAGED
        return cls.NONE
