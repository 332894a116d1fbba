"""
Configuration value object for the versioning engine.
"""

from dataclasses import dataclass
from typing import Optional

from .exceptions import InvalidConfigurationError

DEFAULT_BRANCH = "master"
DEFAULT_YEAR_FACTOR = 1000
DEFAULT_STOP_DEBOUNCE = 48
DEFAULT_REV = "HEAD"


@dataclass(frozen=True)
class GitVersionerConfig:
    """
    Immutable description of what to version and how.

    Attributes:
        base_branch: Long-lived branch feature work is measured against
        repo_path: Path inside the repository, empty for the current directory
        year_factor: Revision units added for one year of continuous work
        stop_debounce: Commit gaps of at least this many hours are not
            counted as working time
        name: Optional override for the name segment of the version name
        rev: The revision to version ("HEAD", a branch name or a sha1)
    """

    base_branch: str = DEFAULT_BRANCH
    repo_path: str = ""
    year_factor: int = DEFAULT_YEAR_FACTOR
    stop_debounce: int = DEFAULT_STOP_DEBOUNCE
    name: Optional[str] = None
    rev: str = DEFAULT_REV

    def __post_init__(self):
        if not isinstance(self.base_branch, str) or not self.base_branch:
            raise InvalidConfigurationError(
                "base_branch", self.base_branch, "a non-empty string"
            )
        if not isinstance(self.rev, str) or not self.rev:
            raise InvalidConfigurationError("rev", self.rev, "a non-empty string")
        if not isinstance(self.repo_path, str):
            raise InvalidConfigurationError("repo_path", self.repo_path, "a string")
        if self.name is not None and not isinstance(self.name, str):
            raise InvalidConfigurationError("name", self.name, "a string or None")
        for field_name in ("year_factor", "stop_debounce"):
            value = getattr(self, field_name)
            # bool is an int subclass but never a meaningful tunable
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidConfigurationError(
                    field_name, value, "an integer >= 0"
                )
