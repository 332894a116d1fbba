"""Commit record produced by the git client."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, order=True)
class Commit:
    """
    A single resolved commit.

    Identity is the full sha1; two commits with the same sha1 are the same
    commit regardless of the parsed date.
    """

    sha1: str
    date: datetime = field(compare=False)

    def __str__(self) -> str:
        return f"{self.sha1[:7]} {self.date.isoformat()}"
