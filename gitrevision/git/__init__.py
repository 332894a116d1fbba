"""
Git data source for git revision.

Everything the versioning engine learns about a repository comes through
GitClient. The client is read-only and asynchronous; commits come back as
immutable Commit records and working tree state as a LocalChanges value.
"""

from .client import GitClient, parse_porcelain_status, parse_rev_list
from .commit import Commit
from .local_changes import LocalChanges

__all__ = [
    "GitClient",
    "Commit",
    "LocalChanges",
    "parse_rev_list",
    "parse_porcelain_status",
]
