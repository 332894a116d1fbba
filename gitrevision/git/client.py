"""
Git data source for the versioning engine.

GitClient is a thin asynchronous facade over GitPython. Every query spawns a
git subprocess through ``Repo.git`` and runs it in a worker thread so that
the event loop stays free while several accessors are awaited at once.

The client only reads from the repository. It never checks out, fetches or
writes refs.
"""

import asyncio
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, List, Optional

from git import Repo
from git.exc import GitCommandError

from .commit import Commit
from .local_changes import LocalChanges

logger = logging.getLogger(__name__)

_COMMIT_PREFIX = "commit "


def parse_rev_list(output: str) -> List[Commit]:
    """
    Parse the output of ``git rev-list --pretty=%cI``.

    Each commit is printed as a ``commit <sha1>`` header followed by the
    strict ISO 8601 committer date on the next line.

    Args:
        output: Raw stdout of git rev-list

    Returns:
        Commits in the order git printed them (newest first)

    Raises:
        ValueError: If a header is not followed by a parseable date
    """
    commits = []
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.startswith(_COMMIT_PREFIX):
            i += 1
            continue
        sha1 = line[len(_COMMIT_PREFIX) :].strip()
        if i + 1 >= len(lines):
            raise ValueError(f"Missing date for commit {sha1}")
        date_text = lines[i + 1]
        if date_text.endswith("Z"):
            date_text = date_text[:-1] + "+00:00"
        date = datetime.fromisoformat(date_text)
        commits.append(Commit(sha1=sha1, date=date))
        i += 2
    return commits


def parse_porcelain_status(output: str) -> LocalChanges:
    """
    Classify ``git status --porcelain`` output.

    The first column is the index state, the second the working tree state.
    Untracked files are not reported because status is invoked with
    ``--untracked-files=no``.
    """
    staged = False
    unstaged = False
    for line in output.splitlines():
        if len(line) < 2:
            continue
        index_state, tree_state = line[0], line[1]
        if index_state not in (" ", "?", "!"):
            staged = True
        if tree_state not in (" ", "?", "!"):
            unstaged = True
    return LocalChanges.from_flags(staged=staged, unstaged=unstaged)


class GitClient:
    """
    Asynchronous read-only access to one git repository.

    The repository is opened lazily on first use so that constructing a
    client (and therefore a versioner) never touches the filesystem.
    """

    def __init__(self, repo_path: str = ""):
        """
        Initialize the client.

        Args:
            repo_path: Path inside the repository. Empty means the current
                working directory.
        """
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self._repo: Optional[Repo] = None
        self._repo_lock = threading.Lock()

    @property
    def repo(self) -> Repo:
        with self._repo_lock:
            if self._repo is None:
                logger.debug(f"Opening git repository at {self.repo_path}")
                self._repo = Repo(self.repo_path, search_parent_directories=True)
        return self._repo

    def _run_git(self, command: str, *args, **kwargs) -> str:
        return getattr(self.repo.git, command)(*args, **kwargs)

    async def _git(self, command: str, *args, **kwargs) -> str:
        logger.debug(f"git {command.replace('_', '-')} {' '.join(args)} {kwargs}")
        # the repository is opened lazily, inside the worker thread
        return await asyncio.to_thread(self._run_git, command, *args, **kwargs)

    def _head_is_born(self) -> bool:
        return self.repo.head.is_valid()

    def _remote_names(self) -> List[str]:
        return [remote.name for remote in self.repo.remotes]

    async def rev_list(self, rev: str, first_parent_only: bool = False) -> List[Commit]:
        """
        List commits reachable from a revision expression, newest first.

        An unborn HEAD, as in a freshly initialised repository, has an empty
        history.

        Args:
            rev: Any expression git rev-list accepts ("HEAD", "A...B", a sha1)
            first_parent_only: Follow only the first parent of merge commits

        Returns:
            Commits as ordered by git

        Raises:
            GitCommandError: If the expression cannot be resolved
        """
        if rev == "HEAD" and not await asyncio.to_thread(self._head_is_born):
            logger.debug("HEAD has no commits yet")
            return []
        kwargs = {"pretty": "%cI"}
        if first_parent_only:
            kwargs["first_parent"] = True
        output = await self._git("rev_list", rev, **kwargs)
        return parse_rev_list(output)

    async def sha1(self, rev: str) -> Optional[str]:
        """Full sha1 of the commit `rev` points to, or None if it does not resolve."""
        try:
            output = await self._git("rev_parse", f"{rev}^{{commit}}", verify=True, quiet=True)
        except GitCommandError:
            return None
        return output.strip() or None

    async def head_branch_name(self) -> Optional[str]:
        """Short name of the branch HEAD points to, None when detached."""
        try:
            output = await self._git("symbolic_ref", "HEAD", short=True, quiet=True)
        except GitCommandError:
            return None
        return output.strip() or None

    async def local_changes(self, rev: str) -> LocalChanges:
        """
        Uncommitted changes of the working tree.

        Only HEAD has a working tree attached; any other revision is a
        committed snapshot and reports LocalChanges.NONE.
        """
        if rev != "HEAD":
            return LocalChanges.NONE
        output = await self._git("status", porcelain=True, untracked_files="no")
        return parse_porcelain_status(output)

    async def branch_local_or_remote(self, name: str) -> AsyncIterator[str]:
        """
        Yield full refs that may stand for branch `name`.

        The local branch comes first, followed by the branch on every remote
        that carries it (``refs/remotes/<remote>/<name>``).
        """
        local_ref = f"refs/heads/{name}"
        remotes = await asyncio.to_thread(self._remote_names)
        remote_refs = [f"refs/remotes/{remote}/{name}" for remote in remotes]
        output = await self._git(
            "for_each_ref", local_ref, *remote_refs, format="%(refname)"
        )
        found = {line.strip() for line in output.splitlines() if line.strip()}
        for ref in [local_ref] + remote_refs:
            if ref in found:
                yield ref
