"""
Revision and version name calculation from git history.

The revision is the number of commits on the base branch up to the point
where the versioned revision branched off, plus a time component that grows
with the working time spent on those commits. Long idle gaps between commits
(nights, weekends, projects on hold) are removed before the working time is
converted into revision units.
"""

import asyncio
import logging
from datetime import timedelta
from typing import List, Optional, Protocol

from gitrevision.git import Commit, GitClient, LocalChanges

from .cache import FutureCache
from .config import GitVersionerConfig
from .exceptions import BranchNotFoundError

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = int(timedelta(days=365).total_seconds())
NO_HASH = "0000000"


class Versioner(Protocol):
    """Accessors shared by GitVersioner and its caching wrapper."""

    config: GitVersionerConfig

    async def revision(self) -> int: ...

    async def version_name(self) -> str: ...

    async def head_branch_name(self) -> Optional[str]: ...

    async def sha1(self) -> Optional[str]: ...

    async def local_changes(self) -> LocalChanges: ...

    async def commits(self) -> List[Commit]: ...

    async def all_first_base_branch_commits(self) -> List[Commit]: ...

    async def feature_branch_origin(self) -> Optional[Commit]: ...

    async def base_branch_commits(self) -> List[Commit]: ...

    async def feature_branch_commits(self) -> List[Commit]: ...

    async def base_branch_time_component(self) -> int: ...

    async def feature_branch_time_component(self) -> int: ...


class GitVersioner:
    """
    Computes revision numbers and version names for one configuration.

    All accessors are read-only queries against the git client. Accessors
    that build on other accessors resolve them through ``self.accessors``,
    which is the versioner itself unless a caching wrapper takes over.
    """

    def __init__(self, config: GitVersionerConfig, client: GitClient):
        self.config = config
        self.client = client
        self.accessors: Versioner = self

    async def revision(self) -> int:
        """Base branch commit count plus the base branch time component."""
        commits = await self.accessors.base_branch_commits()
        time_component = await self.accessors.base_branch_time_component()
        return len(commits) + time_component

    async def version_name(self) -> str:
        """
        Human readable version, e.g. ``432_feature-x+3_a1b2c3d-dirty``.

        Made of the revision, an optional name, the number of commits on the
        feature branch, the short sha1 and a dirty marker for HEAD.
        """
        rev = await self.accessors.revision()
        sha1 = await self.accessors.sha1()
        short_hash = sha1[:7] if sha1 else NO_HASH
        additional_commits = await self.accessors.feature_branch_commits()
        further_part = f"+{len(additional_commits)}" if additional_commits else ""

        config = self.config
        name = ""
        if config.rev == "HEAD":
            branch = await self.accessors.head_branch_name()
            changes = await self.accessors.local_changes()
            if branch is not None and branch != config.base_branch:
                name = f"_{branch}"
            if config.name is not None and config.name != config.base_branch:
                name = f"_{config.name}"
            dirty_part = "" if changes == LocalChanges.NONE else "-dirty"
            return f"{rev}{name}{further_part}_{short_hash}{dirty_part}"

        if not short_hash.startswith(config.rev) and config.rev != config.base_branch:
            name = f"_{config.rev}"
        if config.name is not None and config.name != config.base_branch:
            name = f"_{config.name}"
        return f"{rev}{name}{further_part}_{short_hash}"

    async def head_branch_name(self) -> Optional[str]:
        return await self.client.head_branch_name()

    async def sha1(self) -> Optional[str]:
        return await self.client.sha1(self.config.rev)

    async def local_changes(self) -> LocalChanges:
        return await self.client.local_changes(self.config.rev)

    async def commits(self) -> List[Commit]:
        """All commits in the history of the configured revision."""
        return await self.client.rev_list(self.config.rev)

    async def all_first_base_branch_commits(self) -> List[Commit]:
        """
        First-parent history of the base branch.

        The local branch is preferred over a remote one. A repository without
        the base branch yields an empty list instead of an error.
        """
        try:
            base = await self._resolve_base_branch()
            return await self.client.rev_list(base, first_parent_only=True)
        except Exception as e:
            logger.debug(f"No history for base branch {self.config.base_branch}: {e}")
            return []

    async def _resolve_base_branch(self) -> str:
        async for ref in self.client.branch_local_or_remote(self.config.base_branch):
            return ref
        raise BranchNotFoundError(self.config.base_branch)

    async def feature_branch_origin(self) -> Optional[Commit]:
        """
        Most recent commit of the history that is also a first-parent commit
        of the base branch, or None for unrelated histories.
        """
        first_base_commits = set(await self.accessors.all_first_base_branch_commits())
        all_commits = await self.accessors.commits()
        for commit in all_commits:
            if commit in first_base_commits:
                return commit
        return None

    async def base_branch_commits(self) -> List[Commit]:
        """
        Base branch commits up to and including the feature branch origin.

        Commits merged into the base branch after the origin are ignored, so
        the count for a revision does not change once it was branched off.
        """
        origin = await self.accessors.feature_branch_origin()
        if origin is None:
            return []
        return await self.client.rev_list(origin.sha1)

    async def feature_branch_commits(self) -> List[Commit]:
        """
        Commits added since the revision branched off the base branch.

        For unrelated histories every commit counts as a feature commit.
        """
        origin = await self.accessors.feature_branch_origin()
        if origin is None:
            return await self.accessors.commits()
        return await self.client.rev_list(f"{self.config.rev}...{origin.sha1}")

    async def base_branch_time_component(self) -> int:
        return self._time_component(await self.accessors.base_branch_commits())

    async def feature_branch_time_component(self) -> int:
        return self._time_component(await self.accessors.feature_branch_commits())

    def _time_component(self, commits: List[Commit]) -> int:
        """
        Convert the working time spanned by `commits` into revision units.

        Args:
            commits: Commits ordered newest first, as git rev-list returns them

        Returns:
            Rounded working time in years times the year factor
        """
        if not commits:
            return 0

        complete_time = abs(commits[-1].date - commits[0].date)
        if complete_time == timedelta(0):
            return 0

        debounce = timedelta(hours=self.config.stop_debounce)
        gaps = timedelta(0)
        for newer, older in zip(commits, commits[1:]):
            diff = abs(newer.date - older.date)
            if diff >= debounce:
                gaps += diff

        working_time = complete_time - gaps
        return self._year_factor(working_time)

    def _year_factor(self, duration: timedelta) -> int:
        seconds = int(duration.total_seconds())
        return int(seconds * self.config.year_factor / SECONDS_PER_YEAR + 0.5)


class CachedGitVersioner:
    """
    Caching layer for GitVersioner.

    Every accessor result is computed once per instance and shared, including
    the intermediate results the delegate needs for composite accessors. This
    is only correct while the repository does not change, which holds for the
    lifetime of one CLI invocation.
    """

    def __init__(self, delegate: GitVersioner):
        self._delegate = delegate
        self._cache: FutureCache[str, object] = FutureCache()
        delegate.accessors = self

    async def _cached(self, compute, key: str):
        # a cancelled caller must not cancel the computation other callers share
        return await asyncio.shield(self._cache.cache(compute, key))

    @property
    def config(self) -> GitVersionerConfig:
        return self._delegate.config

    @property
    def client(self) -> GitClient:
        return self._delegate.client

    async def revision(self) -> int:
        return await self._cached(self._delegate.revision, "revision")

    async def version_name(self) -> str:
        return await self._cached(self._delegate.version_name, "version_name")

    async def head_branch_name(self) -> Optional[str]:
        return await self._cached(
            self._delegate.head_branch_name, "head_branch_name"
        )

    async def sha1(self) -> Optional[str]:
        return await self._cached(self._delegate.sha1, "sha1")

    async def local_changes(self) -> LocalChanges:
        return await self._cached(self._delegate.local_changes, "local_changes")

    async def commits(self) -> List[Commit]:
        return await self._cached(self._delegate.commits, "commits")

    async def all_first_base_branch_commits(self) -> List[Commit]:
        return await self._cached(
            self._delegate.all_first_base_branch_commits,
            "all_first_base_branch_commits",
        )

    async def feature_branch_origin(self) -> Optional[Commit]:
        return await self._cached(
            self._delegate.feature_branch_origin, "feature_branch_origin"
        )

    async def base_branch_commits(self) -> List[Commit]:
        return await self._cached(
            self._delegate.base_branch_commits, "base_branch_commits"
        )

    async def feature_branch_commits(self) -> List[Commit]:
        return await self._cached(
            self._delegate.feature_branch_commits, "feature_branch_commits"
        )

    async def base_branch_time_component(self) -> int:
        return await self._cached(
            self._delegate.base_branch_time_component, "base_branch_time_component"
        )

    async def feature_branch_time_component(self) -> int:
        return await self._cached(
            self._delegate.feature_branch_time_component,
            "feature_branch_time_component",
        )


def create_versioner(
    config: GitVersionerConfig, client: Optional[GitClient] = None
) -> CachedGitVersioner:
    """
    Create a caching versioner for `config`.

    Args:
        config: What to version
        client: Git data source, defaults to a GitClient on config.repo_path

    Returns:
        A versioner that computes each accessor at most once
    """
    if client is None:
        client = GitClient(config.repo_path)
    return CachedGitVersioner(GitVersioner(config, client))
