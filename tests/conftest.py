import asyncio
import hashlib
import io
import logging
import shutil
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from git.exc import GitCommandError

from gitrevision.git import Commit, LocalChanges

BASE_DATE = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    handler.setLevel(logging.INFO)
    logger = logging.getLogger("gitrevision")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch) -> Path:
    """Point the user config file lookup to an empty temporary directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr("gitrevision.config.get_config_dir", lambda: config_dir)
    return config_dir


def make_sha1(seed: str) -> str:
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()


class FakeGitClient:
    """
    In-memory stand-in for GitClient.

    Holds a commit graph and a set of refs, answers the same queries as the
    real client and counts how often each query was made.
    """

    def __init__(self):
        self.dates: Dict[str, datetime] = {}
        self.parents: Dict[str, List[str]] = {}
        self.order: Dict[str, int] = {}
        self.refs: Dict[str, str] = {}
        self.head: Optional[str] = "master"
        self.detached_sha1: Optional[str] = None
        self.changes = LocalChanges.NONE
        self.failing_revs = set()
        self.calls = Counter()
        self.rev_list_args: List[tuple] = []
        # when set, rev_list blocks until the event is set
        self.gate: Optional[asyncio.Event] = None

    # -- building the graph

    def add_commit(self, date: datetime, parents=()) -> Commit:
        sha1 = make_sha1(f"{len(self.dates)}-{date.isoformat()}")
        self.dates[sha1] = date
        self.parents[sha1] = list(parents)
        self.order[sha1] = len(self.order)
        return Commit(sha1=sha1, date=date)

    def grow(
        self,
        branch: str,
        count: int,
        start: Optional[datetime] = None,
        step: timedelta = timedelta(hours=1),
    ) -> List[Commit]:
        """Add `count` commits on top of `branch`, oldest first."""
        ref = f"refs/heads/{branch}"
        tip = self.refs.get(ref)
        if start is None:
            start = self.dates[tip] + step if tip else BASE_DATE
        commits = []
        for i in range(count):
            commit = self.add_commit(start + i * step, [tip] if tip else [])
            tip = commit.sha1
            commits.append(commit)
        self.refs[ref] = tip
        return commits

    def merge(self, into: str, other: str, date: datetime) -> Commit:
        first = self.refs[f"refs/heads/{into}"]
        second = self.refs[f"refs/heads/{other}"]
        commit = self.add_commit(date, [first, second])
        self.refs[f"refs/heads/{into}"] = commit.sha1
        return commit

    def branch(self, name: str, from_branch: str):
        self.refs[f"refs/heads/{name}"] = self.refs[f"refs/heads/{from_branch}"]

    def checkout(self, branch: Optional[str] = None, sha1: Optional[str] = None):
        self.head = branch
        self.detached_sha1 = sha1

    # -- resolution

    def _resolve(self, rev: str) -> Optional[str]:
        if rev == "HEAD":
            if self.head is None:
                return self.detached_sha1
            return self.refs.get(f"refs/heads/{self.head}")
        for ref in (rev, f"refs/heads/{rev}"):
            if ref in self.refs:
                return self.refs[ref]
        matches = [sha1 for sha1 in self.dates if sha1.startswith(rev)]
        if len(matches) == 1:
            return matches[0]
        raise GitCommandError(["git", "rev-list", rev], 128, stderr="bad revision")

    def _reachable(self, sha1: Optional[str], first_parent_only: bool = False) -> set:
        seen = set()
        stack = [sha1] if sha1 else []
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            parents = self.parents[current]
            stack.extend(parents[:1] if first_parent_only else parents)
        return seen

    def _sorted(self, sha1s) -> List[Commit]:
        ordered = sorted(
            sha1s, key=lambda s: (self.dates[s], self.order[s]), reverse=True
        )
        return [Commit(sha1=s, date=self.dates[s]) for s in ordered]

    # -- GitClient interface

    async def rev_list(self, rev: str, first_parent_only: bool = False) -> List[Commit]:
        self.calls["rev_list"] += 1
        self.rev_list_args.append((rev, first_parent_only))
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if rev in self.failing_revs:
            raise GitCommandError(["git", "rev-list", rev], 128, stderr="fatal")
        if "..." in rev:
            left, right = rev.split("...")
            a = self._reachable(self._resolve(left))
            b = self._reachable(self._resolve(right))
            return self._sorted(a ^ b)
        return self._sorted(self._reachable(self._resolve(rev), first_parent_only))

    async def sha1(self, rev: str) -> Optional[str]:
        self.calls["sha1"] += 1
        await asyncio.sleep(0)
        try:
            return self._resolve(rev)
        except GitCommandError:
            return None

    async def head_branch_name(self) -> Optional[str]:
        self.calls["head_branch_name"] += 1
        await asyncio.sleep(0)
        return self.head

    async def local_changes(self, rev: str) -> LocalChanges:
        self.calls["local_changes"] += 1
        await asyncio.sleep(0)
        return self.changes if rev == "HEAD" else LocalChanges.NONE

    async def branch_local_or_remote(self, name: str):
        self.calls["branch_local_or_remote"] += 1
        local_ref = f"refs/heads/{name}"
        if local_ref in self.refs:
            yield local_ref
        for ref in sorted(self.refs):
            if ref.startswith("refs/remotes/") and ref.endswith(f"/{name}"):
                yield ref


@pytest.fixture
def fake_git() -> FakeGitClient:
    return FakeGitClient()


# git fixtures


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository on branch master with a committer identity."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    from git import Repo

    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = Repo.init(repo_path, initial_branch="master")
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")
    return repo


def git_commit(repo, message: str, date: datetime) -> str:
    """Create an empty commit with fixed author and committer dates."""
    iso = date.isoformat()
    repo.git.commit(
        "--allow-empty",
        "-m",
        message,
        env={"GIT_AUTHOR_DATE": iso, "GIT_COMMITTER_DATE": iso},
    )
    return repo.head.commit.hexsha
