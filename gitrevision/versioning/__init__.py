"""
Versioning Module for git revision.

This module holds everything needed to turn a git history into a revision
number and a version name. The git queries themselves live in
gitrevision.git; this module only combines their results.

ARCHITECTURAL LAYERS:
====================

1. **Configuration** (config.py):
   - GitVersionerConfig: Immutable, validated description of the revision to
     version, the base branch and the time component tunables

2. **Versioning Engine** (versioner.py):
   - GitVersioner: Finds where the revision branched off the base branch,
     counts commits and adds a time component for the working time spent
   - CachedGitVersioner: Same accessors, each computed at most once
   - create_versioner: Factory returning the cached variant

3. **Memoization** (cache.py):
   - FutureCache: Shares one asyncio task per key among all callers

4. **Exception Hierarchy** (exceptions.py):
   - Errors for invalid configuration, unreadable config files and missing
     collaborators

REVISION FORMULA:
=================

    revision = commits on base branch up to the branch-off point
             + round(working time in years * year_factor)

Working time is the time between the oldest and newest of those commits
minus every gap between two consecutive commits that is at least
stop_debounce hours long.

VERSION NAME:
=============

    {revision}[_{name}][+{feature commits}]_{short sha1}[-dirty]

The name is the current branch (or the configured name) unless it is the
base branch. The dirty marker only appears when versioning HEAD.
"""

from .cache import FutureCache
from .config import (
    DEFAULT_BRANCH,
    DEFAULT_REV,
    DEFAULT_STOP_DEBOUNCE,
    DEFAULT_YEAR_FACTOR,
    GitVersionerConfig,
)
from .exceptions import (
    BranchNotFoundError,
    ConfigFileError,
    InvalidConfigurationError,
    MissingDependencyError,
    VersioningError,
)
from .versioner import CachedGitVersioner, GitVersioner, Versioner, create_versioner

__all__ = [
    # Engine
    "GitVersioner",
    "CachedGitVersioner",
    "Versioner",
    "create_versioner",
    # Configuration
    "GitVersionerConfig",
    "DEFAULT_BRANCH",
    "DEFAULT_REV",
    "DEFAULT_STOP_DEBOUNCE",
    "DEFAULT_YEAR_FACTOR",
    # Memoization
    "FutureCache",
    # Exceptions
    "VersioningError",
    "InvalidConfigurationError",
    "MissingDependencyError",
    "ConfigFileError",
    "BranchNotFoundError",
]
