"""git revision: version numbers derived from git history."""

__version__ = "1.0.0"
