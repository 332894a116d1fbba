"""
Exception classes for the versioning module.
"""


class VersioningError(Exception):
    """Base exception for all versioning-related errors."""

    pass


class InvalidConfigurationError(VersioningError, ValueError):
    """Raised when a versioner configuration field has an invalid value."""

    def __init__(self, field: str, value, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Invalid value for {field}: {value!r}. Expected {expected}"
        )


class MissingDependencyError(VersioningError):
    """Raised when a required collaborator was not provided."""

    def __init__(self, dependency: str):
        self.dependency = dependency
        super().__init__(f"Missing required dependency: {dependency}")


class BranchNotFoundError(VersioningError):
    """Raised when a branch exists neither locally nor on any remote."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Branch {branch} not found locally or on any remote")


class ConfigFileError(VersioningError):
    """Raised when the user configuration file cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read config file {path}: {reason}")
