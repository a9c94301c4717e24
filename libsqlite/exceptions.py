"""
Errors raised by the library resolver, the build orchestrator and the packager.
"""


class LibsqliteError(Exception):
    """Base class for all libsqlite errors."""


class ArtifactNotFound(LibsqliteError):
    """No candidate library file exists for the requested platform and arch."""

    def __init__(self, platform, arch, expected, available=None):
        self.platform = platform
        self.arch = arch
        self.expected = expected
        self.available = list(available or [])
        message = (
            f"SQLite library not found for {platform}/{arch}. "
            f"Expected: {expected}."
        )
        if self.available:
            message += f" Available platforms: {', '.join(self.available)}."
        super().__init__(message)


class TargetBuildFailed(LibsqliteError):
    """A single platform target could not be built, located or copied."""

    def __init__(self, target_id, reason):
        self.target_id = target_id
        self.reason = reason
        super().__init__(f"{target_id}: {reason}")


class PackagingStepFailed(LibsqliteError):
    """Writing part of the distributable package failed."""

    def __init__(self, step, reason):
        self.step = step
        self.reason = reason
        super().__init__(f"Packaging step '{step}' failed: {reason}")


class BackendError(LibsqliteError):
    """The external build backend could not answer a query."""
