"""Domain errors for specgrid."""

from typing import Optional


class SubmitError(RuntimeError):
    """Raised when a submission stage cannot complete."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigError(SubmitError):
    """Configuration file missing, unreadable or malformed.

    ``config`` holds the partially built configuration when resolution got far
    enough to construct one.
    """

    def __init__(self, message: str, code: Optional[str] = None, config=None):
        super().__init__(message, code=code)
        self.config = config


class ValidationError(SubmitError):
    """Configuration violates remote-service constraints."""


class ArchiveError(SubmitError):
    """Packaging the project failed."""


class UploadError(SubmitError):
    """Uploading the archive failed."""


class BuildError(SubmitError):
    """The remote service did not create the build."""


class CleanupError(SubmitError):
    """A local artifact could not be deleted."""
