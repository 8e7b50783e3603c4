"""
Custom exceptions, so callers can tell application errors apart.
"""


class SpotstageError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(SpotstageError):
    """Raised for issues related to configuration loading or validation."""


class InvalidPathError(SpotstageError):
    """Raised when a path falls outside the root it is supposed to live under."""

    def __init__(self, path: str, root: str, reason: str = "outside of root"):
        self.path = path
        self.root = root
        super().__init__(f"Invalid path '{path}': {reason} '{root}'.")


class EmptyQueryError(SpotstageError):
    """Raised when a download is requested without a query."""

    def __init__(self):
        super().__init__("No query provided.")


class ProcessStartError(SpotstageError):
    """Raised when the external download tool cannot be started at all."""

    def __init__(self, executable: str, cause: Exception):
        self.executable = executable
        super().__init__(f"Failed to start download process '{executable}': {cause}")


class FileOperationError(SpotstageError):
    """
    Raised when a filesystem operation (stat, listdir, unlink, rename, copy) fails.
    The offending path is always attached.
    """

    def __init__(self, message: str, path: str, target: str | None = None):
        self.path = str(path)
        self.target = str(target) if target is not None else None
        super().__init__(message)


class SizeMismatchError(FileOperationError):
    """Raised when a cross-device copy does not match the size of its source."""

    def __init__(self, path: str, target: str, source_size: int, target_size: int):
        self.source_size = source_size
        self.target_size = target_size
        super().__init__(
            f"Size mismatch after copying '{path}' to '{target}' "
            f"({source_size} != {target_size} bytes). Source was kept.",
            path,
            target,
        )
