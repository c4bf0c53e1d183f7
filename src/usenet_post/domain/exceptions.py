"""Domain exceptions for posting jobs."""

from typing import Optional


class PostingError(Exception):
    """Base exception for all posting errors."""
    pass


class ConfigurationError(PostingError):
    """Raised when configuration is invalid."""
    pass


class ListingError(PostingError):
    """Raised when rclone fails to list the source or returns malformed output."""
    pass


class ArchiveProbeError(PostingError):
    """Raised when the dry-run archive size probe fails."""
    pass


class EngineSpawnError(PostingError):
    """Raised when the posting engine process cannot be started."""
    pass


class EngineExitAbnormal(PostingError):
    """Raised when the posting engine exits with a non-zero status."""

    def __init__(self, returncode: int, output: Optional[bytes] = None):
        super().__init__(f"posting engine exited with status {returncode}")
        self.returncode = returncode
        self.output = output
