"""Domain layer package."""

from .models import FileEntry, JobOptions, OutputMode, ProgressRecord
from .exceptions import (
    PostingError,
    ConfigurationError,
    ListingError,
    ArchiveProbeError,
    EngineSpawnError,
    EngineExitAbnormal,
)
from .protocols import ILister, IProgressDecoder, IMetricsCollector

__all__ = [
    # Models
    "FileEntry",
    "JobOptions",
    "OutputMode",
    "ProgressRecord",
    # Exceptions
    "PostingError",
    "ConfigurationError",
    "ListingError",
    "ArchiveProbeError",
    "EngineSpawnError",
    "EngineExitAbnormal",
    # Protocols
    "ILister",
    "IProgressDecoder",
    "IMetricsCollector",
]
