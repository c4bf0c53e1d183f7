"""Protocol definitions for dependency inversion."""

from typing import Protocol, List, Optional

from .models import FileEntry, ProgressRecord


class ILister(Protocol):
    """Interface for enumerating source files."""

    def lsjson(self, source: str, **options) -> List[FileEntry]:
        """List files under source, recursively, files only."""
        ...

    def cat_command(self, absolute_path: str) -> str:
        """Shell command that writes the bytes of one file to stdout."""
        ...


class IProgressDecoder(Protocol):
    """Interface for turning engine log lines into progress records.

    Implementations must never raise on unrecognised input.
    """

    def feed(self, line: str) -> Optional[ProgressRecord]:
        """Consume one log line, return the updated record on a match."""
        ...


class IMetricsCollector(Protocol):
    """Interface for collecting metrics."""

    def start_timer(self, name: str) -> None:
        ...

    def stop_timer(self, name: str) -> float:
        ...

    def record_metric(self, name: str, value: float) -> None:
        ...

    def get_summary(self) -> dict:
        ...
