"""Domain models for posting jobs."""

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OptionValue = Union[str, int, float, bool]


class FileEntry(BaseModel):
    """One input file as reported by ``rclone lsjson``.

    Field aliases match rclone's JSON keys so listing output validates
    directly into entries.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    path: str = Field(alias="Path")
    name: str = Field(alias="Name")
    size: int = Field(alias="Size", ge=0)
    absolute_path: str = Field(default="", alias="AbsolutePath")
    id: Optional[str] = Field(default=None, alias="ID")
    hashes: Optional[Dict[str, str]] = Field(default=None, alias="Hashes")
    mime_type: Optional[str] = Field(default=None, alias="MimeType")
    mod_time: Optional[str] = Field(default=None, alias="ModTime")


def default_filename(entry: FileEntry) -> str:
    return entry.name


class OutputMode(enum.Enum):
    """Where the engine's primary output (the NZB) goes."""

    LIVE = "live"
    FILE = "file"
    BUFFERED = "buffered"

    @classmethod
    def from_out(cls, out: Optional[str]) -> "OutputMode":
        if out == "-":
            return cls.LIVE
        if out:
            return cls.FILE
        return cls.BUFFERED


@dataclass
class ProgressRecord:
    """Cumulative progress decoded from the engine's log."""

    files: int = 0
    articles: int = 0
    total_size: Optional[str] = None
    read: int = 0
    posted: int = 0
    checked: int = 0

    def update(self, **fields: Any) -> None:
        """Overwrite only the given fields."""
        for key, value in fields.items():
            if not hasattr(self, key):
                raise AttributeError(f"ProgressRecord has no field {key!r}")
            setattr(self, key, value)


ProgressObserver = Callable[[ProgressRecord], None]
NamingFunction = Callable[[FileEntry], str]


@dataclass
class JobOptions:
    """Options for one posting job.

    ``values`` holds the engine options in insertion order. The remaining
    fields are consumed by this package and never turned into arguments.
    """

    values: Dict[str, OptionValue] = field(default_factory=dict)
    filename: NamingFunction = default_filename
    progress: Optional[ProgressObserver] = None
    archive: bool = False
    out: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.filename, str):
            constant = self.filename
            self.filename = lambda _entry: constant

    @property
    def output_mode(self) -> OutputMode:
        return OutputMode.from_out(self.out)

    @classmethod
    def merge(
        cls,
        defaults: Mapping[str, Any],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "JobOptions":
        """Build options from defaults and caller overrides, caller wins.

        Keys keep the position of their first insertion, so an override
        replaces a default in place. ``filename``, ``progress``, ``archive``
        and ``out`` are lifted out of the mapping into their own fields.
        """
        merged: Dict[str, Any] = dict(defaults)
        merged.update(overrides or {})

        kwargs: Dict[str, Any] = {}
        for key in ("filename", "progress", "archive", "out"):
            if key in merged:
                kwargs[key] = merged.pop(key)

        progress = kwargs.get("progress")
        if progress is not None and not callable(progress):
            # A plain value (e.g. "stderr") is an engine option, not an observer.
            merged["progress"] = kwargs.pop("progress")
        if kwargs.get("filename") is None:
            kwargs.pop("filename", None)
        kwargs["archive"] = bool(kwargs.get("archive", False))

        return cls(values=merged, **kwargs)
