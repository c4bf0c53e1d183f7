"""Manifest building: the virtual file list fed to the engine's stdin."""

import json
from dataclasses import dataclass
from typing import List, Optional

from usenet_post.domain.exceptions import ListingError
from usenet_post.domain.models import FileEntry, JobOptions
from usenet_post.domain.protocols import ILister
from usenet_post.infrastructure.archive import ArchiveWriter, archive_command
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)

PROCJSON_SCHEME = "procjson://"


@dataclass(frozen=True)
class ManifestLine:
    """One virtual file: its name, declared size and the command producing its bytes."""

    name: str
    size: int
    command: str

    def render(self) -> str:
        return f"{PROCJSON_SCHEME}{json.dumps(self.name)},{self.size},{json.dumps(self.command)}"


def parse_manifest_line(line: str) -> ManifestLine:
    """Inverse of :meth:`ManifestLine.render`."""
    if not line.startswith(PROCJSON_SCHEME):
        raise ValueError(f"not a procjson line: {line!r}")
    name, size, command = json.loads(f"[{line[len(PROCJSON_SCHEME):]}]")
    return ManifestLine(name=name, size=int(size), command=command)


@dataclass
class Manifest:
    entries: List[FileEntry]
    lines: List[ManifestLine]

    def render(self) -> str:
        return "\n".join(line.render() for line in self.lines)

    @property
    def total_size(self) -> int:
        return sum(line.size for line in self.lines)


class ManifestBuilder:
    """Lists a source and describes every file as a lazily fetched manifest line."""

    def __init__(self, lister: ILister, archive_cmd: str = "usenet-post-archive",
                 rclone_cmd: Optional[str] = None):
        self._lister = lister
        self._archive_cmd = archive_cmd
        self._rclone_cmd = rclone_cmd

    def build(self, source: str, options: Optional[JobOptions] = None) -> Manifest:
        """
        Build the manifest for source.

        Raises:
            ListingError: If listing fails or finds nothing
            ArchiveProbeError: If the archive dry run fails
        """
        options = options or JobOptions()
        entries = self._lister.lsjson(source)
        if not entries:
            raise ListingError(f"No files found in {source}")

        if options.archive:
            bundle = ArchiveWriter.probe(source, entries)
            lines = [ManifestLine(
                name=options.filename(bundle),
                size=bundle.size,
                command=archive_command(self._archive_cmd, source, self._rclone_cmd),
            )]
        else:
            lines = [
                ManifestLine(
                    name=options.filename(entry),
                    size=entry.size,
                    command=self._lister.cat_command(entry.absolute_path),
                )
                for entry in entries
            ]

        manifest = Manifest(entries=entries, lines=lines)
        logger.info(f"Manifest for {source}: {len(lines)} line(s), {manifest.total_size} bytes")
        return manifest
