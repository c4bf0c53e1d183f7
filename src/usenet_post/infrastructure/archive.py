"""Tar bundling of a listing, for posting many files as one.

The dry run and the real write share one code path so the size declared in
the manifest is exactly the number of bytes the archiver later streams.
"""

import argparse
import posixpath
import shlex
import sys
import tarfile
from typing import BinaryIO, Callable, ContextManager, Iterable, List, Optional

from usenet_post.domain.exceptions import ArchiveProbeError, PostingError
from usenet_post.domain.models import FileEntry
from usenet_post.infrastructure.config import ConfigLoader
from usenet_post.infrastructure.rclone import RcloneLister
from usenet_post.shared.logging import get_logger, setup_logger

logger = get_logger(__name__)

COPY_BUFSIZE = 1024 * 1024
ENCODING = "utf-8"

Opener = Callable[[FileEntry], ContextManager[BinaryIO]]


class _CountingWriter:
    """Write-only sink that counts bytes and optionally forwards them."""

    def __init__(self, target: Optional[BinaryIO] = None):
        self._target = target
        self.count = 0

    def write(self, data) -> int:
        if self._target is not None:
            self._target.write(data)
        self.count += len(data)
        return len(data)

    def tell(self) -> int:
        return self.count

    def flush(self) -> None:
        if self._target is not None:
            self._target.flush()


class _ZeroReader:
    """Endless stream of NUL bytes standing in for file contents."""

    def read(self, size: int = -1) -> bytes:
        return bytes(max(size, 0))


class _ZeroContext:
    def __enter__(self):
        return _ZeroReader()

    def __exit__(self, *exc):
        return False


class _RcloneCat:
    """Context manager around an ``rclone cat`` process."""

    def __init__(self, lister, entry: FileEntry):
        self._lister = lister
        self._entry = entry
        self._proc = None

    def __enter__(self) -> BinaryIO:
        self._proc = self._lister.open(self._entry.absolute_path)
        return self._proc.stdout

    def __exit__(self, exc_type, exc, tb):
        self._proc.stdout.close()
        rc = self._proc.wait()
        if exc_type is None and rc != 0:
            raise PostingError(f"rclone cat failed for {self._entry.absolute_path} (rc={rc})")
        return False


def archive_name(source: str) -> str:
    """Name of the bundle for a source: its last path component plus ``.tar``."""
    base = posixpath.basename(source.rstrip("/")).rsplit(":", 1)[-1]
    base = base or source.strip(":/") or "archive"
    return f"{base}.tar"


class ArchiveWriter:
    """Writes a listing as an uncompressed PAX tar."""

    def __init__(self, opener: Opener):
        self._opener = opener

    def write(self, entries: Iterable[FileEntry], fileobj: Optional[BinaryIO]) -> int:
        """
        Write entries as a tar to fileobj.

        Args:
            entries: Files in archive order
            fileobj: Destination; ``None`` counts without writing

        Returns:
            Number of bytes in the archive
        """
        sink = _CountingWriter(fileobj)
        with tarfile.open(fileobj=sink, mode="w", format=tarfile.PAX_FORMAT,
                          encoding=ENCODING, errors="surrogateescape") as tar:
            tar.copybufsize = COPY_BUFSIZE
            for entry in entries:
                info = tarfile.TarInfo(entry.path)
                info.size = entry.size
                info.mode = 0o644
                info.mtime = 0
                with self._opener(entry) as stream:
                    tar.addfile(info, stream)
        sink.flush()
        return sink.count

    @classmethod
    def dry_run(cls, entries: List[FileEntry]) -> int:
        """Size of the archive for entries, reading zero bytes from the source."""
        try:
            return cls(lambda _entry: _ZeroContext()).write(entries, None)
        except (OSError, ValueError, tarfile.TarError) as e:
            raise ArchiveProbeError(f"Archive dry run failed: {e}") from e

    @staticmethod
    def probe(source: str, entries: List[FileEntry]) -> FileEntry:
        """Synthetic entry standing for the whole bundle of a source."""
        name = archive_name(source)
        size = ArchiveWriter.dry_run(entries)
        logger.info(f"Archive dry run: {len(entries)} file(s) -> {name} ({size} bytes)")
        return FileEntry(path=name, name=name, size=size, absolute_path=source)


def archive_command(command: str, source: str, rclone: Optional[str] = None) -> str:
    """Shell command that streams the bundle of source to stdout with the given rclone."""
    if rclone:
        command = f"{command} --rclone {shlex.quote(rclone)}"
    return f"{command} {shlex.quote(source)}"


def main(argv: Optional[List[str]] = None) -> int:
    """``usenet-post-archive``: stream a tar of a source to stdout."""
    parser = argparse.ArgumentParser(description="Stream a tar of an rclone source to stdout")
    parser.add_argument("source", help="Local path or remote:path")
    parser.add_argument("--rclone", help="rclone command (default: from config)")
    args = parser.parse_args(argv)

    setup_logger()
    settings = ConfigLoader().load()
    lister = RcloneLister(args.rclone or settings.rclone_command)

    try:
        entries = lister.lsjson(args.source)
        written = ArchiveWriter(lambda entry: _RcloneCat(lister, entry)).write(entries, sys.stdout.buffer)
    except (PostingError, OSError, tarfile.TarError) as e:
        logger.error(f"Archive failed: {e}")
        return 1

    logger.info(f"Archived {len(entries)} file(s), {written} bytes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
