"""Tests for the tar bundler and its dry run."""

import io
import tarfile
from contextlib import contextmanager

import pytest

from usenet_post.domain.models import FileEntry
from usenet_post.infrastructure.archive import ArchiveWriter, archive_command, archive_name

CONTENTS = {
    "a/b.txt": b"hello world",
    "c.bin": bytes(range(256)) * 8,
    "deep/" + "x" * 120 + ".dat": b"long name",
}


def _entries():
    return [
        FileEntry(path=path, name=path.rsplit("/", 1)[-1], size=len(data), absolute_path=f"remote:{path}")
        for path, data in CONTENTS.items()
    ]


@contextmanager
def _open(entry):
    yield io.BytesIO(CONTENTS[entry.path])


def test_dry_run_size_matches_written_archive():
    buf = io.BytesIO()
    written = ArchiveWriter(_open).write(_entries(), buf)

    assert ArchiveWriter.dry_run(_entries()) == written == len(buf.getvalue())
    assert written % tarfile.RECORDSIZE == 0


def test_written_archive_round_trips():
    buf = io.BytesIO()
    ArchiveWriter(_open).write(_entries(), buf)
    buf.seek(0)

    with tarfile.open(fileobj=buf, mode="r") as tar:
        names = tar.getnames()
        assert names == list(CONTENTS)
        assert tar.extractfile("a/b.txt").read() == b"hello world"


def test_short_source_fails():
    @contextmanager
    def short(entry):
        yield io.BytesIO(b"x")

    with pytest.raises(OSError):
        ArchiveWriter(short).write(_entries(), io.BytesIO())


@pytest.mark.parametrize("source,expected", [
    ("remote:data/set", "set.tar"),
    ("remote:data/set/", "set.tar"),
    ("remote:set", "set.tar"),
    ("remote:", "remote.tar"),
    ("/srv/files", "files.tar"),
])
def test_archive_name(source, expected):
    assert archive_name(source) == expected


def test_archive_command_quotes_source():
    assert archive_command("usenet-post-archive", "remote:a b") == "usenet-post-archive 'remote:a b'"


def test_archive_command_forwards_rclone():
    command = archive_command("usenet-post-archive", "remote:a", rclone="/opt/rclone")
    assert command == "usenet-post-archive --rclone /opt/rclone remote:a"
