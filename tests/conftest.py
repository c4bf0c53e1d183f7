import sys
import os

# Ensure src/ is on sys.path so the package imports without installation
SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

import pytest

from usenet_post.domain.models import FileEntry


class FakeLister:
    """In-memory stand-in for RcloneLister."""

    def __init__(self, entries=None, error=None):
        self.entries = entries or []
        self.error = error
        self.calls = []

    def lsjson(self, source, **options):
        self.calls.append(source)
        if self.error:
            raise self.error
        return list(self.entries)

    def cat_command(self, absolute_path):
        return f"rclone cat '{absolute_path}'"


@pytest.fixture
def entries():
    return [
        FileEntry(path="a/b.txt", name="b.txt", size=11, absolute_path="remote:data/set/a/b.txt"),
        FileEntry(path="c.bin", name="c.bin", size=2048, absolute_path="remote:data/set/c.bin"),
    ]


@pytest.fixture
def fake_lister(entries):
    return FakeLister(entries)


@pytest.fixture
def make_lister():
    return FakeLister
