"""rclone wrapper for listing sources and streaming file contents."""

import json
import posixpath
import shlex
import subprocess
from typing import Any, Dict, List

from pydantic import ValidationError

from usenet_post.domain.exceptions import ListingError
from usenet_post.domain.models import FileEntry
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)

LSJSON_DEFAULTS: Dict[str, Any] = {
    "recursive": True,
    "files-only": True,
    "no-mimetype": True,
}


def resolve_absolute_path(source: str, relative: str) -> str:
    """
    Locate a listed file from the source it was listed under.

    ``source`` may name a directory or the file itself. In the latter case the
    entry's relative path is the tail of the source, so it is stripped to get
    the common root before joining the relative path back on.

    >>> resolve_absolute_path("remote:data/set", "a/b.txt")
    'remote:data/set/a/b.txt'
    >>> resolve_absolute_path("remote:data/x.bin", "x.bin")
    'remote:data/x.bin'
    """
    root = source
    if source == relative:
        root = ""
    elif source.endswith("/" + relative) or source.endswith(":" + relative):
        root = source[: -len(relative)]

    if not root:
        return posixpath.normpath(relative)
    if root.endswith(":"):
        # Bare remote root, e.g. "remote:"
        return root + posixpath.normpath(relative)
    return posixpath.normpath(posixpath.join(root, relative))


def _option_args(options: Dict[str, Any]) -> List[str]:
    args: List[str] = []
    for key, value in options.items():
        if value is False or value is None:
            continue
        args.append(f"--{key}")
        if value is not True:
            args.append(str(value))
    return args


class RcloneLister:
    """Low-level wrapper around ``rclone lsjson`` and ``rclone cat``."""

    def __init__(self, rclone_command: str = "rclone"):
        self.rclone_command = rclone_command
        self._logger = get_logger(__name__)

    def lsjson(self, source: str, **options) -> List[FileEntry]:
        """
        List files under source, recursively, files only.

        Args:
            source: Local path or ``remote:path``
            **options: Extra rclone flags; ``True`` is a bare flag, ``False``
                removes a default flag

        Returns:
            Entries in listing order with ``absolute_path`` filled in

        Raises:
            ListingError: If rclone fails or its output is malformed
        """
        flags = {**LSJSON_DEFAULTS, **options}
        cmd = [*shlex.split(self.rclone_command), "lsjson", *_option_args(flags), source]
        self._logger.debug(f"Listing {source}: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True
            )
        except FileNotFoundError as e:
            raise ListingError(f"rclone not found: {e}") from e
        except subprocess.CalledProcessError as e:
            raise ListingError(f"rclone lsjson failed for {source} (rc={e.returncode}): {e.stderr.strip()}") from e

        try:
            raw = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ListingError(f"Malformed lsjson output for {source}: {e}") from e

        if not isinstance(raw, list):
            raise ListingError(f"Malformed lsjson output for {source}: expected a list")

        entries = []
        for item in raw:
            if not isinstance(item, dict):
                raise ListingError(f"Malformed lsjson entry for {source}: {item!r}")
            try:
                entry = FileEntry.model_validate({
                    **item,
                    "AbsolutePath": resolve_absolute_path(source, item.get("Path", "")),
                })
            except ValidationError as e:
                raise ListingError(f"Malformed lsjson entry for {source}: {e}") from e
            entries.append(entry)

        self._logger.info(f"Listed {len(entries)} file(s) from {source}")
        return entries

    def cat_command(self, absolute_path: str) -> str:
        """Shell command that streams one file's bytes to stdout."""
        return f"{self.rclone_command} cat {shlex.quote(absolute_path)}"

    def open(self, absolute_path: str) -> "subprocess.Popen[bytes]":
        """Start ``rclone cat`` and return the process; read from ``.stdout``."""
        cmd = [*shlex.split(self.rclone_command), "cat", absolute_path]
        try:
            return subprocess.Popen(cmd, stdout=subprocess.PIPE)
        except OSError as e:
            raise ListingError(f"Failed to start rclone cat for {absolute_path}: {e}") from e
