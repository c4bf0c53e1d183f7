"""Progress decoding from nyuu's log output."""

import re
from typing import Optional

from usenet_post.domain.models import ProgressObserver, ProgressRecord
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)

# Logged once the engine has counted its input, e.g.
# "Uploading 4137 article(s) from 1 file(s) totalling 2827.49 MiB."
UPLOAD_INFO_RE = re.compile(
    r"Uploading (?P<articles>\d+) article\(s\) from (?P<files>\d+) file\(s\) "
    r"totalling (?P<total_size>[\d.]+ [KMG]iB)"
)
# Logged every progress interval when progress goes to the log.
PROGRESS_RE = re.compile(
    r"Article posting progress: (?P<read>\d+) read, (?P<posted>\d+) posted"
    r"(?:, (?P<checked>\d+) checked)?"
)
# Log level separator, e.g. the "] " closing "[INFO] ".
SEPARATOR_RE = re.compile(r"[\W+]\s")

_TEXT_FIELDS = {"total_size"}


class LogProgressDecoder:
    """
    Turns engine log lines into a cumulative ProgressRecord.
    Implements IProgressDecoder protocol.

    Every matching line overwrites the fields it reports and hands the whole
    record to the observer, so observers always see a snapshot, never a
    delta. Lines that match nothing are skipped.
    """

    def __init__(self, observer: Optional[ProgressObserver] = None):
        self.record = ProgressRecord()
        self._observer = observer

    def feed(self, line: str) -> Optional[ProgressRecord]:
        line = SEPARATOR_RE.sub("", line.rstrip("\r\n"), count=1)

        match = UPLOAD_INFO_RE.search(line) or PROGRESS_RE.search(line)
        if match is None:
            return None

        fields = {}
        for key, value in match.groupdict().items():
            if value is None:
                continue
            fields[key] = value if key in _TEXT_FIELDS else int(value)
        self.record.update(**fields)

        if self._observer is not None:
            try:
                self._observer(self.record)
            except Exception:
                logger.exception("Progress observer failed")
        return self.record
