"""Turns job options into the posting engine's command line."""

from typing import Any, List, Mapping, Sequence

from usenet_post.domain.models import JobOptions

SSL_PORTS = (443, 563)


def _port_number(value: Any):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def encode_arguments(values: Mapping[str, Any]) -> List[str]:
    """
    Encode options as ``--key value`` pairs in insertion order.

    Booleans are presence-only flags. ``--ssl`` is added for the secure
    NNTP ports unless the options already carry it.
    """
    args: List[str] = []
    for key, value in values.items():
        args.append(f"--{key}")
        if not isinstance(value, bool):
            args.append(str(value))

    if _port_number(values.get("port")) in SSL_PORTS and "ssl" not in values:
        args.append("--ssl")
    return args


class JobEncoder:
    """Builds the full engine command line for one job."""

    def __init__(self, engine_command: Sequence[str] = ("nyuu",), progress_interval: str = "2s"):
        self.engine_command = list(engine_command)
        self.progress_interval = progress_interval

    def engine_values(self, options: JobOptions) -> dict:
        values = dict(options.values)
        # The engine always writes the NZB to stdout; routing happens here.
        values["out"] = "-"
        if options.progress is not None:
            values["progress"] = f"log:{self.progress_interval}"
        values["input-file"] = "-"
        return values

    def encode(self, options: JobOptions) -> List[str]:
        return [*self.engine_command, *encode_arguments(self.engine_values(options))]
