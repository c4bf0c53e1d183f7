"""CLI interface for posting files to Usenet."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from usenet_post.application.poster import Poster
from usenet_post.domain.exceptions import PostingError
from usenet_post.domain.models import ProgressRecord
from usenet_post.infrastructure.config import ConfigLoader
from usenet_post.infrastructure.engine import EngineProcess
from usenet_post.shared.logging import setup_logger, get_logger


def _coerce(value: str) -> Any:
    if value.isdigit():
        return int(value)
    return value


def parse_passthrough(tokens: List[str]) -> Dict[str, Any]:
    """
    Turn leftover flags into engine options.

    ``--key value`` and ``--key=value`` give ``key: value``, a flag followed
    by another flag (or nothing) gives ``key: True``.
    """
    options: Dict[str, Any] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not token.startswith("-") or token in ("-", "--"):
            raise PostingError(f"Unexpected argument: {token}")
        key = token.lstrip("-")
        if "=" in key:
            key, value = key.split("=", 1)
            options[key] = _coerce(value)
        elif i + 1 < len(tokens) and (tokens[i + 1] == "-" or not tokens[i + 1].startswith("-")):
            options[key] = _coerce(tokens[i + 1])
            i += 1
        else:
            options[key] = True
        i += 1
    return options


def _log_progress(record: ProgressRecord) -> None:
    get_logger("usenet_post.progress").info(
        f"{record.posted}/{record.articles} posted, {record.read} read, "
        f"{record.checked} checked ({record.files} file(s), {record.total_size or '?'})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Post local or rclone-remote files to Usenet as one NZB",
        epilog="Any other --flag is passed through to the posting engine; put such flags after the sources.",
    )
    parser.add_argument('sources', nargs='+', help='Local path or remote:path to post')
    parser.add_argument('--out', '-o', default='-', help='NZB destination (default: - for stdout)')
    parser.add_argument('--archive', action='store_true', help='Bundle all files into one tar')
    parser.add_argument('--filename', help='Name to post the file(s) as')
    parser.add_argument('--config', type=Path, help='Config YAML file')
    parser.add_argument('--show-progress', action='store_true', help='Log decoded progress')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args, passthrough = parser.parse_known_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logger(level=log_level)
    logger = get_logger(__name__)

    try:
        if args.out and args.out != '-' and len(args.sources) > 1:
            # Every job would truncate the same file.
            raise PostingError(f"--out {args.out} takes a single source, got {len(args.sources)}")
        options = parse_passthrough(passthrough)
        options['out'] = args.out
        if args.archive:
            options['archive'] = True
        if args.filename:
            options['filename'] = args.filename
        if args.show_progress:
            options['progress'] = _log_progress

        settings = ConfigLoader(config_path=args.config).load()
        poster = Poster(settings)

        status = 0
        for source in args.sources:
            result = poster.post(source, options)
            if isinstance(result, EngineProcess):
                if result.wait() != 0:
                    status = 1
            else:
                sys.stdout.buffer.write(result)
                sys.stdout.buffer.flush()
        return status

    except PostingError as e:
        logger.error(f"Posting error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
