"""Shared utilities package."""

from usenet_post.shared.logging import setup_logger, get_logger
from usenet_post.shared.metrics import MetricsCollector

__all__ = [
    "setup_logger",
    "get_logger",
    "MetricsCollector",
]
