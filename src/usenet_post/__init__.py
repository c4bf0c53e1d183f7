"""Post local or rclone-remote files to Usenet through nyuu without downloading them first."""

from usenet_post.application.poster import post
from usenet_post.domain.models import FileEntry, JobOptions, OutputMode, ProgressRecord

__version__ = "0.3.0"

__all__ = ["post", "FileEntry", "JobOptions", "OutputMode", "ProgressRecord", "__version__"]
