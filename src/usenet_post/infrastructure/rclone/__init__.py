"""rclone adapters."""

from usenet_post.infrastructure.rclone.lister import RcloneLister, resolve_absolute_path

__all__ = ["RcloneLister", "resolve_absolute_path"]
