"""Infrastructure layer: subprocess adapters for rclone, nyuu and the archiver."""
