"""Configuration package."""

from .loader import ConfigLoader, Settings, BUILTIN_DEFAULTS

__all__ = ["ConfigLoader", "Settings", "BUILTIN_DEFAULTS"]
