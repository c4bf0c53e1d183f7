"""Configuration loading: YAML file, then environment, then caller."""

import os
import shlex
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from usenet_post.domain.exceptions import ConfigurationError
from usenet_post.shared.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "USENET_POST_"
CONFIG_ENV = "USENET_POST_CONFIG"
DEFAULT_CONFIG_FILE = Path("usenet-post.yaml")

# Engine options applied to every job unless overridden.
BUILTIN_DEFAULTS: Dict[str, Any] = {
    "check-connections": 1,
}

# USENET_POST_* names that configure this program rather than the engine.
RESERVED_ENV = {CONFIG_ENV}


@dataclass(frozen=True)
class Settings:
    """Program settings plus the engine option defaults for every job."""

    engine_command: List[str] = field(default_factory=lambda: ["nyuu"])
    rclone_command: str = "rclone"
    archive_command: str = "usenet-post-archive"
    progress_interval: str = "2s"
    defaults: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType(dict(BUILTIN_DEFAULTS)))
    source: Optional[str] = None


def parse_env_value(value: str) -> Any:
    """``true``/``false`` become bools, digit strings become ints."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered.isdigit():
        return int(lowered)
    return value


def env_option_key(name: str) -> str:
    """``USENET_POST_ARTICLE_SIZE`` -> ``article-size``."""
    return name[len(ENV_PREFIX):].lower().replace("_", "-")


class ConfigLoader:
    """Loads settings from an optional YAML file and environment variables."""

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional YAML file; defaults to ``$USENET_POST_CONFIG``
                or ``./usenet-post.yaml``
            environ: Environment to read; defaults to ``os.environ``
        """
        self.environ = dict(os.environ if environ is None else environ)
        if config_path is None and self.environ.get(CONFIG_ENV):
            config_path = Path(self.environ[CONFIG_ENV])
        self.explicit = config_path is not None
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_FILE
        self._logger = get_logger(__name__)

    def load(self) -> Settings:
        """
        Load settings. Environment variables take precedence over the file.

        Raises:
            ConfigurationError: If the file is unreadable or has the wrong shape
        """
        file_config = self._load_file()

        defaults: Dict[str, Any] = dict(BUILTIN_DEFAULTS)
        file_options = file_config.get("options") or {}
        if not isinstance(file_options, dict):
            raise ConfigurationError(f"'options' must be a mapping in {self.config_path}")
        self._apply_options(defaults, {str(k): v for k, v in file_options.items()})
        self._apply_options(defaults, self._load_options_from_env())

        engine = self.environ.get("NYUU_BIN") or file_config.get("engine") or "nyuu"
        engine_command = shlex.split(engine) if isinstance(engine, str) else [str(part) for part in engine]
        if not engine_command:
            raise ConfigurationError("engine command is empty")

        return Settings(
            engine_command=engine_command,
            rclone_command=self.environ.get("RCLONE_BIN") or file_config.get("rclone") or "rclone",
            archive_command=file_config.get("archive") or "usenet-post-archive",
            progress_interval=str(file_config.get("progress_interval") or "2s"),
            defaults=MappingProxyType(defaults),
            source=str(self.config_path) if file_config else None,
        )

    @staticmethod
    def _apply_options(defaults: Dict[str, Any], options: Mapping[str, Any]) -> None:
        """Layer options over defaults. A false value removes the flag instead of emitting it."""
        for key, value in options.items():
            if value is False:
                defaults.pop(key, None)
            else:
                defaults[key] = value

    def _load_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            if self.explicit:
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            return {}

        self._logger.info(f"Loading config from {self.config_path}")
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid config file {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
        return data

    def _load_options_from_env(self) -> Dict[str, Any]:
        """Seed engine options from ``USENET_POST_*`` variables."""
        options = {}
        for name in sorted(self.environ):
            if not name.startswith(ENV_PREFIX) or name in RESERVED_ENV:
                continue
            key = env_option_key(name)
            if key:
                options[key] = parse_env_value(self.environ[name])
        return options
