from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Optional

from gippy.errors import ConfigDecodeError, ConfigNotFound, MissingCredential
from gippy.fileio import atomic_write_text
from gippy.models import Config
from gippy.paths import StoragePaths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigStore:
    paths: StoragePaths

    def load(self) -> Config:
        path = self.paths.config_file
        if not path.is_file():
            raise ConfigNotFound(f"No config at {path}")
        try:
            return Config.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
            raise ConfigDecodeError(f"Unreadable config at {path}: {e}") from e

    def load_or_none(self) -> Optional[Config]:
        # A corrupt config degrades to "not configured", but is logged as such
        try:
            return self.load()
        except ConfigNotFound:
            return None
        except ConfigDecodeError as e:
            logger.warning("%s; treating as not configured", e)
            return None

    def save(self, config: Config) -> None:
        atomic_write_text(self.paths.config_file, json.dumps(config.to_dict(), indent=2))

    def resolve_api_key(self, env_key: Optional[str]) -> str:
        """Environment key first, persisted key second."""
        if env_key:
            return env_key
        config = self.load_or_none()
        if config is not None and config.api_key:
            return config.api_key
        raise MissingCredential()
