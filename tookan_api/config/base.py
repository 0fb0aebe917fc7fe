import os
import logging
from pathlib import Path
from typing import Mapping, Self

import toml

from tookan_api.config.sections import Django, Sync, Tookan
from tookan_api.config.serializable import Serializable
from tookan_api.type_defs import JsonObject, JsonValue

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tookan-api" / "config.toml"


class AppSettings(Serializable):
    """Process-wide settings loaded from ``config.toml``.

    The file is created on first use and rewritten after every load, so new
    keys appear with their defaults for the operator to fill in.
    """

    _instance = None
    debug: bool = False
    django: Django
    tookan: Tookan
    sync: Sync

    def __init__(self) -> None:
        self.django = Django()
        self.tookan = Tookan()
        self.sync = Sync()
        if not self.config_file_path.exists():
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_file_path.touch()

        self.load()

    @classmethod
    def get_instance(cls) -> Self:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def config_file_path(self) -> Path:
        configured_path = os.getenv("TOOKAN_CONFIG_FILE") or os.getenv("CONFIG_FILE")
        if configured_path:
            return Path(configured_path).expanduser()
        return DEFAULT_CONFIG_PATH

    def load(self) -> None:
        try:
            with self.config_file_path.open() as file:
                self.from_dict(toml.load(file))
        except (OSError, toml.TomlDecodeError) as error:
            logger.exception("Error loading configuration from %s: %s", self.config_file_path, error)
        self.save()

    def save(self) -> None:
        data = self.sort_dict(self.to_dict())
        try:
            with self.config_file_path.open("w") as file:
                toml.dump(data, file)
        except OSError as error:
            logger.exception("Error saving configuration to %s: %s", self.config_file_path, error)

    def sort_dict(self, d: Mapping[str, JsonValue]) -> JsonObject:
        sorted_dict: JsonObject = {}
        for key in sorted(d.keys()):
            value = d[key]
            sorted_dict[key] = self.sort_dict(value) if isinstance(value, dict) else value
        return sorted_dict
