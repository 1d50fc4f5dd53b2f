import os
from copy import deepcopy
from pathlib import Path
from threading import RLock
from typing import Any

from yaml import safe_load

from pyboot.config.config_yaml_schema import ConfigSchema

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_PATH_ENV = "PYBOOT_CONFIG"


class Config:
    """Defines application level Config"""

    def __init__(self, path: Path | None = None):
        self._lock = RLock()
        self._path: Path = Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
        self._config = {}
        self._load()

    def _load(self):
        with self._lock:
            with open(self._path, mode="r", encoding="utf-8") as _file_handle:
                _raw = safe_load(_file_handle)
            ConfigSchema.model_validate(_raw)
            self._config = _raw

    def reload(self, path: Path | None = None):
        """Reload config, optionally switching to another file."""
        with self._lock:
            if path is not None:
                self._path = Path(path)
            self._load()

    def get(self, key: str) -> Any:
        """Get parameter from config obj"""

        if not isinstance(key, str) or not key:
            raise ValueError("Key must be a non-empty str.")

        if key not in self._config:
            raise RuntimeError("Unknown key.")

        with self._lock:
            return deepcopy(self._config[key])


config = Config()
