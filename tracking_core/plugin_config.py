"""File-backed key-value configuration for tracking plugins."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from .exceptions import ConfigError

log = structlog.get_logger(__name__)

_MISSING = object()


class PluginConfig:
    """
    JSON configuration file addressed with dotted keys.

    ``"ga.measurementId"`` is stored as ``{"ga": {"measurementId": ...}}`` on
    disk. Defaults registered with ``add_default`` are merged in on ``load``
    and written back so every option is visible to server operators.
    """

    def __init__(self, directory: Path | str, name: str):
        filename = name if name.endswith(".json") else f"{name}.json"
        self.path = Path(directory) / filename
        self._data: dict[str, Any] = {}
        self._defaults: dict[str, Any] = {}
        self._descriptions: dict[str, str] = {}

    def add_default(self, key: str, value: Any, description: str | None = None) -> None:
        self._defaults[key] = value
        if description:
            self._descriptions[key] = description

    def descriptions(self) -> dict[str, str]:
        return dict(self._descriptions)

    def load(self) -> None:
        """
        Read the file, fill in missing defaults and persist them.

        Raises:
            ConfigError: If the file exists but is not a JSON object.
        """
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            except json.JSONDecodeError as e:
                raise ConfigError(f"Config file {self.path} is not valid JSON: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {self.path} must hold a JSON object")
            self._data = data
        else:
            self._data = {}

        missing = [key for key in self._defaults if self._lookup(key) is _MISSING]
        for key in missing:
            self.set(key, self._defaults[key])

        if missing or not self.path.exists():
            self.save()
            log.info("Config defaults written", path=str(self.path), keys=missing)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            return self._defaults.get(key) if default is None else default
        return value

    def _get_typed(self, key: str, default: Any, expected: type) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            return default
        # bool is a subclass of int; "true" must not pass as a count.
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"Config key '{key}' must be {expected.__name__}, got {type(value).__name__}",
                key=key,
            )
        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._get_typed(key, default, bool)

    def get_str(self, key: str, default: str = "") -> str:
        return self._get_typed(key, default, str)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._get_typed(key, default, int)

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, bool(value))
