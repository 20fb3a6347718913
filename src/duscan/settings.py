"""Scan and report options persisted as JSON."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from duscan.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "duscan"
_SETTINGS_FILE = "settings.json"

_MISSING = object()


@dataclass(frozen=True, slots=True)
class Option:
    """A recognised settings key and the values it accepts."""

    key: str
    default: Any
    kind: type
    minimum: int | None = None
    nullable: bool = False

    def check(self, value: Any) -> Any:
        """Return *value* unchanged if it is valid for this option.

        Raises:
            ValueError: If the type or range is wrong.
        """
        if value is None:
            if self.nullable:
                return None
            raise ValueError(f"{self.key} cannot be null")
        # bool subclasses int, so compare exact types.
        if type(value) is not self.kind:
            raise ValueError(f"{self.key} must be of type {self.kind.__name__}, got {value!r}")
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"{self.key} must be >= {self.minimum}, got {value!r}")
        return value


OPTIONS: dict[str, Option] = {
    opt.key: opt
    for opt in (
        # null keeps every child / uses the default worker count / prints every child
        Option("scan.max_children", 100, int, minimum=0, nullable=True),
        Option("scan.workers", None, int, minimum=1, nullable=True),
        Option("scan.follow_symlinks", False, bool),
        Option("display.depth", 3, int, minimum=0),
        Option("display.top", 5, int, minimum=1, nullable=True),
    )
}

DEFAULTS: dict[str, Any] = {key: opt.default for key, opt in OPTIONS.items()}


class Settings:
    """Persistent settings backed by a JSON file.

    Keys use dot notation, so ``scan.max_children`` is stored as
    ``{"scan": {"max_children": ...}}``.  Keys listed in :data:`OPTIONS`
    are type-checked: :meth:`set` rejects bad values and :meth:`option`
    replaces bad stored values with the default.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for *key*, or *default* if it is not set."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def option(self, key: str) -> Any:
        """Return the validated value of a known option.

        Unset keys give the default.  Stored values of the wrong type or
        range are logged and also give the default.
        """
        opt = OPTIONS[key]
        value = self._lookup(key)
        if value is _MISSING:
            return opt.default
        try:
            return opt.check(value)
        except ValueError as e:
            log.warning("Ignoring %s in %s: %s", key, self._path, e)
            return opt.default

    def set(self, key: str, value: Any) -> None:
        """Validate *value*, store it under *key* and persist to disk.

        Raises:
            ValueError: If *key* is a known option and *value* is invalid.
        """
        if key in OPTIONS:
            OPTIONS[key].check(value)
        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[leaf] = value
        self._save()

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if not isinstance(data, dict):
            log.warning("Ignoring settings in %s: top level is not an object", self._path)
            return
        self._data = data

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)
