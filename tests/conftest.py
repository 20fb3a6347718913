"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from duscan.settings import Settings


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Point the settings store at a temp directory and drop the cached instance."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr(Settings, "_instance", None)
    return config_home / "duscan" / "settings.json"


@pytest.fixture
def make_tree(tmp_path):
    """Build a directory tree from a nested dict.

    Integers become files of that many bytes, dicts become directories::

        make_tree({"a": 100, "c": {"d": 50}})
    """

    def _make(layout: dict, root: Path | None = None) -> Path:
        base = root or (tmp_path / "root")
        base.mkdir(parents=True, exist_ok=True)
        for name, entry in layout.items():
            target = base / name
            if isinstance(entry, dict):
                _make(entry, target)
            else:
                target.write_bytes(b"x" * entry)
        return base

    return _make


@pytest.fixture
def sample_tree(make_tree):
    """root/{a: 100 B, b: 200 B, c/{d: 50 B}}"""
    return make_tree({"a": 100, "b": 200, "c": {"d": 50}})
