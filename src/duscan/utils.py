"""Shared utility functions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from duscan.models.tree import TreeNode


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def format_size(size_bytes: int) -> str:
    """Convert a byte count to a human-readable string (``1536 -> '1.50 KB'``)."""
    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{size_bytes} B"
    return f"{value:.2f} {units[unit]}"


def display_path(path: str | os.PathLike[str]) -> str:
    """Return the absolute, symlink-resolved form of *path* for display."""
    try:
        return str(Path(path).resolve())
    except OSError:
        return os.fspath(path)


def tree_lines(
    root: TreeNode,
    total: int | None = None,
    max_depth: int = 3,
    top: int | None = 5,
) -> Iterator[str]:
    """Yield report lines for *root* and its descendants.

    Args:
        root: Tree to render.
        total: Reference size for percentages, defaults to ``root.size``.
        max_depth: Deepest level printed (the root is level 0).
        top: Children shown per directory.  ``None`` shows every
            retained child.
    """
    if total is None:
        total = root.size
    yield from _node_lines(root, total, 0, max_depth, top)


def _node_lines(node: TreeNode, total: int, depth: int, max_depth: int, top: int | None) -> Iterator[str]:
    suffix = "/" if node.is_dir else ""
    yield _line(node.percentage_of(total), node.size, depth, f"{node.name}{suffix}")

    if depth >= max_depth:
        return

    shown = node.children if top is None else node.children[:top]
    for child in shown:
        yield from _node_lines(child, total, depth + 1, max_depth, top)

    # Children cut by --top plus the ones pruned during the scan.
    hidden = node.children[len(shown):]
    rest_count = len(hidden) + node.other_count
    if rest_count:
        rest_size = sum(c.size for c in hidden) + node.other_size
        pct = rest_size / total * 100.0 if total else 0.0
        yield _line(pct, rest_size, depth + 1, f"... {rest_count:,} more")


def _line(percentage: float, size: int, depth: int, label: str) -> str:
    indent = "  " * depth
    return f"{percentage:>6.2f}% {format_size(size):>10} {indent}{label}"
