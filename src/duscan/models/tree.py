"""Size-aggregated tree node."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Iterator


def _sort_key(node: TreeNode) -> tuple[int, str]:
    # Largest first; equal sizes fall back to name so ordering is stable.
    return (-node.size, node.name)


def node_name(path: str | os.PathLike[str]) -> str:
    """Return the last component of *path*, or the path itself if it has none."""
    text = os.fspath(path)
    return os.path.basename(os.path.normpath(text)) or text


@dataclass(slots=True)
class TreeNode:
    """A scanned file or directory.

    For a directory, ``size`` and ``file_count`` cover every child that
    was discovered, including the ones dropped by pruning.  Dropped
    children are summarised by ``other_count`` and ``other_size``.
    """

    name: str
    is_dir: bool
    size: int = 0
    file_count: int = 0
    children: list[TreeNode] = field(default_factory=list)
    other_count: int = 0
    other_size: int = 0

    @classmethod
    def file(cls, path: str | os.PathLike[str], size: int) -> TreeNode:
        """Build a leaf node for a non-directory entry."""
        return cls(name=node_name(path), is_dir=False, size=size, file_count=1)

    @classmethod
    def directory(
        cls,
        path: str | os.PathLike[str],
        children: list[TreeNode],
        max_children: int | None = None,
    ) -> TreeNode:
        """Fold completed child nodes into a directory node.

        Totals are summed over the full child list before it is sorted
        and cut down to *max_children* entries.

        Args:
            path: Directory path; only its last component is kept.
            children: Every child discovered in the directory.
                The list is sorted in place.
            max_children: Maximum number of children to retain.
                ``None`` keeps all of them.
        """
        if max_children is not None and max_children < 0:
            raise ValueError(f"max_children must be >= 0, got {max_children}")

        node = cls(name=node_name(path), is_dir=True)
        for child in children:
            node.size += child.size
            node.file_count += child.file_count

        children.sort(key=_sort_key)

        if max_children is not None and len(children) > max_children:
            pruned = children[max_children:]
            del children[max_children:]
            node.other_count = len(pruned)
            node.other_size = sum(c.size for c in pruned)

        node.children = children
        return node

    def sort_children(self) -> None:
        """Re-sort children by size, recursively.  Idempotent."""
        stack = [self]
        while stack:
            node = stack.pop()
            node.children.sort(key=_sort_key)
            stack.extend(node.children)

    def percentage_of(self, total: int) -> float:
        """Return this node's size as a percentage of *total* (0 if total is 0)."""
        if total == 0:
            return 0.0
        return self.size / total * 100.0

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and every retained descendant, parents first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation of the subtree."""
        data: dict[str, Any] = {
            "name": self.name,
            "is_dir": self.is_dir,
            "size": self.size,
            "file_count": self.file_count,
        }
        if self.is_dir:
            data["children"] = [child.to_dict() for child in self.children]
            data["other_count"] = self.other_count
            data["other_size"] = self.other_size
        return data
