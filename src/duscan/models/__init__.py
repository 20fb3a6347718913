"""duscan data models."""

from duscan.models.tree import TreeNode, node_name

__all__ = [
    "TreeNode",
    "node_name",
]
