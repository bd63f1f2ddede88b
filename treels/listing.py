"""Flat (non-tree) directory listing.

A flat listing is a depth-one build: the same filtering, ordering, status
and size annotations as the tree, shown as one row per child.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from .tree_model.build import TreeBuilder
from .tree_model.types import BuildOptions, BuildResult, TreeNode


def list_directory(root_path: Path, options: BuildOptions | None = None) -> BuildResult:
    """Build the visible, ordered, annotated children of ``root_path``."""
    base = options or BuildOptions()
    return TreeBuilder(root_path, replace(base, max_depth=1)).build()


def listed_nodes(result: BuildResult) -> list[TreeNode]:
    """Rows of a flat listing: the root's children, or the root when it is a file."""
    if result.root.children is None:
        return [result.root]
    return list(result.root.children)


__all__ = ["list_directory", "listed_nodes"]
