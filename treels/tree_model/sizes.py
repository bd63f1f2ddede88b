"""Post-order recursive size aggregation over a built tree."""

from __future__ import annotations

from collections.abc import Callable

from ..entry_model.types import EntryKind
from .types import TreeNode

UnexpandedMeasure = Callable[[TreeNode], tuple[int, bool]]


def node_contribution(node: TreeNode, measure_unexpanded: UnexpandedMeasure | None = None) -> int:
    """Return the bytes ``node`` adds to its parent's total."""
    kind = node.entry.kind
    if kind is EntryKind.DIRECTORY:
        return _aggregate_directory(node, measure_unexpanded)
    if kind is EntryKind.SYMLINK:
        # Links are never followed; the link object's own size is counted.
        return node.entry.size
    if kind is EntryKind.FILE:
        return node.entry.size
    if kind is EntryKind.OTHER:
        return node.entry.size
    raise AssertionError(f"unhandled entry kind: {kind!r}")


def _aggregate_directory(node: TreeNode, measure_unexpanded: UnexpandedMeasure | None) -> int:
    if node.aggregated_size is not None:
        return node.aggregated_size

    if node.listing_failed:
        total, partial = 0, True
    elif node.children is None:
        if measure_unexpanded is None:
            total, partial = 0, True
        else:
            total, partial = measure_unexpanded(node)
    else:
        total = 0
        partial = False
        for child in node.children:
            total += node_contribution(child, measure_unexpanded)
            partial = partial or child.size_partial

    node.aggregated_size = total
    node.size_partial = partial
    return total


def compute_sizes(root: TreeNode, measure_unexpanded: UnexpandedMeasure | None = None) -> int:
    """Fill ``aggregated_size`` on every directory under ``root``.

    Each directory is summed once; already-populated nodes are reused, so a
    second call returns the same total without recounting. Directories cut off
    by the depth bound are sized through ``measure_unexpanded`` when given.
    Returns the root's contribution (its file size when the root is a file).
    """
    return node_contribution(root, measure_unexpanded)


__all__ = [
    "UnexpandedMeasure",
    "node_contribution",
    "compute_sizes",
]
