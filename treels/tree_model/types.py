"""Tree node and build-option datatypes shared by the tree engine."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from ..entry_model.types import Entry
from ..errors import TreeWarning
from ..git_status import STATUS_PRECEDENCE, GitStatus


@dataclass(frozen=True)
class BuildOptions:
    """Configuration surface accepted by the tree builder.

    ``max_depth`` of ``None`` means unbounded. ``workers`` above one lists
    independent subdirectories on a bounded thread pool.
    """

    show_all: bool = False
    max_depth: int | None = None
    compute_git: bool = False
    compute_sizes: bool = False
    workers: int = 1
    status_precedence: tuple[GitStatus, ...] = STATUS_PRECEDENCE

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be >= 0 or None")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    def descends_below(self, depth: int) -> bool:
        """Return whether a directory at ``depth`` gets its children listed."""
        return self.max_depth is None or depth < self.max_depth


@dataclass
class TreeNode:
    """One entry plus traversal-derived annotations.

    ``children`` is ``None`` for non-directories and for directories cut off
    by the depth bound, and a (possibly empty) list for traversed directories.
    """

    entry: Entry
    depth: int
    children: list[TreeNode] | None = None
    git_status: GitStatus | None = None
    aggregated_size: int | None = None
    size_partial: bool = False
    listing_failed: bool = False
    warnings: list[TreeWarning] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def is_dir(self) -> bool:
        return self.entry.is_dir

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children or ():
            yield from child.walk()

    def find(self, relative_path: str | Path) -> TreeNode | None:
        """Return the descendant at ``relative_path`` (POSIX or ``Path``)."""
        target = Path(relative_path)
        for node in self.walk():
            if node.entry.relative_path == target:
                return node
        return None


@dataclass
class BuildResult:
    """Complete tree plus every warning collected during the run."""

    root: TreeNode
    warnings: list[TreeWarning] = field(default_factory=list)
    repository_roots: tuple[Path, ...] = ()


__all__ = [
    "BuildOptions",
    "TreeNode",
    "BuildResult",
]
