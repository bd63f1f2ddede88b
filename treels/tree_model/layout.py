"""Flatten an annotated tree into aligned render records.

Pure with respect to the filesystem and git: everything shown is read from
the already-built ``TreeNode``s. Column widths are measured across every row
of one invocation so all rows align.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from ..ansi import display_width, sanitize_terminal_text
from ..entry_model.platform import format_permissions, owner_label
from ..entry_model.types import EntryKind
from ..git_status import status_code
from .types import TreeNode

BRANCH_MIDDLE = "├── "
BRANCH_LAST = "└── "
CONTINUE_MIDDLE = "│   "
CONTINUE_LAST = "    "
SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")
NO_SIZE_LABEL = "-"
MODIFIED_FORMAT = "%d-%m-%Y %H:%M"
MODIFIED_WIDTH = len("31-12-1999 23:59")

OwnerLookup = Callable[[int | None, int | None], str]


@dataclass(frozen=True)
class ColumnWidths:
    """Widest value per column across the whole invocation."""

    name: int = 0
    size: int = 0
    status: int = 0
    owner: int = 0


@dataclass(frozen=True)
class RenderRecord:
    """One output row, decoupled from tree structure."""

    node: TreeNode
    depth: int
    prefix: str
    is_last: bool
    display_name: str
    size_label: str
    status_code: str
    permissions: str
    owner: str
    modified: str
    widths: ColumnWidths

    @property
    def is_dir(self) -> bool:
        return self.node.entry.displays_as_dir

    @property
    def label(self) -> str:
        """Connector prefix plus display name."""
        return f"{self.prefix}{self.display_name}"


def format_size(size_bytes: int) -> str:
    """Human size in decimal units (``999 B``, ``1.50 kB``)."""
    if size_bytes < 1000:
        return f"{max(0, size_bytes)} {SIZE_UNITS[0]}"
    value = float(size_bytes)
    unit_idx = 0
    while value >= 1000 and unit_idx < len(SIZE_UNITS) - 1:
        value /= 1000.0
        unit_idx += 1
    return f"{value:.2f} {SIZE_UNITS[unit_idx]}"


def size_label_for(node: TreeNode) -> str:
    """Size text for one row; unsized directories show ``-``."""
    kind = node.entry.kind
    if kind is EntryKind.DIRECTORY:
        if node.aggregated_size is None:
            return NO_SIZE_LABEL
        return format_size(node.aggregated_size)
    if kind in (EntryKind.FILE, EntryKind.SYMLINK, EntryKind.OTHER):
        return format_size(node.entry.size)
    raise AssertionError(f"unhandled entry kind: {kind!r}")


def display_name_for(node: TreeNode, root_label: str | None = None) -> str:
    """Name as shown: ``dir/``, ``link -> target``, or the plain file name."""
    entry = node.entry
    if node.depth == 0 and root_label is not None:
        return sanitize_terminal_text(root_label)
    name = sanitize_terminal_text(entry.name)
    kind = entry.kind
    if kind is EntryKind.DIRECTORY:
        return f"{name}/"
    if kind is EntryKind.SYMLINK:
        suffix = "/" if entry.target_kind is EntryKind.DIRECTORY else ""
        if entry.link_target is None:
            return f"{name}{suffix}"
        return f"{name}{suffix} -> {sanitize_terminal_text(entry.link_target)}"
    return name


def modified_label(mtime_ns: int | None) -> str:
    if mtime_ns is None:
        return " " * MODIFIED_WIDTH
    return datetime.fromtimestamp(mtime_ns / 1_000_000_000).strftime(MODIFIED_FORMAT)


def _row_fields(
    node: TreeNode,
    prefix: str,
    is_last: bool,
    root_label: str | None,
    owner_for: OwnerLookup,
) -> dict[str, object]:
    entry = node.entry
    return {
        "node": node,
        "depth": node.depth,
        "prefix": prefix,
        "is_last": is_last,
        "display_name": display_name_for(node, root_label),
        "size_label": size_label_for(node),
        "status_code": status_code(node.git_status),
        "permissions": format_permissions(entry.mode, entry.kind),
        "owner": owner_for(entry.uid, entry.gid),
        "modified": modified_label(entry.mtime_ns),
    }


def _measure(rows: Iterable[dict[str, object]]) -> ColumnWidths:
    name = size = status = owner = 0
    for row in rows:
        name = max(name, display_width(f"{row['prefix']}{row['display_name']}"))
        size = max(size, display_width(str(row["size_label"])))
        status = max(status, display_width(str(row["status_code"])))
        owner = max(owner, display_width(str(row["owner"])))
    return ColumnWidths(name=name, size=size, status=status, owner=owner)


def _finish(rows: list[dict[str, object]]) -> list[RenderRecord]:
    widths = _measure(rows)
    return [RenderRecord(widths=widths, **row) for row in rows]  # type: ignore[arg-type]


def layout(
    root: TreeNode,
    *,
    root_label: str | None = None,
    owner_for: OwnerLookup = owner_label,
) -> list[RenderRecord]:
    """Return depth-first pre-order records for ``root`` and its descendants.

    Vertical bars continue only under ancestors that still have a later
    sibling. ``root_label`` replaces the root's own name (e.g. the path the
    user typed).
    """
    rows: list[dict[str, object]] = [_row_fields(root, "", True, root_label, owner_for)]

    def visit(children: list[TreeNode], continuation: str) -> None:
        """Emit rows for ``children`` and recurse with extended continuation."""
        last_idx = len(children) - 1
        for idx, child in enumerate(children):
            last = idx == last_idx
            branch = BRANCH_LAST if last else BRANCH_MIDDLE
            rows.append(_row_fields(child, continuation + branch, last, root_label, owner_for))
            if child.children:
                visit(child.children, continuation + (CONTINUE_LAST if last else CONTINUE_MIDDLE))

    visit(root.children or [], "")
    return _finish(rows)


def flat_records(nodes: list[TreeNode], *, owner_for: OwnerLookup = owner_label) -> list[RenderRecord]:
    """Records for a plain listing of ``nodes`` without connectors."""
    last_idx = len(nodes) - 1
    rows = [_row_fields(node, "", idx == last_idx, None, owner_for) for idx, node in enumerate(nodes)]
    return _finish(rows)


__all__ = [
    "ColumnWidths",
    "RenderRecord",
    "format_size",
    "size_label_for",
    "display_name_for",
    "modified_label",
    "layout",
    "flat_records",
]
