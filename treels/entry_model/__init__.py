"""Filesystem entry model.

This package contains the non-tree primitives:
- ``Entry`` snapshots and the closed ``EntryKind`` set
- ``scandir``-based listing and classification helpers
- platform helpers for hidden flags, permissions, and owners
"""

from __future__ import annotations

from .fs import entry_from_stat, kind_from_mode, list_directory_entries, scan_root, sort_entries
from .platform import format_permissions, is_hidden, owner_label
from .types import Entry, EntryKind

__all__ = [
    "Entry",
    "EntryKind",
    "entry_from_stat",
    "kind_from_mode",
    "list_directory_entries",
    "scan_root",
    "sort_entries",
    "format_permissions",
    "is_hidden",
    "owner_label",
]
