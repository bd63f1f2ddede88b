"""Domain datatypes for filesystem entries observed during a listing run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EntryKind(Enum):
    """Closed set of entry kinds the engine distinguishes."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True)
class Entry:
    """One filesystem object captured from a single ``lstat``.

    ``target_kind`` is only set for symlinks and is ``None`` when the link is
    dangling. ``size`` is the link object's own size for symlinks.
    """

    name: str
    absolute_path: Path
    relative_path: Path
    kind: EntryKind
    size: int = 0
    mode: int = 0
    mtime_ns: int | None = None
    hidden: bool = False
    uid: int | None = None
    gid: int | None = None
    target_kind: EntryKind | None = None
    link_target: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def displays_as_dir(self) -> bool:
        """Directories and symlinks pointing at directories."""
        return self.kind is EntryKind.DIRECTORY or (
            self.kind is EntryKind.SYMLINK and self.target_kind is EntryKind.DIRECTORY
        )


__all__ = [
    "EntryKind",
    "Entry",
]
