"""Filesystem scanning that turns ``lstat`` results into ``Entry`` snapshots."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from ..errors import InvalidRootError, describe_os_error
from .platform import is_hidden
from .types import Entry, EntryKind


def kind_from_mode(mode: int) -> EntryKind:
    """Map ``st_mode`` onto the closed ``EntryKind`` set."""
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def _symlink_details(path: Path) -> tuple[EntryKind | None, str | None]:
    """Return ``(target_kind, link_text)``; target kind is ``None`` when dangling."""
    try:
        link_text: str | None = os.readlink(path)
    except OSError:
        link_text = None
    try:
        target_kind: EntryKind | None = kind_from_mode(os.stat(path).st_mode)
    except (OSError, ValueError):
        target_kind = None
    return target_kind, link_text


def entry_from_stat(name: str, absolute_path: Path, relative_path: Path, st: os.stat_result) -> Entry:
    """Build an ``Entry`` from one ``lstat`` result."""
    kind = kind_from_mode(st.st_mode)
    target_kind: EntryKind | None = None
    link_target: str | None = None
    if kind is EntryKind.SYMLINK:
        target_kind, link_target = _symlink_details(absolute_path)
    return Entry(
        name=name,
        absolute_path=absolute_path,
        relative_path=relative_path,
        kind=kind,
        size=int(st.st_size),
        mode=stat.S_IMODE(st.st_mode),
        mtime_ns=int(st.st_mtime_ns),
        hidden=is_hidden(name, st),
        uid=getattr(st, "st_uid", None),
        gid=getattr(st, "st_gid", None),
        target_kind=target_kind,
        link_target=link_target,
    )


def scan_root(root: Path) -> Entry:
    """Resolve and classify the invocation root.

    Raises ``InvalidRootError`` when the root is missing or is neither a file
    nor a directory. The root is resolved first, so a symlinked root lists its
    target.
    """
    try:
        resolved = root.resolve(strict=True)
        st = resolved.stat()
    except (OSError, RuntimeError) as exc:
        raise InvalidRootError(root, describe_os_error(exc)) from exc

    kind = kind_from_mode(st.st_mode)
    if kind not in (EntryKind.FILE, EntryKind.DIRECTORY):
        raise InvalidRootError(root, "not a file or directory")
    return Entry(
        name=resolved.name or str(resolved),
        absolute_path=resolved,
        relative_path=Path("."),
        kind=kind,
        size=int(st.st_size),
        mode=stat.S_IMODE(st.st_mode),
        mtime_ns=int(st.st_mtime_ns),
        hidden=False,
        uid=getattr(st, "st_uid", None),
        gid=getattr(st, "st_gid", None),
    )


def list_directory_entries(
    directory: Path,
    relative_directory: Path,
) -> tuple[list[Entry], Exception | None, list[tuple[Path, OSError]]]:
    """Classify every child of ``directory`` with one ``scandir`` call.

    Returns ``(entries, scan_error, entry_errors)``. ``scan_error`` is set when
    the directory itself cannot be listed; ``entry_errors`` holds children that
    vanished or could not be stat'ed mid-listing. Entries are unfiltered and
    unsorted.
    """
    entries: list[Entry] = []
    entry_errors: list[tuple[Path, OSError]] = []
    try:
        with os.scandir(directory) as iterator:
            for child in iterator:
                child_path = Path(child.path)
                try:
                    st = child.stat(follow_symlinks=False)
                except OSError as exc:
                    entry_errors.append((child_path, exc))
                    continue
                entries.append(entry_from_stat(child.name, child_path, relative_directory / child.name, st))
    except OSError as exc:
        return [], exc, entry_errors
    return entries, None, entry_errors


def sort_entries(entries: list[Entry]) -> list[Entry]:
    """Directories first, then case-insensitive name with exact-name tiebreak."""
    return sorted(entries, key=lambda entry: (not entry.is_dir, entry.name.lower(), entry.name))


__all__ = [
    "kind_from_mode",
    "entry_from_stat",
    "scan_root",
    "list_directory_entries",
    "sort_entries",
]
