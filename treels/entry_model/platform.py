"""Platform-specific metadata helpers: hidden flag, permissions, owners."""

from __future__ import annotations

import os
import stat
from functools import lru_cache

from .types import EntryKind

_FILE_ATTRIBUTE_HIDDEN = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2)

_KIND_CHARS = {
    EntryKind.DIRECTORY: "d",
    EntryKind.SYMLINK: "l",
    EntryKind.FILE: "-",
    EntryKind.OTHER: "?",
}


def is_hidden(name: str, st: os.stat_result | None = None) -> bool:
    """Return whether ``name`` follows the platform hidden-file convention."""
    if name.startswith("."):
        return True
    if os.name == "nt" and st is not None:
        attributes = getattr(st, "st_file_attributes", 0)
        return bool(attributes & _FILE_ATTRIBUTE_HIDDEN)
    return False


def format_permissions(mode: int, kind: EntryKind) -> str:
    """Render ``drwxr-xr-x`` style permission text.

    Windows ACLs do not map onto rwx bits, so a placeholder is returned there.
    """
    if os.name == "nt":
        return "-" * 10
    bits = ""
    for mask, char in (
        (0o400, "r"),
        (0o200, "w"),
        (0o100, "x"),
        (0o040, "r"),
        (0o020, "w"),
        (0o010, "x"),
        (0o004, "r"),
        (0o002, "w"),
        (0o001, "x"),
    ):
        bits += char if mode & mask else "-"
    return _KIND_CHARS[kind] + bits


@lru_cache(maxsize=256)
def _user_name(uid: int) -> str:
    try:
        import pwd

        return pwd.getpwuid(uid).pw_name
    except (ImportError, KeyError):
        return str(uid)


@lru_cache(maxsize=256)
def _group_name(gid: int) -> str:
    try:
        import grp

        return grp.getgrgid(gid).gr_name
    except (ImportError, KeyError):
        return str(gid)


def owner_label(uid: int | None, gid: int | None) -> str:
    """Return ``user group`` for long listings."""
    if uid is None or gid is None:
        return "user group"
    return f"{_user_name(uid)} {_group_name(gid)}"


__all__ = [
    "is_hidden",
    "format_permissions",
    "owner_label",
]
