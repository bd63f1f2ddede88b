"""Error and warning types shared by the tree engine and CLI.

Only an invalid root aborts a run. Everything else is recorded as a
``TreeWarning`` on the affected node and collected for the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

WARNING_ACCESS = "access"
WARNING_IGNORE_RULES = "ignore_rules"
WARNING_GIT_STATUS = "git_status"


class TreelsError(Exception):
    """Base class for errors raised by treels."""


class InvalidRootError(TreelsError):
    """Root path does not exist or is neither a file nor a directory."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class TreeWarning:
    """Non-fatal problem attached to one path."""

    path: Path
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def describe_os_error(exc: BaseException) -> str:
    """Return a short human label for filesystem errors."""
    if isinstance(exc, PermissionError):
        return "permission denied"
    if isinstance(exc, FileNotFoundError):
        return "not found"
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror.lower()
    return str(exc) or exc.__class__.__name__


__all__ = [
    "WARNING_ACCESS",
    "WARNING_IGNORE_RULES",
    "WARNING_GIT_STATUS",
    "TreelsError",
    "InvalidRootError",
    "TreeWarning",
    "describe_os_error",
]
