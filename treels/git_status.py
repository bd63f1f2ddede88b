"""Git status snapshots for tree annotation.

Queries ``git status`` once per repository root and exposes an immutable
``StatusMap``: per-path codes plus directory rollups, where every changed
path's status is merged into all of its ancestor directories.
"""

from __future__ import annotations

import shutil
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

import structlog

from .errors import WARNING_GIT_STATUS, TreeWarning

GIT_MARKER = ".git"
GIT_STATUS_TIMEOUT_SECONDS = 30.0

logger = structlog.get_logger(__name__)


class GitStatus(Enum):
    """Status of a path relative to the last recorded repository state."""

    CLEAN = "clean"
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    CONFLICTED = "conflicted"


# Strongest first.
STATUS_PRECEDENCE: tuple[GitStatus, ...] = (
    GitStatus.CONFLICTED,
    GitStatus.DELETED,
    GitStatus.MODIFIED,
    GitStatus.ADDED,
    GitStatus.RENAMED,
    GitStatus.UNTRACKED,
    GitStatus.IGNORED,
    GitStatus.CLEAN,
)

STATUS_CODES: dict[GitStatus, str] = {
    GitStatus.CLEAN: " ",
    GitStatus.MODIFIED: "M",
    GitStatus.ADDED: "A",
    GitStatus.DELETED: "D",
    GitStatus.RENAMED: "R",
    GitStatus.UNTRACKED: "?",
    GitStatus.IGNORED: "I",
    GitStatus.CONFLICTED: "C",
}

_UNMERGED_PAIRS = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})
_LETTER_STATUS = {
    "M": GitStatus.MODIFIED,
    "T": GitStatus.MODIFIED,
    "A": GitStatus.ADDED,
    "C": GitStatus.ADDED,
    "D": GitStatus.DELETED,
    "R": GitStatus.RENAMED,
    "U": GitStatus.CONFLICTED,
}


class StatusRanking:
    """Orders statuses by a precedence sequence, strongest first."""

    def __init__(self, precedence: Sequence[GitStatus] = STATUS_PRECEDENCE) -> None:
        missing = [status for status in GitStatus if status not in precedence]
        self.precedence = tuple(precedence) + tuple(missing)
        self._rank = {status: len(self.precedence) - idx for idx, status in enumerate(self.precedence)}

    def rank(self, status: GitStatus) -> int:
        return self._rank[status]

    def strongest(self, first: GitStatus | None, second: GitStatus | None) -> GitStatus | None:
        """Return the higher-precedence status; ``None`` loses to anything."""
        if first is None:
            return second
        if second is None:
            return first
        return first if self._rank[first] >= self._rank[second] else second


DEFAULT_RANKING = StatusRanking()


def status_code(status: GitStatus | None) -> str:
    """Return the one-letter display code (blank for clean or no status)."""
    if status is None:
        return " "
    return STATUS_CODES[status]


def status_from_porcelain(xy: str, ranking: StatusRanking = DEFAULT_RANKING) -> GitStatus | None:
    """Map a porcelain v1 ``XY`` pair onto one ``GitStatus``."""
    if xy == "??":
        return GitStatus.UNTRACKED
    if xy == "!!":
        return GitStatus.IGNORED
    if xy in _UNMERGED_PAIRS:
        return GitStatus.CONFLICTED
    result: GitStatus | None = None
    for letter in xy:
        result = ranking.strongest(result, _LETTER_STATUS.get(letter))
    return result


def iter_porcelain_records(output: str) -> list[tuple[str, str]]:
    """Split ``git status --porcelain=v1 -z`` output into ``(xy, path)`` pairs."""
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        if len(token) < 4 or token[2] != " ":
            continue

        status = token[:2]
        path_text = token[3:]
        records.append((status, path_text))

        # For renamed/copied entries, porcelain -z appends an extra token
        # containing the source path; the first path token is the destination.
        if "R" in status or "C" in status:
            index += 1

    return records


@dataclass(frozen=True)
class StatusMap:
    """Immutable per-repository snapshot of path statuses."""

    repository_root: Path
    statuses: dict[str, GitStatus] = field(default_factory=dict)
    directory_rollups: dict[str, GitStatus] = field(default_factory=dict)
    ignored_directories: frozenset[str] = frozenset()

    def __bool__(self) -> bool:
        return bool(self.statuses) or bool(self.ignored_directories)

    def relative_key(self, path: Path) -> str | None:
        """Return the repository-relative POSIX key for ``path``."""
        try:
            relative = path.relative_to(self.repository_root).as_posix()
        except ValueError:
            return None
        return "" if relative == "." else relative

    def _under_ignored_directory(self, key: str) -> bool:
        if not self.ignored_directories:
            return False
        parts = PurePosixPath(key).parts
        for idx in range(1, len(parts) + 1):
            if "/".join(parts[:idx]) in self.ignored_directories:
                return True
        return False

    def status_for(self, path: Path, is_dir: bool) -> GitStatus | None:
        """Return the status for ``path`` or ``None`` outside this repository.

        Directories return their rollup (``None`` when nothing under them
        changed); files with no record are clean.
        """
        key = self.relative_key(path)
        if key is None or key == GIT_MARKER or key.startswith(f"{GIT_MARKER}/"):
            return None
        if key in self.statuses:
            return self.statuses[key]
        if key and self._under_ignored_directory(key):
            return GitStatus.IGNORED
        if is_dir:
            return self.directory_rollups.get(key)
        return GitStatus.CLEAN

    def rollup_excluding(
        self,
        directory: Path,
        excluded: Sequence[Path],
        ranking: StatusRanking = DEFAULT_RANKING,
    ) -> GitStatus | None:
        """Recompute the rollup of ``directory`` leaving out records under ``excluded``."""
        key = self.relative_key(directory)
        if key is None:
            return None
        skipped = [skip for skip in (self.relative_key(path) for path in excluded) if skip]
        status: GitStatus | None = None
        for path_key, path_status in self.statuses.items():
            if path_status is GitStatus.IGNORED:
                continue
            if key and path_key != key and not path_key.startswith(f"{key}/"):
                continue
            if any(path_key == skip or path_key.startswith(f"{skip}/") for skip in skipped):
                continue
            status = ranking.strongest(status, path_status)
        return status


def build_status_map(
    repository_root: Path,
    records: list[tuple[str, str]],
    ranking: StatusRanking = DEFAULT_RANKING,
) -> StatusMap:
    """Fold porcelain records into a ``StatusMap`` with directory rollups."""
    statuses: dict[str, GitStatus] = {}
    rollups: dict[str, GitStatus] = {}
    ignored_directories: set[str] = set()

    for xy, raw_path in records:
        if not raw_path:
            continue
        status = status_from_porcelain(xy, ranking)
        if status is None:
            continue
        if raw_path.endswith("/"):
            key = raw_path.rstrip("/")
            if status is GitStatus.IGNORED:
                ignored_directories.add(key)
                continue
        else:
            key = raw_path
        statuses[key] = ranking.strongest(statuses.get(key), status) or status

        parent = PurePosixPath(key).parent
        while True:
            parent_key = "" if str(parent) == "." else parent.as_posix()
            # Ignored descendants do not colour their parents.
            if status is not GitStatus.IGNORED:
                rollups[parent_key] = ranking.strongest(rollups.get(parent_key), status) or status
            if parent_key == "":
                break
            parent = parent.parent

    return StatusMap(
        repository_root=repository_root,
        statuses=statuses,
        directory_rollups=rollups,
        ignored_directories=frozenset(ignored_directories),
    )


def find_repository_root(path: Path) -> Path | None:
    """Search upward from ``path`` for a directory holding a ``.git`` marker."""
    current = path if path.is_dir() else path.parent
    while True:
        if (current / GIT_MARKER).exists():
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


class GitStatusError(RuntimeError):
    """Status query failed for a repository root."""


def _run_git(repo_root: Path, args: list[str], timeout_seconds: float) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["git", "-C", str(repo_root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise GitStatusError(f"git could not run: {exc}") from exc


def load_status(
    repository_root: Path,
    *,
    include_ignored: bool = False,
    ranking: StatusRanking = DEFAULT_RANKING,
    timeout_seconds: float = GIT_STATUS_TIMEOUT_SECONDS,
) -> StatusMap:
    """Query git once for every changed path under ``repository_root``.

    Raises ``GitStatusError`` when git is unavailable or the query fails.
    """
    if shutil.which("git") is None:
        raise GitStatusError("git executable not found")

    args = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]
    if include_ignored:
        args.append("--ignored=matching")
    proc = _run_git(repository_root, args, timeout_seconds)
    if proc.returncode != 0:
        message = (proc.stderr or "").strip().splitlines()
        raise GitStatusError(message[0] if message else f"git status exited with {proc.returncode}")

    records = iter_porcelain_records(proc.stdout)
    logger.debug("git_status_loaded", repository=str(repository_root), records=len(records))
    return build_status_map(repository_root, records, ranking)


class StatusCache:
    """Per-run, load-once cache of ``StatusMap`` keyed by repository root.

    The first caller for a root runs the query while later callers for the
    same root wait on that root's lock and then share the frozen result. Any
    failure flips ``failed`` so the run can drop status everywhere.
    """

    def __init__(
        self,
        *,
        include_ignored: bool = False,
        ranking: StatusRanking = DEFAULT_RANKING,
        loader: Callable[..., StatusMap] | None = None,
    ) -> None:
        self.include_ignored = include_ignored
        self.ranking = ranking
        self._loader = loader or load_status
        self._maps: dict[Path, StatusMap] = {}
        self._key_locks: dict[Path, threading.Lock] = {}
        self._lock = threading.Lock()
        self.failed = False
        self.warnings: list[TreeWarning] = []

    def _lock_for(self, repository_root: Path) -> threading.Lock:
        with self._lock:
            key_lock = self._key_locks.get(repository_root)
            if key_lock is None:
                key_lock = threading.Lock()
                self._key_locks[repository_root] = key_lock
            return key_lock

    def get(self, repository_root: Path) -> StatusMap:
        """Return the status map for ``repository_root``, loading it at most once."""
        cached = self._maps.get(repository_root)
        if cached is not None:
            return cached
        with self._lock_for(repository_root):
            cached = self._maps.get(repository_root)
            if cached is not None:
                return cached
            try:
                status_map = self._loader(
                    repository_root,
                    include_ignored=self.include_ignored,
                    ranking=self.ranking,
                )
            except GitStatusError as exc:
                logger.warning("git_status_unavailable", repository=str(repository_root), reason=str(exc))
                with self._lock:
                    self.failed = True
                    self.warnings.append(
                        TreeWarning(repository_root, WARNING_GIT_STATUS, f"git status unavailable: {exc}")
                    )
                status_map = StatusMap(repository_root=repository_root)
            self._maps[repository_root] = status_map
            return status_map

    @property
    def load_count(self) -> int:
        return len(self._maps)

    def roots(self) -> list[Path]:
        """Repository roots queried so far, sorted."""
        with self._lock:
            return sorted(self._maps)


__all__ = [
    "GitStatus",
    "STATUS_PRECEDENCE",
    "STATUS_CODES",
    "StatusRanking",
    "DEFAULT_RANKING",
    "status_code",
    "status_from_porcelain",
    "iter_porcelain_records",
    "StatusMap",
    "build_status_map",
    "find_repository_root",
    "GitStatusError",
    "load_status",
    "StatusCache",
]
