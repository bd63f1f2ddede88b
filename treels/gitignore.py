"""Hierarchical ignore-file rules and visibility filtering.

Each directory's ``.gitignore``/``.ignore`` files are compiled once per run
into an ``IgnoreRuleSet``. Rule sets are chained root-to-leaf and evaluated
with last-match-wins semantics, so a deeper ``!pattern`` can re-include what
an ancestor excluded.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

import structlog
from pathspec.patterns import GitWildMatchPattern

from .entry_model.types import Entry, EntryKind
from .errors import WARNING_IGNORE_RULES, TreeWarning, describe_os_error

IGNORE_FILE_NAMES = (".gitignore", ".ignore")
REPO_EXCLUDE_FILE = Path(".git") / "info" / "exclude"
DESCENDANT_GROUP = "ps_d"

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IgnoreRule:
    """One compiled pattern line from an ignore file."""

    pattern: str
    negated: bool
    dir_only: bool
    source: Path
    compiled: GitWildMatchPattern

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Return whether this rule matches a path relative to its rule file."""
        if self.dir_only and not is_dir:
            return False
        candidate = f"{relative_path}/" if is_dir else relative_path
        match = self.compiled.regex.match(candidate)
        if match is None:
            return False
        # The compiled regex also accepts paths below the named one; only a
        # match ending at this path counts.
        if DESCENDANT_GROUP not in match.re.groupindex:
            return True
        start = match.start(DESCENDANT_GROUP)
        return start == -1 or start >= len(relative_path)


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Immutable ordered rules for one directory level."""

    directory: Path
    rules: tuple[IgnoreRule, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.rules)


RuleChain = tuple[IgnoreRuleSet, ...]


def parse_ignore_lines(lines: list[str], source: Path) -> tuple[IgnoreRule, ...]:
    """Compile ignore-file lines in order.

    Blank lines and comments are skipped. Raises ``ValueError`` for a line
    ``pathspec`` rejects so callers can discard the whole file.
    """
    rules: list[IgnoreRule] = []
    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        # Trailing spaces are insignificant unless escaped.
        if not line.endswith("\\ "):
            line = line.rstrip(" ")
        if not line or line.startswith("#"):
            continue
        compiled = GitWildMatchPattern(line)
        if compiled.include is None or compiled.regex is None:
            continue
        body = line[1:] if line.startswith("!") else line
        rules.append(
            IgnoreRule(
                pattern=line,
                negated=not compiled.include,
                dir_only=body.endswith("/"),
                source=source,
                compiled=compiled,
            )
        )
    return tuple(rules)


def load_ignore_file(path: Path) -> tuple[tuple[IgnoreRule, ...], TreeWarning | None]:
    """Read and compile one ignore file.

    Missing files give no rules and no warning; unreadable or malformed files
    give no rules and a warning.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return (), None
    except IsADirectoryError:
        return (), None
    except (OSError, UnicodeDecodeError) as exc:
        reason = "not valid UTF-8" if isinstance(exc, UnicodeDecodeError) else describe_os_error(exc)
        return (), TreeWarning(path, WARNING_IGNORE_RULES, f"ignore file unreadable: {reason}")

    try:
        rules = parse_ignore_lines(text.splitlines(), path)
    except ValueError as exc:
        return (), TreeWarning(path, WARNING_IGNORE_RULES, f"ignore file malformed: {exc}")
    return rules, None


def _is_within(path: Path, root: Path) -> bool:
    """Return whether ``path`` is at or under ``root``."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def rule_chain_matches(entry: Entry, rule_chain: RuleChain) -> bool:
    """Return whether the last matching rule in ``rule_chain`` excludes ``entry``."""
    is_dir = entry.kind is EntryKind.DIRECTORY
    excluded = False
    for rule_set in rule_chain:
        if not rule_set.rules:
            continue
        try:
            relative = entry.absolute_path.relative_to(rule_set.directory).as_posix()
        except ValueError:
            continue
        if relative in ("", "."):
            continue
        for rule in rule_set.rules:
            if rule.matches(relative, is_dir):
                excluded = not rule.negated
    return excluded


def should_include(entry: Entry, rule_chain: RuleChain, show_all: bool) -> bool:
    """Return whether ``entry`` is visible.

    ``show_all`` suspends both the hidden-file convention and ignore rules.
    """
    if show_all:
        return True
    if entry.hidden:
        return False
    return not rule_chain_matches(entry, rule_chain)


class IgnoreRuleCache:
    """Per-run, compile-once cache of rule sets keyed by directory.

    ``chain_base`` is the highest directory whose ignore files apply; it is the
    repository root when the listing root sits inside one. Concurrent first
    access to the same directory is serialized by a per-directory lock.
    """

    def __init__(self, chain_base: Path, repository_root: Path | None = None) -> None:
        self.chain_base = chain_base
        self.repository_root = repository_root
        self._rule_sets: dict[Path, IgnoreRuleSet] = {}
        self._key_locks: dict[Path, threading.Lock] = {}
        self._lock = threading.Lock()
        self._warnings: dict[Path, tuple[TreeWarning, ...]] = {}
        self.compile_count = 0

    def _lock_for(self, directory: Path) -> threading.Lock:
        with self._lock:
            key_lock = self._key_locks.get(directory)
            if key_lock is None:
                key_lock = threading.Lock()
                self._key_locks[directory] = key_lock
            return key_lock

    def _compile(self, directory: Path) -> tuple[IgnoreRuleSet, tuple[TreeWarning, ...]]:
        sources = [directory / name for name in IGNORE_FILE_NAMES]
        if self.repository_root is not None and directory == self.repository_root:
            sources.insert(0, directory / REPO_EXCLUDE_FILE)

        with self._lock:
            self.compile_count += 1
        rules: list[IgnoreRule] = []
        for source in sources:
            file_rules, warning = load_ignore_file(source)
            if warning is not None:
                logger.warning("ignore_file_skipped", path=str(source), reason=warning.message)
                return IgnoreRuleSet(directory=directory), (warning,)
            rules.extend(file_rules)

        if rules:
            logger.debug("ignore_rules_compiled", directory=str(directory), rules=len(rules))
        return IgnoreRuleSet(directory=directory, rules=tuple(rules)), ()

    def rules_for(self, directory: Path) -> IgnoreRuleSet:
        """Return the compiled rule set for ``directory``, compiling at most once."""
        cached = self._rule_sets.get(directory)
        if cached is not None:
            return cached
        with self._lock_for(directory):
            cached = self._rule_sets.get(directory)
            if cached is not None:
                return cached
            rule_set, warnings = self._compile(directory)
            if warnings:
                self._warnings[directory] = warnings
            self._rule_sets[directory] = rule_set
            return rule_set

    def chain_for(self, directory: Path) -> RuleChain:
        """Return inherited rule sets from ``chain_base`` down to ``directory``."""
        if not _is_within(directory, self.chain_base):
            return (self.rules_for(directory),)
        levels: list[Path] = []
        current = directory
        while True:
            levels.append(current)
            if current == self.chain_base:
                break
            parent = current.parent
            if parent == current:
                break
            current = parent
        return tuple(self.rules_for(level) for level in reversed(levels))

    def extend_chain(self, parent_chain: RuleChain, directory: Path) -> RuleChain:
        """Return ``parent_chain`` plus the rule set of child ``directory``."""
        return (*parent_chain, self.rules_for(directory))

    def warnings_for(self, directory: Path) -> tuple[TreeWarning, ...]:
        """Return warnings recorded while compiling ``directory``."""
        return self._warnings.get(directory, ())


__all__ = [
    "IGNORE_FILE_NAMES",
    "IgnoreRule",
    "IgnoreRuleSet",
    "RuleChain",
    "parse_ignore_lines",
    "load_ignore_file",
    "rule_chain_matches",
    "should_include",
    "IgnoreRuleCache",
]
