"""Tree construction: listing, filtering, ordering, and status annotation.

``TreeBuilder`` owns the per-run context (ignore-rule cache, status cache,
optional worker pool). Each directory is listed with one ``scandir`` call,
its children are classified, filtered and sorted once, and subdirectories are
queued until the depth bound. Size aggregation and directory-status folding
run as post-passes over the finished tree.
"""

from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path

import structlog

from ..entry_model.fs import list_directory_entries, scan_root, sort_entries
from ..entry_model.types import EntryKind
from ..errors import WARNING_ACCESS, TreeWarning, describe_os_error
from ..git_status import GIT_MARKER, GitStatus, StatusCache, StatusMap, StatusRanking, find_repository_root
from ..gitignore import IgnoreRuleCache, RuleChain, should_include
from .sizes import compute_sizes
from .types import BuildOptions, BuildResult, TreeNode

logger = structlog.get_logger(__name__)

# One pending directory: node to fill, inherited rule chain, active status map.
_Job = tuple[TreeNode, RuleChain, StatusMap | None]


class TreeBuilder:
    """Builds one annotated tree for one invocation root."""

    def __init__(
        self,
        root_path: Path,
        options: BuildOptions | None = None,
        *,
        status_cache: StatusCache | None = None,
    ) -> None:
        self.root_path = Path(root_path)
        self.options = options or BuildOptions()
        self.ranking = StatusRanking(self.options.status_precedence)
        self.status_cache = status_cache or StatusCache(
            include_ignored=self.options.show_all,
            ranking=self.ranking,
        )
        self.ignore_cache: IgnoreRuleCache | None = None
        self.repository_root: Path | None = None
        # Unreadable directories per repository root, with the map that covered them.
        self._unreadable: dict[Path, tuple[StatusMap, list[Path]]] = {}
        self._unreadable_lock = threading.Lock()

    def build(self) -> BuildResult:
        """Build the tree; raises ``InvalidRootError`` before any traversal."""
        root_entry = scan_root(self.root_path)
        root_node = TreeNode(entry=root_entry, depth=0)
        root_dir = root_entry.absolute_path if root_entry.is_dir else root_entry.absolute_path.parent

        self.repository_root = find_repository_root(root_dir)
        if self.repository_root is not None:
            logger.debug("repository_found", repository=str(self.repository_root))
        self.ignore_cache = IgnoreRuleCache(
            chain_base=self.repository_root or root_dir,
            repository_root=self.repository_root,
        )

        status_map: StatusMap | None = None
        if self.options.compute_git and self.repository_root is not None:
            status_map = self.status_cache.get(self.repository_root)

        if root_entry.is_dir:
            root_chain = self._root_chain(root_node, root_dir)
            if status_map is not None:
                root_node.git_status = status_map.status_for(root_entry.absolute_path, is_dir=True)
            if self.options.descends_below(0):
                self._populate((root_node, root_chain, status_map))
        elif status_map is not None:
            root_node.git_status = status_map.status_for(root_entry.absolute_path, is_dir=False)

        if self.options.compute_git:
            if self.status_cache.failed:
                clear_git_status(root_node)
            else:
                self._drop_unreadable_rollups(root_node)
                fold_directory_status(root_node, self.ranking)
        if self.options.compute_sizes:
            compute_sizes(root_node, self.measure_unexpanded)

        warnings = [warning for node in root_node.walk() for warning in node.warnings]
        warnings.extend(self.status_cache.warnings)
        return BuildResult(
            root=root_node,
            warnings=warnings,
            repository_roots=tuple(self.status_cache.roots()) if self.options.compute_git else (),
        )

    def _root_chain(self, root_node: TreeNode, root_dir: Path) -> RuleChain:
        if self.options.show_all:
            return ()
        assert self.ignore_cache is not None
        chain = self.ignore_cache.chain_for(root_dir)
        for rule_set in chain:
            root_node.warnings.extend(self.ignore_cache.warnings_for(rule_set.directory))
        return chain

    def _child_chain(self, parent_chain: RuleChain, child: TreeNode) -> RuleChain:
        if self.options.show_all:
            return ()
        assert self.ignore_cache is not None
        directory = child.entry.absolute_path
        chain = self.ignore_cache.extend_chain(parent_chain, directory)
        child.warnings.extend(self.ignore_cache.warnings_for(directory))
        return chain

    def _drop_unreadable_rollups(self, root_node: TreeNode) -> None:
        """Recompute rollups of directories above unreadable subtrees without them."""
        if not self._unreadable:
            return
        for node in root_node.walk():
            if not node.entry.is_dir or node.listing_failed:
                continue
            if node.git_status is None or node.git_status is GitStatus.IGNORED:
                continue
            directory = node.entry.absolute_path
            for status_map, unreadable in self._unreadable.values():
                below = [path for path in unreadable if path != directory and path.is_relative_to(directory)]
                if below and status_map.relative_key(directory) is not None:
                    node.git_status = status_map.rollup_excluding(directory, below, self.ranking)

    def _populate(self, root_job: _Job) -> None:
        """Expand directories until no job is left, serially or on a pool."""
        if self.options.workers <= 1:
            pending = [root_job]
            while pending:
                pending.extend(self._expand(*pending.pop()))
            return

        with ThreadPoolExecutor(
            max_workers=self.options.workers,
            thread_name_prefix="treels-scan",
        ) as executor:
            futures: set[Future[list[_Job]]] = {executor.submit(self._expand, *root_job)}
            while futures:
                done, futures = wait(futures, return_when=FIRST_COMPLETED)
                for future in done:
                    for job in future.result():
                        futures.add(executor.submit(self._expand, *job))

    def _expand(self, node: TreeNode, chain: RuleChain, status_map: StatusMap | None) -> list[_Job]:
        """List one directory, attach its ordered children, and return subdirectory jobs."""
        directory = node.entry.absolute_path
        entries, scan_error, entry_errors = list_directory_entries(directory, node.entry.relative_path)
        if scan_error is not None:
            node.children = []
            node.listing_failed = True
            node.git_status = None
            if status_map is not None:
                with self._unreadable_lock:
                    _, paths = self._unreadable.setdefault(status_map.repository_root, (status_map, []))
                    paths.append(directory)
            message = f"cannot list directory: {describe_os_error(scan_error)}"
            node.warnings.append(TreeWarning(directory, WARNING_ACCESS, message))
            logger.warning("directory_unreadable", path=str(directory), reason=describe_os_error(scan_error))
            return []

        for child_path, exc in entry_errors:
            node.warnings.append(
                TreeWarning(child_path, WARNING_ACCESS, f"entry vanished or unreadable: {describe_os_error(exc)}")
            )

        if (
            self.options.compute_git
            and node.depth > 0
            and any(entry.name == GIT_MARKER for entry in entries)
        ):
            # Nested repository: its own status map covers this subtree.
            logger.debug("nested_repository_found", repository=str(directory))
            status_map = self.status_cache.get(directory)
            node.git_status = status_map.status_for(directory, is_dir=True)

        visible = sort_entries([entry for entry in entries if should_include(entry, chain, self.options.show_all)])
        children = [TreeNode(entry=entry, depth=node.depth + 1) for entry in visible]

        jobs: list[_Job] = []
        for child in children:
            if status_map is not None:
                child.git_status = status_map.status_for(child.entry.absolute_path, child.entry.is_dir)
            if child.entry.is_dir and self.options.descends_below(child.depth):
                jobs.append((child, self._child_chain(chain, child), status_map))
        node.children = children
        return jobs

    def measure_unexpanded(self, node: TreeNode) -> tuple[int, bool]:
        """Sum visible file sizes under a directory cut off by the depth bound.

        Applies the same visibility rules as the tree and never follows
        symlinks. Returns ``(total_bytes, partial)``.
        """
        show_all = self.options.show_all
        assert self.ignore_cache is not None
        root_chain: RuleChain = () if show_all else self.ignore_cache.chain_for(node.entry.absolute_path)
        total = 0
        partial = False
        stack: list[tuple[Path, Path, RuleChain]] = [(node.entry.absolute_path, node.entry.relative_path, root_chain)]
        while stack:
            directory, relative_directory, chain = stack.pop()
            entries, scan_error, entry_errors = list_directory_entries(directory, relative_directory)
            if scan_error is not None:
                logger.debug("size_scan_skipped", path=str(directory), reason=describe_os_error(scan_error))
                partial = True
                continue
            if entry_errors:
                partial = True
            for entry in entries:
                if not should_include(entry, chain, show_all):
                    continue
                if entry.kind is EntryKind.DIRECTORY:
                    child_chain = chain if show_all else self.ignore_cache.extend_chain(chain, entry.absolute_path)
                    stack.append((entry.absolute_path, entry.relative_path, child_chain))
                else:
                    total += entry.size
        return total, partial


def fold_directory_status(node: TreeNode, ranking: StatusRanking) -> GitStatus | None:
    """Fold child statuses into directories bottom-up and return ``node``'s status.

    A directory keeps the strongest of its rollup from the status map and its
    shown children; ignored children and unreadable subtrees do not colour
    their parent.
    """
    if node.listing_failed:
        node.git_status = None
        return None
    if node.children is None:
        return node.git_status
    status = node.git_status
    for child in node.children:
        child_status = fold_directory_status(child, ranking)
        if child_status is GitStatus.IGNORED:
            continue
        status = ranking.strongest(status, child_status)
    node.git_status = status
    return status


def clear_git_status(node: TreeNode) -> None:
    """Drop every status in the tree after a failed query."""
    for item in node.walk():
        item.git_status = None


def build_tree(root_path: Path, options: BuildOptions | None = None) -> BuildResult:
    """Build an annotated tree for ``root_path``."""
    return TreeBuilder(root_path, options).build()


__all__ = [
    "TreeBuilder",
    "fold_directory_status",
    "clear_git_status",
    "build_tree",
]
