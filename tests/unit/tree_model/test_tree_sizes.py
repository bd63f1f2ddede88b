"""Size aggregation tests over hand-built trees."""

from __future__ import annotations

import unittest
from pathlib import Path
from unittest import mock

from treels.entry_model.types import Entry, EntryKind
from treels.tree_model import TreeNode, compute_sizes, node_contribution


def _node(relative: str, kind: EntryKind, size: int = 0, depth: int = 1, children=None) -> TreeNode:
    rel = Path(relative)
    entry = Entry(name=rel.name or "root", absolute_path=Path("/root") / rel, relative_path=rel, kind=kind, size=size)
    return TreeNode(entry=entry, depth=depth, children=children)


class ComputeSizesTests(unittest.TestCase):
    def test_directory_total_is_sum_of_visible_descendants(self) -> None:
        inner = _node("a/b", EntryKind.DIRECTORY, size=4096, depth=2, children=[
            _node("a/b/c.txt", EntryKind.FILE, 7, depth=3),
        ])
        a_dir = _node("a", EntryKind.DIRECTORY, size=4096, children=[
            inner,
            _node("a/d.txt", EntryKind.FILE, 3, depth=2),
        ])
        root = _node(".", EntryKind.DIRECTORY, depth=0, children=[a_dir, _node("e.txt", EntryKind.FILE, 5)])

        total = compute_sizes(root)

        self.assertEqual(total, 15)
        self.assertEqual(inner.aggregated_size, 7)
        self.assertEqual(a_dir.aggregated_size, 10)
        self.assertEqual(root.aggregated_size, 15)
        self.assertFalse(root.size_partial)

    def test_empty_directory_totals_zero(self) -> None:
        empty = _node("empty", EntryKind.DIRECTORY, children=[])

        self.assertEqual(compute_sizes(empty), 0)
        self.assertFalse(empty.size_partial)

    def test_symlink_contributes_own_size_only(self) -> None:
        link = _node("link", EntryKind.SYMLINK, 12)

        self.assertEqual(node_contribution(link), 12)

    def test_failed_listing_is_partial_and_propagates(self) -> None:
        broken = _node("broken", EntryKind.DIRECTORY, children=[])
        broken.listing_failed = True
        root = _node(".", EntryKind.DIRECTORY, depth=0, children=[broken, _node("ok.txt", EntryKind.FILE, 9)])

        compute_sizes(root)

        self.assertEqual(broken.aggregated_size, 0)
        self.assertTrue(broken.size_partial)
        self.assertEqual(root.aggregated_size, 9)
        self.assertTrue(root.size_partial)

    def test_unexpanded_directory_uses_measurer(self) -> None:
        bounded = _node("bounded", EntryKind.DIRECTORY)
        root = _node(".", EntryKind.DIRECTORY, depth=0, children=[bounded])
        measure = mock.Mock(return_value=(42, False))

        compute_sizes(root, measure)

        measure.assert_called_once_with(bounded)
        self.assertEqual(bounded.aggregated_size, 42)
        self.assertEqual(root.aggregated_size, 42)

    def test_unexpanded_directory_without_measurer_is_partial(self) -> None:
        bounded = _node("bounded", EntryKind.DIRECTORY)

        compute_sizes(bounded)

        self.assertEqual(bounded.aggregated_size, 0)
        self.assertTrue(bounded.size_partial)

    def test_second_pass_reuses_memoized_totals(self) -> None:
        bounded = _node("bounded", EntryKind.DIRECTORY)
        root = _node(".", EntryKind.DIRECTORY, depth=0, children=[bounded])
        measure = mock.Mock(return_value=(5, False))

        first = compute_sizes(root, measure)
        second = compute_sizes(root, measure)

        self.assertEqual(first, second)
        self.assertEqual(measure.call_count, 1)


if __name__ == "__main__":
    unittest.main()
