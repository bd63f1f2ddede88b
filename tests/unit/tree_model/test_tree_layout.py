"""Layout tests: connectors, display names, labels, and column widths."""

from __future__ import annotations

import unittest
from pathlib import Path

from treels.entry_model.types import Entry, EntryKind
from treels.git_status import GitStatus
from treels.tree_model import TreeNode, flat_records, format_size, layout
from treels.tree_model.layout import display_name_for, size_label_for


def _owner(_uid: int | None, _gid: int | None) -> str:
    return "me staff"


def _node(relative: str, kind: EntryKind = EntryKind.FILE, size: int = 0, children=None, **entry_fields) -> TreeNode:
    rel = Path(relative)
    depth = 0 if relative == "." else len(rel.parts)
    entry = Entry(
        name=rel.name or "project",
        absolute_path=Path("/project") / rel,
        relative_path=rel,
        kind=kind,
        size=size,
        mtime_ns=0,
        **entry_fields,
    )
    return TreeNode(entry=entry, depth=depth, children=children)


def _sample_tree() -> TreeNode:
    return _node(
        ".",
        EntryKind.DIRECTORY,
        children=[
            _node(
                "a",
                EntryKind.DIRECTORY,
                children=[
                    _node("a/x.txt", size=10),
                    _node("a/inner", EntryKind.DIRECTORY, children=[_node("a/inner/deep.txt", size=1)]),
                ],
            ),
            _node("b.txt", size=5),
        ],
    )


class LayoutTests(unittest.TestCase):
    def test_preorder_rows_with_connectors(self) -> None:
        records = layout(_sample_tree(), owner_for=_owner)

        self.assertEqual(
            [record.label for record in records],
            [
                "project/",
                "├── a/",
                "│   ├── x.txt",
                "│   └── inner/",
                "│       └── deep.txt",
                "└── b.txt",
            ],
        )
        self.assertEqual([record.depth for record in records], [0, 1, 2, 2, 3, 1])
        self.assertEqual([record.is_last for record in records], [True, False, False, True, True, True])

    def test_root_label_replaces_root_name(self) -> None:
        records = layout(_sample_tree(), root_label=".", owner_for=_owner)

        self.assertEqual(records[0].label, ".")
        self.assertEqual(records[1].label, "├── a/")

    def test_widths_cover_every_row(self) -> None:
        records = layout(_sample_tree(), owner_for=_owner)

        widths = records[0].widths
        self.assertTrue(all(record.widths is widths for record in records))
        self.assertEqual(widths.name, len("│       └── deep.txt"))
        self.assertEqual(widths.size, len("10 B"))
        self.assertEqual(widths.owner, len("me staff"))

    def test_wide_characters_count_two_columns(self) -> None:
        root = _node(".", EntryKind.DIRECTORY, children=[_node("日本.txt")])

        records = layout(root, owner_for=_owner)

        self.assertEqual(records[0].widths.name, len("└── ") + 4 + len(".txt"))

    def test_flat_records_have_no_connectors(self) -> None:
        tree = _sample_tree()
        assert tree.children is not None

        records = flat_records(tree.children, owner_for=_owner)

        self.assertEqual([record.label for record in records], ["a/", "b.txt"])
        self.assertEqual(records[0].widths.name, 5)

    def test_status_code_column(self) -> None:
        tree = _sample_tree()
        tree.git_status = GitStatus.MODIFIED
        assert tree.children is not None
        tree.children[1].git_status = GitStatus.UNTRACKED

        records = layout(tree, owner_for=_owner)

        self.assertEqual(records[0].status_code, "M")
        self.assertEqual(records[1].status_code, " ")
        self.assertEqual(records[-1].status_code, "?")


class DisplayNameTests(unittest.TestCase):
    def test_symlink_shows_target(self) -> None:
        link = _node("link", EntryKind.SYMLINK, target_kind=EntryKind.FILE, link_target="real.txt")
        dir_link = _node("dlink", EntryKind.SYMLINK, target_kind=EntryKind.DIRECTORY, link_target="real")

        self.assertEqual(display_name_for(link), "link -> real.txt")
        self.assertEqual(display_name_for(dir_link), "dlink/ -> real")

    def test_control_characters_are_escaped(self) -> None:
        node = _node("bad\x1b[31mname")

        self.assertEqual(display_name_for(node), "bad\\x1b[31mname")


class SizeLabelTests(unittest.TestCase):
    def test_format_size_uses_decimal_units(self) -> None:
        self.assertEqual(format_size(0), "0 B")
        self.assertEqual(format_size(999), "999 B")
        self.assertEqual(format_size(1000), "1.00 kB")
        self.assertEqual(format_size(1_500_000), "1.50 MB")
        self.assertEqual(format_size(2_000_000_000), "2.00 GB")

    def test_unsized_directory_shows_dash(self) -> None:
        directory = _node("dir", EntryKind.DIRECTORY, children=[])

        self.assertEqual(size_label_for(directory), "-")
        directory.aggregated_size = 2048
        self.assertEqual(size_label_for(directory), "2.05 kB")


if __name__ == "__main__":
    unittest.main()
