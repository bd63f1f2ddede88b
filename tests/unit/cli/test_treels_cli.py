"""CLI argument, config-default, and output behavior tests.

Drives ``treels.cli.main`` end to end against temporary directories.
"""

from __future__ import annotations

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treels import cli


def _fixture(root: Path) -> None:
    (root / "a").mkdir()
    (root / "a" / "x.txt").write_bytes(b"x" * 10)
    (root / "b.txt").write_bytes(b"y" * 5)
    (root / ".hidden").write_bytes(b"z" * 3)


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        self.config_path = self.root / "no-config.json"
        self.work = self.root / "work"
        self.work.mkdir()
        _fixture(self.work)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *args: str, config_path: Path | None = None) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        code = cli.main(
            list(args),
            stdout=stdout,
            stderr=stderr,
            config_path=config_path or self.config_path,
        )
        return code, stdout.getvalue(), stderr.getvalue()

    def test_flat_listing_shows_visible_children_directories_first(self) -> None:
        code, out, err = self._run(str(self.work))

        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["a/", "b.txt"])
        self.assertEqual(err, "")

    def test_tree_mode_prints_connectors_under_root_label(self) -> None:
        code, out, _ = self._run(str(self.work), "--tree")

        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), [str(self.work), "├── a/", "│   └── x.txt", "└── b.txt"])

    def test_depth_limits_tree(self) -> None:
        _, out, _ = self._run(str(self.work), "-t", "--depth", "1")

        self.assertEqual(out.splitlines(), [str(self.work), "├── a/", "└── b.txt"])

    def test_calculate_sizes_adds_size_column(self) -> None:
        _, out, _ = self._run(str(self.work), "-s")

        self.assertEqual(out.splitlines(), ["10 B a/", " 5 B b.txt"])

    def test_all_flag_shows_hidden_entries(self) -> None:
        _, out, _ = self._run(str(self.work), "--all")

        self.assertEqual(out.splitlines(), ["a/", ".hidden", "b.txt"])

    def test_long_mode_prints_header(self) -> None:
        _, out, _ = self._run(str(self.work), "-l")

        lines = out.splitlines()
        self.assertTrue(lines[0].startswith("Permissions"))
        self.assertTrue(lines[0].endswith("Name"))
        self.assertTrue(lines[1].endswith(" a/"))
        self.assertEqual(len(lines), 3)

    def test_missing_root_exits_with_status_two(self) -> None:
        code, out, err = self._run(str(self.work / "missing"))

        self.assertEqual(code, cli.EXIT_INVALID_ROOT)
        self.assertEqual(out, "")
        self.assertIn("not found", err)

    def test_negative_depth_is_rejected_by_argument_parser(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                self._run(str(self.work), "--depth", "-1")

        self.assertEqual(ctx.exception.code, 2)

    def test_depth_without_tree_is_rejected(self) -> None:
        captured = io.StringIO()
        with mock.patch("sys.stderr", captured):
            with self.assertRaises(SystemExit) as ctx:
                self._run(str(self.work), "--depth", "1")

        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("requires -t/--tree", captured.getvalue())

    def test_config_depth_does_not_require_tree(self) -> None:
        config_path = self.root / "depth.json"
        config_path.write_text(json.dumps({"depth": 1}), encoding="utf-8")

        code, out, _ = self._run(str(self.work), config_path=config_path)

        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["a/", "b.txt"])

    def test_config_defaults_apply_and_flags_override(self) -> None:
        config_path = self.root / "config.json"
        config_path.write_text(json.dumps({"show_all": True, "calculate_sizes": "yes"}), encoding="utf-8")

        _, from_config, _ = self._run(str(self.work), config_path=config_path)
        _, overridden, _ = self._run(str(self.work), "--no-all", config_path=config_path)

        self.assertEqual(from_config.splitlines(), ["a/", ".hidden", "b.txt"])
        self.assertEqual(overridden.splitlines(), ["a/", "b.txt"])

    def test_git_failure_is_reported_as_warning(self) -> None:
        (self.work / ".git").mkdir()

        with mock.patch("treels.git_status.shutil.which", return_value=None):
            code, out, err = self._run(str(self.work), "--git")

        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["  a/", "  b.txt"])
        self.assertIn("treels: warning:", err)
        self.assertIn("git status unavailable", err)


if __name__ == "__main__":
    unittest.main()
