"""Tests for read-only config loading and value validation."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from treels import config
from treels.git_status import GitStatus


class ConfigDefaultsTests(unittest.TestCase):
    def _write(self, tmp: str, data: object) -> Path:
        path = Path(tmp) / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_missing_file_gives_empty_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(config.load_defaults(Path(tmp) / "absent.json"), {})

    def test_malformed_json_gives_empty_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")

            self.assertEqual(config.load_config(path), {})

    def test_top_level_must_be_object(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, ["show_all"])

            self.assertEqual(config.load_defaults(path), {})

    def test_valid_values_are_kept(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(
                tmp,
                {
                    "show_all": True,
                    "git": False,
                    "calculate_sizes": True,
                    "color": False,
                    "depth": 2,
                    "workers": 4,
                    "status_precedence": ["untracked", "modified"],
                },
            )

            defaults = config.load_defaults(path)

            self.assertEqual(
                defaults,
                {
                    "show_all": True,
                    "git": False,
                    "calculate_sizes": True,
                    "color": False,
                    "depth": 2,
                    "workers": 4,
                    "status_precedence": (GitStatus.UNTRACKED, GitStatus.MODIFIED),
                },
            )

    def test_invalid_values_are_dropped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(
                tmp,
                {
                    "show_all": "yes",
                    "depth": -1,
                    "workers": 0,
                    "git": 1,
                    "status_precedence": ["modified", "bogus"],
                    "unknown": True,
                },
            )

            self.assertEqual(config.load_defaults(path), {})

    def test_boolean_is_not_accepted_as_depth(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, {"depth": True})

            self.assertEqual(config.load_defaults(path), {})

    def test_default_path_is_module_config_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = self._write(tmp, {"workers": 3})
            with mock.patch("treels.config.CONFIG_PATH", path):
                self.assertEqual(config.load_defaults(), {"workers": 3})


if __name__ == "__main__":
    unittest.main()
