from __future__ import annotations

import os
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from posecoach.config import CONFIG_ENV, CoachConfig, load_config


class ConfigTests(unittest.TestCase):
    def test_missing_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg = load_config(Path(tmpdir) / "absent.yaml")
            self.assertEqual(cfg, CoachConfig())
            self.assertEqual(cfg.detector.backends, ["mediapipe", "mediapipe_lite"])
            self.assertEqual(cfg.live.interval_s, 0.5)

    def test_yaml_values_are_loaded(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "posecoach.yaml"
            path.write_text(
                "schema: 1\n"
                "locale: en\n"
                f"history_path: {tmpdir}/scans.json\n"
                "detector:\n"
                "  backends: [mediapipe_lite]\n"
                "  model_complexity: 0\n"
                "live:\n"
                "  interval_s: 1.5\n",
                encoding="utf-8",
            )
            cfg = load_config(path)
            self.assertEqual(cfg.schema_version, 1)
            self.assertEqual(cfg.detector.backends, ["mediapipe_lite"])
            self.assertEqual(cfg.live.interval_s, 1.5)
            self.assertEqual(cfg.resolved_history_path(), Path(tmpdir) / "scans.json")

    def test_env_var_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "env.yaml"
            path.write_text("default_pose: front double biceps\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {CONFIG_ENV: str(path)}):
                self.assertEqual(load_config().default_pose, "front double biceps")

    def test_invalid_values_raise_value_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "bad.yaml"
            path.write_text("detector:\n  model_complexity: 7\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)

            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_empty_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.yaml"
            path.write_text("", encoding="utf-8")
            self.assertEqual(load_config(path), CoachConfig())


if __name__ == "__main__":
    unittest.main()
