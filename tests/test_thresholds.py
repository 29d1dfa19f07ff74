"""Thresholds loading, live-override persistence and validation."""

import sys
import os
import json
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

import numpy as np

from facecount.thresholds import (
    DEFAULT_THRESHOLDS,
    clone_thresholds,
    load_live_thresholds,
    load_thresholds,
    save_live_thresholds,
    validate_thresholds,
)

REPO_THRESHOLDS = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config", "thresholds.json"
)


class TestValidate(unittest.TestCase):

    def test_defaults_and_shipped_file_are_clean(self):
        self.assertEqual(validate_thresholds(DEFAULT_THRESHOLDS), [])
        with open(REPO_THRESHOLDS, encoding="utf-8") as f:
            self.assertEqual(validate_thresholds(json.load(f)), [])

    def test_missing_section_and_fields(self):
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        del th["MAR"]
        del th["EAR"]["open_threshold"]
        problems = validate_thresholds(th)
        self.assertIn("MAR section missing", problems)
        self.assertTrue(any("EAR.open_threshold" in p for p in problems))

    def test_inverted_thresholds(self):
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        th["EAR"]["close_threshold"] = 0.4
        problems = validate_thresholds(th)
        self.assertEqual(len(problems), 1)
        self.assertIn("EAR.close_threshold", problems[0])

    def test_legacy_brow_form(self):
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        th["BROW"] = {"raise_threshold": 0.55, "relax_threshold": 0.52, "min_frames": 3}
        self.assertEqual(validate_thresholds(th), [])
        th["BROW"]["relax_threshold"] = "low"
        self.assertTrue(any("BROW.relax_threshold" in p for p in validate_thresholds(th)))

    def test_missing_brow_is_allowed(self):
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        del th["BROW"]
        self.assertEqual(validate_thresholds(th), [])

    def test_not_a_dict(self):
        self.assertEqual(len(validate_thresholds([1, 2])), 1)


class TestLoadSave(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def path(self, name):
        return os.path.join(self.tmp.name, name)

    def test_load_missing_file_returns_none(self):
        with self.assertLogs("facecount.thresholds", level="WARNING"):
            self.assertIsNone(load_thresholds(self.path("nope.json")))

    def test_load_corrupt_file_returns_none(self):
        with open(self.path("bad.json"), "w") as f:
            f.write("{not json")
        with self.assertLogs("facecount.thresholds", level="WARNING"):
            self.assertIsNone(load_thresholds(self.path("bad.json")))

    def test_load_warns_about_problems_but_returns_config(self):
        with open(self.path("partial.json"), "w") as f:
            json.dump({"EAR": {"close_threshold": 0.2}}, f)
        with self.assertLogs("facecount.thresholds", level="WARNING") as logs:
            th = load_thresholds(self.path("partial.json"))
        self.assertEqual(th, {"EAR": {"close_threshold": 0.2}})
        self.assertTrue(any("MAR section missing" in line for line in logs.output))

    def test_load_shipped_file(self):
        th = load_thresholds(REPO_THRESHOLDS)
        self.assertEqual(set(th), {"EAR", "MAR", "BROW"})

    def test_live_roundtrip(self):
        path = self.path(os.path.join("nested", "live.json"))
        self.assertIsNone(load_live_thresholds(path))
        save_live_thresholds(DEFAULT_THRESHOLDS, path)
        self.assertEqual(load_live_thresholds(path), DEFAULT_THRESHOLDS)

    def test_live_save_converts_numpy_scalars(self):
        path = self.path("live.json")
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        th["EAR"]["close_threshold"] = np.float32(0.25)
        th["EAR"]["min_frames"] = np.int64(4)
        save_live_thresholds(th, path)

        loaded = load_live_thresholds(path)
        self.assertIs(type(loaded["EAR"]["min_frames"]), int)
        self.assertEqual(loaded["EAR"]["min_frames"], 4)
        self.assertAlmostEqual(loaded["EAR"]["close_threshold"], 0.25, places=6)
        self.assertEqual(validate_thresholds(th), [])

    def test_failed_live_save_keeps_previous_file(self):
        path = self.path("live.json")
        save_live_thresholds(DEFAULT_THRESHOLDS, path)

        broken = clone_thresholds(DEFAULT_THRESHOLDS)
        broken["MAR"]["open_threshold"] = object()
        with self.assertRaises(TypeError):
            save_live_thresholds(broken, path)

        self.assertEqual(load_live_thresholds(path), DEFAULT_THRESHOLDS)
        self.assertEqual(os.listdir(self.tmp.name), ["live.json"])

    def test_live_corrupt_is_ignored(self):
        path = self.path("live.json")
        with open(path, "w") as f:
            f.write("[")
        with self.assertLogs("facecount.thresholds", level="WARNING"):
            self.assertIsNone(load_live_thresholds(path))

    def test_clone_is_independent(self):
        th = clone_thresholds(DEFAULT_THRESHOLDS)
        th["EAR"]["min_frames"] = 99
        self.assertEqual(DEFAULT_THRESHOLDS["EAR"]["min_frames"], 2)


if __name__ == "__main__":
    unittest.main()
