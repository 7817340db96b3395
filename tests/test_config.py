import json
import tempfile
import unittest
from pathlib import Path

from pool_kit.config import load_detector_config
from pool_kit.metadata import load_class_names
from pool_kit.postprocess import PoolPostConfig


class TestDetectorConfig(unittest.TestCase):
    def _write(self, name: str, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def _write_profile(self, payload: dict) -> Path:
        return self._write("detector.json", json.dumps(payload))

    def test_load_ok(self) -> None:
        path = self._write_profile(
            {
                "schema_version": 1,
                "conf_threshold": 0.4,
                "iou_threshold": 0.6,
                "model_input_size": 320,
                "grid_size": 2100,
                "class_names": ["pool", "pond"],
                "max_detections": 50,
            }
        )
        cfg = load_detector_config(path)
        self.assertIsInstance(cfg, PoolPostConfig)
        self.assertEqual(cfg.conf_threshold, 0.4)
        self.assertEqual(cfg.iou_threshold, 0.6)
        self.assertEqual(cfg.model_input_size, 320)
        self.assertEqual(cfg.grid_size, 2100)
        self.assertEqual(cfg.class_names, ("pool", "pond"))
        self.assertEqual(cfg.resolved_num_classes, 2)
        self.assertEqual(cfg.max_detections, 50)

    def test_defaults(self) -> None:
        cfg = load_detector_config(self._write_profile({"schema_version": 1}))
        self.assertEqual(cfg, PoolPostConfig())

    def test_unknown_keys_rejected(self) -> None:
        path = self._write_profile({"schema_version": 1, "extra": 123})
        with self.assertRaises(ValueError):
            load_detector_config(path)

    def test_wrong_schema_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_detector_config(self._write_profile({"schema_version": 2}))
        with self.assertRaises(ValueError):
            load_detector_config(self._write_profile({"conf_threshold": 0.5}))

    def test_invalid_values_rejected(self) -> None:
        for payload in (
            {"schema_version": 1, "conf_threshold": 1.5},
            {"schema_version": 1, "iou_threshold": "high"},
            {"schema_version": 1, "conf_threshold": True},
            {"schema_version": 1, "model_input_size": 0},
            {"schema_version": 1, "grid_size": 84.5},
            {"schema_version": 1, "class_names": []},
            {"schema_version": 1, "class_names": "pool"},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    load_detector_config(self._write_profile(payload))

    def test_invalid_json_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_detector_config(self._write("detector.json", "{not json"))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_config(Path(tempfile.gettempdir()) / "does-not-exist-detector.json")


class TestLoadClassNames(unittest.TestCase):
    def _write(self, text: str) -> str:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "metadata.yaml"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_ordered_table(self) -> None:
        path = self._write("task: detect\nnames:\n  1: 'pond'\n  0: pool\nimgsz:\n- 640\n- 640\n")
        self.assertEqual(load_class_names(path), ("pool", "pond"))

    def test_flow_style_names_rejected(self) -> None:
        path = self._write("task: detect\nnames: {0: pool}\n")
        with self.assertRaises(ValueError):
            load_class_names(path)

    def test_missing_names_rejected(self) -> None:
        path = self._write("task: detect\nimgsz: 640\n")
        with self.assertRaises(ValueError):
            load_class_names(path)

    def test_gap_rejected(self) -> None:
        path = self._write("names:\n  0: pool\n  2: pond\n")
        with self.assertRaises(ValueError):
            load_class_names(path)


if __name__ == "__main__":
    unittest.main()
