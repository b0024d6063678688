import json
import tempfile
import unittest
from pathlib import Path

from detect_kit.config import DetectorConfig, PreprocessConfig, YoloPostConfig, load_detector_config


class TestDetectorConfig(unittest.TestCase):
    def _write(self, payload) -> Path:
        tmp = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False, encoding="utf-8")
        with tmp:
            if isinstance(payload, str):
                tmp.write(payload)
            else:
                json.dump(payload, tmp)
        self.addCleanup(Path(tmp.name).unlink)
        return Path(tmp.name)

    def test_defaults(self) -> None:
        cfg = DetectorConfig()
        self.assertEqual(cfg.preprocess.input_size, 640)
        self.assertEqual(cfg.preprocess.max_image_bytes, 10 * 1024 * 1024)
        self.assertEqual(cfg.post.stride, 84)
        self.assertEqual(cfg.post.conf_threshold, 0.5)
        self.assertEqual(cfg.post.iou_threshold, 0.45)
        self.assertEqual(cfg.post.max_detections, 100)

    def test_load_overrides(self) -> None:
        path = self._write(
            {
                "post": {"conf_threshold": 0.6, "max_detections": 20},
                "preprocess": {"allowed_formats": ["jpeg", "png"]},
                "providers": ["CPUExecutionProvider"],
                "output_name": "output0",
            }
        )
        cfg = load_detector_config(path)
        self.assertEqual(cfg.post.conf_threshold, 0.6)
        self.assertEqual(cfg.post.max_detections, 20)
        self.assertEqual(cfg.post.iou_threshold, 0.45)
        self.assertEqual(cfg.preprocess.allowed_formats, ("JPEG", "PNG"))
        self.assertEqual(cfg.providers, ("CPUExecutionProvider",))
        self.assertEqual(cfg.output_name, "output0")
        self.assertIsNone(cfg.input_name)

    def test_input_size_applies_to_both_stages(self) -> None:
        cfg = load_detector_config(self._write({"input_size": 320}))
        self.assertEqual(cfg.preprocess.input_size, 320)
        self.assertEqual(cfg.post.input_size, 320)

    def test_rejects_invalid(self) -> None:
        for payload in [
            {"unknown": 1},
            {"post": {"nms": True}},
            {"post": {"conf_threshold": "high"}},
            {"post": {"conf_threshold": 1.5}},
            {"post": {"max_detections": True}},
            {"preprocess": {"pad_color": [1, 2]}},
            {"providers": "CPUExecutionProvider"},
            {"input_size": 16},
            [],
            "{not json",
        ]:
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    load_detector_config(self._write(payload))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_config(Path("does/not/exist.json"))

    def test_mismatched_sizes(self) -> None:
        with self.assertRaises(ValueError):
            DetectorConfig(preprocess=PreprocessConfig(input_size=320), post=YoloPostConfig())


if __name__ == "__main__":
    unittest.main()
