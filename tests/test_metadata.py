import tempfile
import unittest
from pathlib import Path

from detect_kit.metadata import COCO_CLASSES, coco_class_name, load_class_names


class TestMetadata(unittest.TestCase):
    def test_coco_taxonomy(self) -> None:
        self.assertEqual(len(COCO_CLASSES), 80)
        self.assertEqual(coco_class_name(0), "person")
        self.assertEqual(coco_class_name(79), "toothbrush")
        self.assertEqual(coco_class_name(80), "class 80")

    def test_load_class_names(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "metadata.yaml"
            path.write_text(
                "description: exported model\n"
                "names:\n"
                "  0: person\n"
                "  1: 'traffic light'\n"
                "  # comment\n"
                "  2: \"hard hat\"\n"
                "imgsz:\n"
                "  - 640\n",
                encoding="utf-8",
            )
            self.assertEqual(load_class_names(str(path)), {0: "person", 1: "traffic light", 2: "hard hat"})


if __name__ == "__main__":
    unittest.main()
