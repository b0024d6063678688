import unittest

import numpy as np

from detect_kit.nms import NMSConfig, iou, nms, suppress
from detect_kit.types import Detection


def det(x1, y1, x2, y2, conf, cls=0) -> Detection:
    return Detection(x1=x1, y1=y1, x2=x2, y2=y2, confidence=conf, class_id=cls)


class TestIoU(unittest.TestCase):
    def test_overlap(self) -> None:
        self.assertAlmostEqual(iou(det(0, 0, 10, 10, 0.9), det(5, 0, 15, 10, 0.9)), 50 / 150)

    def test_disjoint(self) -> None:
        self.assertEqual(iou(det(0, 0, 10, 10, 0.9), det(20, 20, 30, 30, 0.9)), 0.0)

    def test_zero_union(self) -> None:
        self.assertEqual(iou(det(5, 5, 5, 5, 0.9), det(5, 5, 5, 5, 0.8)), 0.0)


class TestSuppress(unittest.TestCase):
    def test_keeps_higher_confidence_of_overlapping_pair(self) -> None:
        low = det(1, 1, 11, 11, 0.8, cls=2)
        high = det(0, 0, 10, 10, 0.9, cls=5)
        self.assertEqual(suppress([low, high], NMSConfig()), [high])

    def test_iou_at_threshold_is_kept(self) -> None:
        # IoU == 0.5 with threshold 0.5: only strictly greater overlaps are removed.
        a = det(0, 0, 30, 10, 0.9)
        b = det(10, 0, 40, 10, 0.8)
        self.assertAlmostEqual(iou(a, b), 0.5)
        self.assertEqual(suppress([a, b], NMSConfig(iou_threshold=0.5)), [a, b])

    def test_class_agnostic(self) -> None:
        a = det(0, 0, 10, 10, 0.9, cls=0)
        b = det(0, 0, 10, 10, 0.7, cls=1)
        self.assertEqual(suppress([a, b], NMSConfig()), [a])

    def test_ties_keep_decode_order(self) -> None:
        first = det(0, 0, 10, 10, 0.7, cls=1)
        second = det(1, 0, 11, 10, 0.7, cls=2)
        third = det(100, 100, 110, 110, 0.7, cls=3)
        self.assertEqual(suppress([first, second, third], NMSConfig()), [first, third])

    def test_zero_area_boxes_never_suppress(self) -> None:
        a = det(5, 5, 5, 5, 0.9)
        b = det(5, 5, 5, 5, 0.8)
        self.assertEqual(suppress([a, b], NMSConfig()), [a, b])

    def test_idempotent(self) -> None:
        rng = np.random.default_rng(42)
        cands = []
        for _ in range(200):
            x, y = rng.uniform(0, 600, size=2)
            w, h = rng.uniform(5, 120, size=2)
            cands.append(det(float(x), float(y), float(x + w), float(y + h), float(rng.uniform(0.5, 1.0))))
        once = suppress(cands, NMSConfig())
        self.assertEqual(suppress(once, NMSConfig()), once)
        for i, a in enumerate(once):
            for b in once[i + 1 :]:
                self.assertLessEqual(iou(a, b), 0.45)

    def test_cardinality_cap(self) -> None:
        cands = [det(20.0 * i, 0, 20.0 * i + 10, 10, 0.51 + i * 0.001) for i in range(250)]
        kept = suppress(cands, NMSConfig())
        self.assertEqual(len(kept), 100)
        self.assertEqual(kept[0], cands[-1])
        self.assertEqual(kept[-1], cands[150])

    def test_empty(self) -> None:
        self.assertEqual(suppress([], NMSConfig()), [])


class TestNmsIndices(unittest.TestCase):
    def test_returns_keep_order(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [50, 50, 60, 60], [1, 1, 10, 10]], dtype=np.float32)
        scores = np.array([0.6, 0.9, 0.8], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig()).tolist(), [1, 2])

    def test_zero_max_detections(self) -> None:
        boxes = np.array([[0, 0, 10, 10]], dtype=np.float32)
        self.assertEqual(nms(boxes, np.array([0.9]), NMSConfig(max_detections=0)).size, 0)


if __name__ == "__main__":
    unittest.main()
