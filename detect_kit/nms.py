from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .types import Detection


@dataclass
class NMSConfig:
    iou_threshold: float = 0.45
    max_detections: int = 100


def iou(a: Detection, b: Detection) -> float:
    x1 = max(a.x1, b.x1)
    y1 = max(a.y1, b.y1)
    x2 = min(a.x2, b.x2)
    y2 = min(a.y2, b.y2)

    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = a.area + b.area - inter
    if union == 0:
        return 0.0
    return inter / union


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy class-agnostic NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes in keep order (descending score; equal scores
    keep their input order).
    """

    if boxes.size == 0 or cfg.max_detections <= 0:
        return np.empty((0,), dtype=np.int64)

    boxes = boxes.astype(np.float64, copy=False)
    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    keep = []

    while order.size > 0 and len(keep) < cfg.max_detections:
        i = order[0]
        keep.append(i)
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
        union = areas[i] + areas[rest] - inter
        with np.errstate(divide="ignore", invalid="ignore"):
            overlap = np.where(union == 0, 0.0, inter / np.where(union == 0, 1.0, union))

        order = rest[overlap <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(detections: Sequence[Detection], cfg: NMSConfig) -> List[Detection]:
    if not detections:
        return []
    boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)
    return [detections[int(i)] for i in nms(boxes, scores, cfg)]
