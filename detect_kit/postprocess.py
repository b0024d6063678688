from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import structlog

from .config import YoloPostConfig
from .letterbox import LetterboxTransform
from .nms import NMSConfig, suppress
from .shape import resolve_output_layout, to_candidate_major
from .types import Detection


logger = structlog.get_logger(__name__)


def sniff_confidence(raw: np.ndarray) -> np.ndarray:
    """
    Exports disagree on whether class scores are logits or probabilities.
    Anything outside [0, 1] is treated as a logit and squashed with a sigmoid;
    anything inside is used as-is.
    """

    raw = np.asarray(raw, dtype=np.float64)
    with np.errstate(over="ignore"):
        squashed = 1.0 / (1.0 + np.exp(-raw))
    return np.where((raw < 0) | (raw > 1), squashed, raw)


def looks_normalized(boxes: np.ndarray) -> np.ndarray:
    """
    Per-row guess whether (xc, yc, w, h) are normalized to [0, 1] rather than
    model pixels. Note the centre test is one-sided (no abs), as exports emit it.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    xc, yc, w, h = boxes.T
    return (np.abs(w) <= 2) & (np.abs(h) <= 2) & (xc <= 2) & (yc <= 2)


def decode_detections(
    buffer: np.ndarray,
    num_candidates: int,
    transform: LetterboxTransform,
    cfg: YoloPostConfig,
) -> List[Detection]:
    """
    Decode a flat candidate-major buffer into thresholded detections in
    original-image coordinates, in decode order (no suppression).
    """

    stride = cfg.stride
    flat = np.asarray(buffer).reshape(-1)
    available = min(int(num_candidates), flat.size // stride)
    if available < num_candidates:
        logger.warning(
            "output_truncated",
            expected_candidates=int(num_candidates),
            available_candidates=available,
        )
    if available <= 0:
        return []

    rows = flat[: available * stride].astype(np.float64).reshape(available, stride)
    boxes = rows[:, :4]
    class_scores = rows[:, 4:]
    class_scores = np.where(np.isnan(class_scores), -np.inf, class_scores)

    class_ids = np.argmax(class_scores, axis=1)
    max_raw = class_scores[np.arange(available), class_ids]
    confidences = sniff_confidence(max_raw)

    keep = confidences > cfg.conf_threshold
    if not np.any(keep):
        return []
    boxes, confidences, class_ids = boxes[keep], confidences[keep], class_ids[keep]

    # Normalized boxes are scaled to model pixels first.
    scale = np.where(looks_normalized(boxes), float(cfg.input_size), 1.0)[:, None]
    xc, yc, w, h = (boxes * scale).T

    # cxcywh -> xyxy in model space
    x1 = xc - w / 2
    y1 = yc - h / 2
    x2 = xc + w / 2
    y2 = yc + h / 2

    # Undo letterbox, then clamp into the original frame.
    x1 = np.clip((x1 - transform.pad_x) / transform.ratio, 0, transform.orig_width)
    x2 = np.clip((x2 - transform.pad_x) / transform.ratio, 0, transform.orig_width)
    y1 = np.clip((y1 - transform.pad_y) / transform.ratio, 0, transform.orig_height)
    y2 = np.clip((y2 - transform.pad_y) / transform.ratio, 0, transform.orig_height)

    return [
        Detection(
            x1=float(min(a, b)),
            y1=float(min(c, d)),
            x2=float(max(a, b)),
            y2=float(max(c, d)),
            confidence=float(conf),
            class_id=int(cls_id),
        )
        for a, c, b, d, conf, cls_id in zip(x1, y1, x2, y2, confidences, class_ids)
    ]


class YoloPostprocessor:
    """
    Raw single-image YOLO output -> final detections.

    Supported layouts (stride = 4 + num_classes, e.g. 84):
    - (1, 84, N) / (84, N): channel-major, e.g. 84 x 8400 for YOLOv8/11 exports
    - (1, N, 84) / (N, 84): candidate-major
    - anything else: flat buffer read as rows of `stride`
    """

    def __init__(self, cfg: YoloPostConfig = YoloPostConfig()):
        self.cfg = cfg

    def process(
        self,
        preds: np.ndarray,
        transform: LetterboxTransform,
        dims: Optional[Sequence[int]] = None,
    ) -> List[Detection]:
        """
        Args:
            preds: model output for a single image (any shape, or flat with `dims`)
            transform: letterbox used when the input tensor was built
            dims: reported output dims; defaults to `preds.shape`
        """

        p = np.asarray(preds)
        shape = tuple(p.shape) if dims is None else tuple(dims)
        stride = self.cfg.stride

        layout = resolve_output_layout(shape, p.size, stride=stride)
        rows = to_candidate_major(p, layout, stride=stride)
        candidates = decode_detections(rows, layout.num_candidates, transform, self.cfg)

        nms_cfg = NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections)
        detections = suppress(candidates, nms_cfg)

        logger.debug(
            "postprocessed",
            layout=type(layout).__name__,
            num_candidates=layout.num_candidates,
            above_threshold=len(candidates),
            kept=len(detections),
        )
        return detections
