from __future__ import annotations

import io
from typing import Tuple

import numpy as np
from PIL import Image


def encode_solid_image(
    size: Tuple[int, int],
    color=(255, 0, 0),
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a single-colour image of `size` = (width, height)."""
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def candidate_rows(n: int, num_classes: int = 80) -> np.ndarray:
    """Zeroed candidate-major (n, 4 + num_classes) output; zero scores never pass the threshold."""
    return np.zeros((n, 4 + num_classes), dtype=np.float32)


def set_candidate(rows: np.ndarray, i: int, box, class_id: int, score: float) -> None:
    rows[i, :4] = box
    rows[i, 4 + class_id] = score


class FakeBackend:
    """In-memory stand-in for an inference backend returning a fixed output."""

    input_name = "images"
    output_names = ("output0",)

    def __init__(self, output):
        self.output = output
        self.inputs = []

    def run(self, tensor):
        self.inputs.append(tensor)
        return {"output0": self.output}


def channel_major_output() -> np.ndarray:
    """(1, 84, 8400) output with two overlapping class-3 boxes at the model centre."""
    rows = candidate_rows(8400)
    set_candidate(rows, 0, (320, 320, 100, 50), class_id=3, score=0.9)
    set_candidate(rows, 1, (322, 320, 100, 50), class_id=3, score=0.6)
    return np.ascontiguousarray(rows.T)[None, ...]
