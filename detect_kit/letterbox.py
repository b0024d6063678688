from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .errors import BadInput


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; resized sizes must round .5 upwards.
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Parameters of an aspect-preserving resize-and-pad into a `size` x `size` square.

    `pad_x` / `pad_y` are the left/top paddings. The right/bottom paddings take
    the remainder, so an odd leftover puts the extra pixel on the right/bottom.
    """

    ratio: float
    pad_x: int
    pad_y: int
    orig_width: int
    orig_height: int
    size: int = 640

    @property
    def resized_size(self) -> Tuple[int, int]:
        return round_half_up(self.orig_width * self.ratio), round_half_up(self.orig_height * self.ratio)

    @property
    def pad_right(self) -> int:
        return self.size - self.resized_size[0] - self.pad_x

    @property
    def pad_bottom(self) -> int:
        return self.size - self.resized_size[1] - self.pad_y

    def to_model(self, x: float, y: float) -> Tuple[float, float]:
        return x * self.ratio + self.pad_x, y * self.ratio + self.pad_y

    def to_original(self, x: float, y: float) -> Tuple[float, float]:
        return (x - self.pad_x) / self.ratio, (y - self.pad_y) / self.ratio


def compute_letterbox(width: int, height: int, size: int = 640) -> LetterboxTransform:
    if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
        raise BadInput(f"Invalid image dimensions: {width}x{height}")

    ratio = min(size / width, size / height)
    new_w = round_half_up(width * ratio)
    new_h = round_half_up(height * ratio)
    if new_w <= 0 or new_h <= 0:
        raise BadInput(
            f"Image aspect ratio too extreme to letterbox: {width}x{height}",
            details={"resized_width": new_w, "resized_height": new_h},
        )

    pad_x = (size - new_w) // 2
    pad_y = (size - new_h) // 2
    return LetterboxTransform(
        ratio=ratio,
        pad_x=pad_x,
        pad_y=pad_y,
        orig_width=int(width),
        orig_height=int(height),
        size=size,
    )


def letterbox(
    image: np.ndarray,
    transform: LetterboxTransform,
    color: Tuple[int, int, int] = (114, 114, 114),
) -> np.ndarray:
    """
    Resize `image` (H, W, 3) and pad it to a square as described by `transform`.
    """

    h, w = image.shape[:2]
    if (w, h) != (transform.orig_width, transform.orig_height):
        raise ValueError(
            f"Image is {w}x{h} but transform was computed for {transform.orig_width}x{transform.orig_height}"
        )

    resized_w, resized_h = transform.resized_size
    if (w, h) != (resized_w, resized_h):
        interpolation = cv2.INTER_AREA if transform.ratio < 1.0 else cv2.INTER_CUBIC
        image = cv2.resize(image, (resized_w, resized_h), interpolation=interpolation)

    return cv2.copyMakeBorder(
        image,
        transform.pad_y,
        transform.pad_bottom,
        transform.pad_x,
        transform.pad_right,
        cv2.BORDER_CONSTANT,
        value=color,
    )
