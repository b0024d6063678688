from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import structlog
from PIL import Image, UnidentifiedImageError

from .config import MAX_IMAGE_BYTES, PreprocessConfig
from .errors import BadInput, UnsupportedFormat
from .letterbox import LetterboxTransform, compute_letterbox, letterbox


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    tensor: np.ndarray  # (1, 3, S, S) float32, RGB planes in [0, 1]
    transform: LetterboxTransform
    image_format: str

    @property
    def orig_size(self) -> Tuple[int, int]:
        return self.transform.orig_width, self.transform.orig_height


_HIGH_BIT_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode in _HIGH_BIT_MODES:
        # 16-bit greyscale keeps its top byte; a direct convert saturates at 255.
        wide = np.asarray(img).astype(np.uint32)
        img = Image.fromarray((np.clip(wide, 0, 65535) >> 8).astype(np.uint8))
    return img.convert("RGB")


def decode_image(
    data: bytes,
    max_bytes: int = MAX_IMAGE_BYTES,
    allowed_formats: Sequence[str] = ("JPEG", "PNG", "WEBP"),
) -> Tuple[np.ndarray, str]:
    """
    Validate and decode an encoded image.

    Returns:
        image: (H, W, 3) uint8 RGB array, alpha dropped
        image_format: Pillow format name (e.g. "JPEG")
    """

    if data is None or len(data) == 0:
        raise BadInput("Empty image buffer")
    if len(data) > max_bytes:
        raise BadInput(
            f"Image too large: {len(data)} bytes (max: {max_bytes})",
            details={"size": len(data), "max_size": max_bytes},
        )

    try:
        img = Image.open(io.BytesIO(data))
    except UnidentifiedImageError as exc:
        raise UnsupportedFormat(f"Failed to parse image: {exc}") from exc
    except Image.DecompressionBombError as exc:
        raise BadInput(f"Image dimensions too large: {exc}") from exc

    fmt = (img.format or "").upper()
    if fmt == "MPO":
        # Multi-picture camera JPEG; the primary frame is a baseline JPEG.
        img.seek(0)
        fmt = "JPEG"
    if fmt not in {f.upper() for f in allowed_formats}:
        raise UnsupportedFormat(
            f"Unsupported image format: {img.format or 'unknown'}",
            details={"allowed_formats": list(allowed_formats)},
        )

    width, height = img.size
    if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
        raise BadInput(f"Invalid image dimensions: {width}x{height}")

    try:
        rgb = _to_rgb(img)
    except (OSError, ValueError, SyntaxError) as exc:
        # Header parsed but pixel data is truncated or corrupt.
        raise UnsupportedFormat(f"Failed to decode image: {exc}") from exc

    return np.asarray(rgb, dtype=np.uint8), fmt


def to_input_tensor(image: np.ndarray) -> np.ndarray:
    """
    HWC uint8 RGB -> (1, 3, H, W) float32 in [0, 1].
    """

    blob = image.astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob)


def preprocess(data: bytes, cfg: PreprocessConfig = PreprocessConfig()) -> PreprocessResult:
    image, fmt = decode_image(data, max_bytes=cfg.max_image_bytes, allowed_formats=cfg.allowed_formats)
    orig_h, orig_w = image.shape[:2]

    transform = compute_letterbox(orig_w, orig_h, size=cfg.input_size)
    padded = letterbox(image, transform, color=cfg.pad_color)
    tensor = to_input_tensor(padded)

    logger.debug(
        "preprocessed",
        image_format=fmt,
        orig_width=orig_w,
        orig_height=orig_h,
        ratio=transform.ratio,
        pad_x=transform.pad_x,
        pad_y=transform.pad_y,
    )
    return PreprocessResult(tensor=tensor, transform=transform, image_format=fmt)
