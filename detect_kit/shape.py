"""
Output layout resolution for single-image YOLO exports.

Backends report either a channel-major `(1, 84, N)` / `(84, N)` tensor or a
candidate-major `(1, N, 84)` / `(N, 84)` one. The resolver turns the reported
dims into one of three tagged layouts; `to_candidate_major` then yields a flat
buffer where candidate `i` occupies `[i * stride, (i + 1) * stride)`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .errors import InvalidOutputShape


@dataclass(frozen=True)
class ChannelMajor:
    num_candidates: int
    needs_transpose = True


@dataclass(frozen=True)
class CandidateMajor:
    num_candidates: int
    needs_transpose = False


@dataclass(frozen=True)
class FallbackInferred:
    num_candidates: int
    needs_transpose = False


OutputLayout = Union[ChannelMajor, CandidateMajor, FallbackInferred]


def _normalize_dims(dims: Sequence[int]) -> tuple:
    if dims is None:
        raise InvalidOutputShape("Invalid output tensor shape: no dims")
    try:
        out = tuple(dims)
    except TypeError as exc:
        raise InvalidOutputShape(f"Invalid output tensor shape: {dims!r}") from exc
    if len(out) == 0:
        raise InvalidOutputShape("Invalid output tensor shape: empty dims")
    for d in out:
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)) or d < 0:
            raise InvalidOutputShape(f"Invalid output tensor shape: {list(out)!r}")
    return tuple(int(d) for d in out)


def resolve_output_layout(dims: Sequence[int], buffer_length: int, stride: int = 84) -> OutputLayout:
    shape = _normalize_dims(dims)

    layout: OutputLayout
    if len(shape) == 3 and shape[0] == 1 and shape[1] == stride:
        layout = ChannelMajor(shape[2])
    elif len(shape) == 3 and shape[0] == 1 and shape[2] == stride:
        layout = CandidateMajor(shape[1])
    elif len(shape) == 2 and shape[0] == stride:
        layout = ChannelMajor(shape[1])
    elif len(shape) == 2:
        layout = CandidateMajor(shape[0])
    else:
        layout = FallbackInferred(buffer_length // stride)

    n = layout.num_candidates
    if not math.isfinite(n) or n <= 0:
        raise InvalidOutputShape(
            f"Invalid number of detections: {n}",
            details={"dims": list(shape), "buffer_length": int(buffer_length)},
        )
    return layout


def to_candidate_major(buffer: np.ndarray, layout: OutputLayout, stride: int = 84) -> np.ndarray:
    flat = np.asarray(buffer, dtype=np.float32).reshape(-1)
    if not layout.needs_transpose:
        return flat

    n = layout.num_candidates
    needed = n * stride
    if flat.size < needed:
        # Missing source values read as zero.
        padded = np.zeros(needed, dtype=np.float32)
        padded[: flat.size] = flat
        flat = padded
    # resolved[i * stride + c] = raw[c * n + i]
    return np.ascontiguousarray(flat[:needed].reshape(stride, n).T).reshape(-1)
