from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple


MAX_IMAGE_BYTES = 10 * 1024 * 1024
MODEL_SIZE = 640
NUM_CLASSES = 80


@dataclass(frozen=True)
class PreprocessConfig:
    input_size: int = MODEL_SIZE
    max_image_bytes: int = MAX_IMAGE_BYTES
    pad_color: Tuple[int, int, int] = (114, 114, 114)
    allowed_formats: Tuple[str, ...] = ("JPEG", "PNG", "WEBP")

    def __post_init__(self) -> None:
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")
        if self.max_image_bytes <= 0:
            raise ValueError("max_image_bytes must be > 0")
        if len(self.pad_color) != 3 or any(not 0 <= c <= 255 for c in self.pad_color):
            raise ValueError("pad_color must be three values within [0, 255]")
        if not self.allowed_formats:
            raise ValueError("allowed_formats must not be empty")


@dataclass(frozen=True)
class YoloPostConfig:
    """
    Post-processing settings for a single-image YOLO output with
    4 box values + `num_classes` scores per candidate.
    """

    num_classes: int = NUM_CLASSES
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    max_detections: int = 100
    input_size: int = MODEL_SIZE

    def __post_init__(self) -> None:
        if self.num_classes <= 0:
            raise ValueError("num_classes must be > 0")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if not 0.0 < self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within (0, 1]")
        if self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")

    @property
    def stride(self) -> int:
        return 4 + self.num_classes


@dataclass(frozen=True)
class DetectorConfig:
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)
    post: YoloPostConfig = field(default_factory=YoloPostConfig)
    # Passed to ONNX Runtime verbatim; None lets the runtime pick.
    providers: Optional[Tuple[str, ...]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.preprocess.input_size != self.post.input_size:
            raise ValueError("preprocess.input_size and post.input_size must match")


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string if provided")
    return value


def _str_tuple(value: object, key: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) and item.strip() for item in value):
        raise ValueError(f"{key} must be a list of non-empty strings")
    return tuple(item.strip() for item in value)


def _check_keys(payload: Dict[str, Any], allowed: Sequence[str], where: str) -> None:
    unknown = sorted(set(payload.keys()) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {where} keys: {unknown}")


def detector_config_from_dict(payload: Dict[str, Any]) -> DetectorConfig:
    _check_keys(payload, ("input_size", "preprocess", "post", "providers", "input_name", "output_name"), "config")

    size = _require_int(payload, "input_size") if "input_size" in payload else MODEL_SIZE

    pre_raw = payload.get("preprocess", {})
    if not isinstance(pre_raw, dict):
        raise ValueError("preprocess must be an object")
    _check_keys(pre_raw, ("max_image_bytes", "pad_color", "allowed_formats"), "preprocess")
    pre_kwargs: Dict[str, Any] = {"input_size": size}
    if "max_image_bytes" in pre_raw:
        pre_kwargs["max_image_bytes"] = _require_int(pre_raw, "max_image_bytes")
    if "pad_color" in pre_raw:
        color = pre_raw["pad_color"]
        if not isinstance(color, list) or len(color) != 3 or any(isinstance(c, bool) or not isinstance(c, int) for c in color):
            raise ValueError("pad_color must be a list of three integers")
        pre_kwargs["pad_color"] = tuple(color)
    if "allowed_formats" in pre_raw:
        pre_kwargs["allowed_formats"] = tuple(f.upper() for f in _str_tuple(pre_raw["allowed_formats"], "allowed_formats"))

    post_raw = payload.get("post", {})
    if not isinstance(post_raw, dict):
        raise ValueError("post must be an object")
    _check_keys(post_raw, ("num_classes", "conf_threshold", "iou_threshold", "max_detections"), "post")
    post_kwargs: Dict[str, Any] = {"input_size": size}
    for key in ("num_classes", "max_detections"):
        if key in post_raw:
            post_kwargs[key] = _require_int(post_raw, key)
    for key in ("conf_threshold", "iou_threshold"):
        if key in post_raw:
            post_kwargs[key] = _require_number(post_raw, key)

    providers = None
    if payload.get("providers") is not None:
        providers = _str_tuple(payload["providers"], "providers")

    return DetectorConfig(
        preprocess=PreprocessConfig(**pre_kwargs),
        post=YoloPostConfig(**post_kwargs),
        providers=providers,
        input_name=_optional_str(payload, "input_name"),
        output_name=_optional_str(payload, "output_name"),
    )


def load_detector_config(path: Path) -> DetectorConfig:
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")
    return detector_config_from_dict(payload)
