"""
Single-frame YOLO object detection around an exchangeable inference backend.

Encoded image bytes are decoded and letterboxed into a (1, 3, 640, 640) tensor,
handed to a backend (ONNX Runtime by default), and the raw output is resolved,
decoded and suppressed into `Detection`s in original image coordinates.
Pre/post-processing depends only on NumPy, OpenCV and Pillow.
"""

from .types import Detection, FrameSize
from .errors import BadInput, DetectError, InvalidOutputShape, ModelError, UnsupportedFormat, http_status
from .config import DetectorConfig, PreprocessConfig, YoloPostConfig, load_detector_config
from .letterbox import LetterboxTransform, compute_letterbox, letterbox
from .preprocess import PreprocessResult, decode_image, preprocess
from .shape import CandidateMajor, ChannelMajor, FallbackInferred, resolve_output_layout, to_candidate_major
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import YoloPostprocessor, decode_detections
from .runtime import DetectPipeline, DetectResult, load_pipeline
from .metadata import COCO_CLASSES, coco_class_name, load_class_names

__all__ = [
    "Detection",
    "FrameSize",
    "BadInput",
    "DetectError",
    "InvalidOutputShape",
    "ModelError",
    "UnsupportedFormat",
    "http_status",
    "DetectorConfig",
    "PreprocessConfig",
    "YoloPostConfig",
    "load_detector_config",
    "LetterboxTransform",
    "compute_letterbox",
    "letterbox",
    "PreprocessResult",
    "decode_image",
    "preprocess",
    "CandidateMajor",
    "ChannelMajor",
    "FallbackInferred",
    "resolve_output_layout",
    "to_candidate_major",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "YoloPostprocessor",
    "decode_detections",
    "DetectPipeline",
    "DetectResult",
    "load_pipeline",
    "COCO_CLASSES",
    "coco_class_name",
    "load_class_names",
]
