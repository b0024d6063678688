from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import structlog

from .backends import InferenceBackend
from .config import DetectorConfig
from .errors import InvalidOutputShape
from .postprocess import YoloPostprocessor
from .preprocess import PreprocessResult, preprocess
from .types import Detection, FrameSize


PathLike = Union[str, Path]

logger = structlog.get_logger(__name__)


def generate_request_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class DetectResult:
    detections: List[Detection]
    frame: FrameSize
    latency_ms: float
    request_id: str = field(default_factory=generate_request_id)


class DetectPipeline:
    """
    Plug-and-play pipeline: decode + letterbox -> inference -> postprocess.

    The pipeline takes encoded image bytes (JPEG/PNG/WebP) and returns
    detections in original image coordinates. It holds no per-frame state, so
    one instance can serve frames from several threads as long as the backend
    it was given is reentrant.
    """

    def __init__(self, backend: InferenceBackend, cfg: DetectorConfig = DetectorConfig()):
        self.backend = backend
        self.cfg = cfg
        self.post = YoloPostprocessor(cfg.post)

    def preprocess(self, data: bytes) -> PreprocessResult:
        return preprocess(data, self.cfg.preprocess)

    def infer(self, prep: PreprocessResult):
        outputs = self.backend.run(prep.tensor)
        available = list(self.backend.output_names)
        if not self.cfg.output_name and not available:
            raise InvalidOutputShape("Backend reports no outputs", details={"available_outputs": []})
        output_name = self.cfg.output_name or available[0]
        if output_name not in outputs or outputs[output_name] is None:
            raise InvalidOutputShape(
                f"No output found with name '{output_name}'",
                details={"available_outputs": available},
            )
        return outputs[output_name]

    def detect(self, data: bytes, request_id: Optional[str] = None) -> DetectResult:
        request_id = request_id or generate_request_id()
        log = logger.bind(request_id=request_id)
        start = time.perf_counter()

        prep = self.preprocess(data)
        preds = self.infer(prep)
        detections = self.post.process(preds, prep.transform)

        latency_ms = (time.perf_counter() - start) * 1000.0
        log.debug("frame_detected", detections=len(detections), latency_ms=round(latency_ms, 2))
        return DetectResult(
            detections=detections,
            frame=FrameSize(prep.transform.orig_width, prep.transform.orig_height),
            latency_ms=latency_ms,
            request_id=request_id,
        )

    def __call__(self, data: bytes) -> List[Detection]:
        return self.detect(data).detections


def load_pipeline(model_path: PathLike, cfg: DetectorConfig = DetectorConfig()) -> DetectPipeline:
    """
    Create a pipeline for an ONNX model on disk.

    The backend is created here and owned by the returned pipeline; callers that
    serve many frames should create one pipeline and reuse it.
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    backend = OnnxRuntimeBackend(
        model_path,
        OnnxRuntimeBackendConfig(providers=cfg.providers, input_name=cfg.input_name),
    )
    return DetectPipeline(backend, cfg)
