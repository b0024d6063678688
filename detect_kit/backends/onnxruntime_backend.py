from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np
import structlog

from ..errors import ModelError


PathLike = Union[str, Path]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers, passed through as given (None = ORT default)
    - input_name: override the auto-selected input name if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    Expects an NCHW float32 blob, typically shaped (1, 3, 640, 640), and returns
    every model output keyed by name. The session is created once and reused for
    each call; ORT sessions may be run concurrently from several threads.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        import onnxruntime as ort

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise ModelError(f"Model file not found: {self.model_path}", details={"model_path": str(self.model_path)})

        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(
                str(self.model_path),
                sess_options=ort.SessionOptions(),
                providers=providers,
            )
        except Exception as exc:
            raise ModelError(f"Failed to load model: {exc}", details={"model_path": str(self.model_path)}) from exc

        input_names = [i.name for i in self.session.get_inputs()]
        self.output_names = tuple(o.name for o in self.session.get_outputs())
        if not input_names:
            raise ModelError("Model has no input names")
        if not self.output_names:
            raise ModelError("Model has no output names")

        self.input_name = cfg.input_name or input_names[0]
        if self.input_name not in input_names:
            raise ModelError(f"Input name {self.input_name!r} not found. Available: {input_names}")

        logger.info(
            "model_loaded",
            model_path=str(self.model_path),
            input_names=input_names,
            output_names=list(self.output_names),
            providers=list(self.session.get_providers()),
        )

    def run(self, tensor: np.ndarray) -> Dict[str, np.ndarray]:
        outputs = self.session.run(None, {self.input_name: tensor})
        return dict(zip(self.output_names, outputs))
