"""
Inference backends for detect_kit.

Backends are kept in a separate module so core functionality (pre/post-processing)
stays lightweight and can be used without installing inference runtimes.
A backend is any object matching `InferenceBackend`; the pipeline never creates
one implicitly.
"""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence

import numpy as np


class InferenceBackend(Protocol):
    input_name: str
    output_names: Sequence[str]

    def run(self, tensor: np.ndarray) -> Mapping[str, np.ndarray]:
        ...


__all__ = ["InferenceBackend"]
