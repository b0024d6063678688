from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


BAD_REQUEST = "BAD_REQUEST"
UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA"
MODEL_ERROR = "MODEL_ERROR"
INFERENCE_ERROR = "INFERENCE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

ERROR_CODES = (BAD_REQUEST, UNSUPPORTED_MEDIA, MODEL_ERROR, INFERENCE_ERROR, INTERNAL_ERROR)


class DetectError(Exception):
    """
    Base error for a failed frame.

    Every failure is terminal for the frame it was raised on: callers get no
    partial detection list and should simply move on to the next frame.
    """

    error_code: str = INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Optional[Dict[str, Any]] = dict(details) if details is not None else None


class BadInput(DetectError):
    """Empty, oversized or otherwise malformed source bytes."""

    error_code = BAD_REQUEST


class UnsupportedFormat(DetectError):
    """The decoder cannot read the bytes, or the format is not allow-listed."""

    error_code = UNSUPPORTED_MEDIA


class InvalidOutputShape(DetectError):
    """The backend's output tensor is missing or has a layout we cannot resolve."""

    error_code = INFERENCE_ERROR


class ModelError(DetectError):
    error_code = MODEL_ERROR


class InternalError(DetectError):
    error_code = INTERNAL_ERROR


def http_status(error_code: str) -> int:
    if error_code == BAD_REQUEST:
        return 400
    if error_code == UNSUPPORTED_MEDIA:
        return 415
    return 500
