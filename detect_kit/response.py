"""
JSON envelopes for detection results, as exchanged with HTTP/UI callers.

Success:  {"ok": true, "requestId", "detections", "frame": {"width", "height"}, "meta": {"latencyMs"}}
Failure:  {"ok": false, "requestId", "errorCode", "message", "details"?}
"""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping

from .errors import ERROR_CODES, DetectError
from .runtime import DetectResult


def success_payload(result: DetectResult) -> Dict[str, Any]:
    return {
        "ok": True,
        "requestId": result.request_id,
        "detections": [d.to_dict() for d in result.detections],
        "frame": result.frame.to_dict(),
        "meta": {"latencyMs": result.latency_ms},
    }


def error_payload(request_id: str, error: DetectError) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "ok": False,
        "requestId": request_id,
        "errorCode": error.error_code,
        "message": error.message,
    }
    if error.details is not None:
        body["details"] = error.details
    return body


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _valid_detection(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    if not all(_is_number(value.get(k)) for k in ("x1", "y1", "x2", "y2", "confidence")):
        return False
    cls = value.get("class")
    return 0 <= value["confidence"] <= 1 and isinstance(cls, int) and not isinstance(cls, bool) and cls >= 0


def _valid_frame(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    w, h = value.get("width"), value.get("height")
    return _is_number(w) and _is_number(h) and math.isfinite(w) and math.isfinite(h) and w > 0 and h > 0


def parse_response(payload: Any) -> Dict[str, Any]:
    """
    Validate an envelope produced by `success_payload` / `error_payload`.
    Raises ValueError describing the first problem found.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Invalid response: not an object")
    if not isinstance(payload.get("ok"), bool):
        raise ValueError("Invalid response: missing 'ok' field")
    request_id = payload.get("requestId")
    if not isinstance(request_id, str) or not request_id:
        raise ValueError("Invalid response: missing or invalid 'requestId'")

    if payload["ok"]:
        detections = payload.get("detections")
        if not isinstance(detections, list):
            raise ValueError("Invalid response: 'detections' must be an array")
        if not all(_valid_detection(d) for d in detections):
            raise ValueError("Invalid response: invalid detection format")
        if not _valid_frame(payload.get("frame")):
            raise ValueError("Invalid response: invalid frame dimensions")
        meta = payload.get("meta")
        return {
            "ok": True,
            "requestId": request_id,
            "detections": detections,
            "frame": payload["frame"],
            "meta": meta if isinstance(meta, Mapping) else None,
        }

    if payload.get("errorCode") not in ERROR_CODES:
        raise ValueError("Invalid response: missing or invalid 'errorCode'")
    if not isinstance(payload.get("message"), str):
        raise ValueError("Invalid response: missing or invalid 'message'")
    details = payload.get("details")
    return {
        "ok": False,
        "requestId": request_id,
        "errorCode": payload["errorCode"],
        "message": payload["message"],
        "details": details if isinstance(details, Mapping) else None,
    }
