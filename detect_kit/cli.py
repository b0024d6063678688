from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from .config import DetectorConfig, load_detector_config
from .errors import DetectError, InternalError, http_status
from .logs import configure_logging
from .metadata import coco_class_name, load_class_names
from .response import error_payload, success_payload
from .runtime import generate_request_id, load_pipeline


logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run YOLO object detection on an image and print a JSON result.")
    parser.add_argument("--image", required=True, help="Path to an input image (JPEG/PNG/WebP).")
    parser.add_argument("--model", required=True, help="Path to a YOLO ONNX model (e.g. yolo11n.onnx).")
    parser.add_argument("--config", default=None, help="Optional detector config JSON.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument("--max-det", type=int, default=None, help="Maximum detections (overrides config).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--metadata", default=None, help="Optional class metadata (names mapping); COCO names otherwise.")
    parser.add_argument("--labels", action="store_true", help="Also print one human-readable line per detection to stderr.")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines.")
    parser.add_argument("--log-level", default="WARNING", help="Log level (DEBUG, INFO, WARNING, ...).")
    return parser


def _resolve_config(args: argparse.Namespace) -> DetectorConfig:
    cfg = load_detector_config(Path(args.config)) if args.config else DetectorConfig()

    post_overrides = {}
    if args.conf is not None:
        post_overrides["conf_threshold"] = args.conf
    if args.iou is not None:
        post_overrides["iou_threshold"] = args.iou
    if args.max_det is not None:
        post_overrides["max_detections"] = args.max_det
    if post_overrides:
        cfg = dataclasses.replace(cfg, post=dataclasses.replace(cfg.post, **post_overrides))

    if args.onnx_providers:
        providers = tuple(p.strip() for p in str(args.onnx_providers).split(",") if p.strip())
        cfg = dataclasses.replace(cfg, providers=providers)
    return cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(json_logs=args.json_logs, log_level=args.log_level)

    cfg = _resolve_config(args)
    image_path = Path(args.image)
    if not image_path.exists():
        raise FileNotFoundError(f"Could not read image at path: {image_path}")

    request_id = generate_request_id()
    try:
        pipeline = load_pipeline(args.model, cfg)
        result = pipeline.detect(image_path.read_bytes(), request_id=request_id)
    except DetectError as exc:
        logger.warning("detect_failed", request_id=request_id, error_code=exc.error_code, message=exc.message)
        print(json.dumps(error_payload(request_id, exc)))
        return 2 if http_status(exc.error_code) < 500 else 1
    except Exception:
        logger.exception("detect_unexpected_error", request_id=request_id)
        print(json.dumps(error_payload(request_id, InternalError("An unexpected error occurred"))))
        return 1

    print(json.dumps(success_payload(result)))

    if args.labels:
        names = load_class_names(args.metadata) if args.metadata else {}
        for det in result.detections:
            name = names.get(det.class_id) or coco_class_name(det.class_id)
            print(f"{name} {det.confidence:.3f} {det.as_xyxy()}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
