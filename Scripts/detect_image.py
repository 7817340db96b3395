from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import cv2

from pool_kit import PoolPostConfig, draw_detections, load_class_names, load_detector_config, load_pipeline

logger = logging.getLogger("detect_image")


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Detect pools in an image and draw the boxes.")
    ap.add_argument("image", help="Path to the input image.")
    ap.add_argument("--model", default="models/pool-model.onnx", help="ONNX model path (relative to project root).")
    ap.add_argument("--profile", default=None, help="Optional JSON detector profile.")
    ap.add_argument("--metadata", default=None, help="Optional metadata.yaml with class names.")
    ap.add_argument("--conf", type=float, default=None, help="Override the confidence threshold.")
    ap.add_argument("--iou", type=float, default=None, help="Override the NMS IoU threshold.")
    ap.add_argument("--output", default=None, help="Where to write the annotated image.")
    ap.add_argument("--show", action="store_true", help="Show the annotated image in a window.")
    ap.add_argument("--original-coords", action="store_true", help="Map boxes back to the original image size.")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def _post_cfg_from_args(args: argparse.Namespace) -> PoolPostConfig:
    cfg = load_detector_config(args.profile) if args.profile else PoolPostConfig()
    overrides = {}
    if args.metadata:
        overrides["class_names"] = load_class_names(args.metadata)
    if args.conf is not None:
        overrides["conf_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if not overrides:
        return cfg
    return replace(cfg, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    post_cfg = _post_cfg_from_args(args)
    pipeline = load_pipeline(args.model, post_cfg=post_cfg)

    image = read_image(args.image)
    if args.original_coords:
        canvas = image
    else:
        # Boxes land on the S x S canvas the model saw.
        s = pipeline.input_size
        canvas = cv2.resize(image, (s, s), interpolation=cv2.INTER_LINEAR)

    detections = pipeline.detect_image(image, map_to_image=args.original_coords)
    logger.info("%d detection(s)", len(detections))
    for det in detections:
        print(det.label, f"{det.confidence:.3f}", tuple(round(v, 1) for v in det.as_xyxy()))

    vis = draw_detections(canvas, detections)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(out_path), vis):
            raise RuntimeError(f"Failed to write {out_path}")
        logger.info("Wrote %s", out_path)
    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
