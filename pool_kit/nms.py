from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .types import Box, DetectionList


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.7
    # None keeps every survivor.
    max_detections: Optional[int] = None


def intersection(a: Box, b: Box) -> float:
    w = max(0.0, min(a.x2, b.x2) - max(a.x1, b.x1))
    h = max(0.0, min(a.y2, b.y2) - max(a.y1, b.y1))
    return w * h


def union(a: Box, b: Box) -> float:
    return a.area + b.area - intersection(a, b)


def iou(a: Box, b: Box) -> float:
    """
    Intersection-over-Union of two boxes.

    Overlap width/height are clamped to >= 0, areas are raw products so
    inverted corners give negative areas. A non-positive union gives 0.0.
    """

    u = union(a, b)
    if u <= 0:
        return 0.0
    return intersection(a, b) / u


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig = NMSConfig()) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes, highest score first.

    A box is dropped when its IoU with an already kept box is >= the threshold.
    Equal scores keep their input order.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"Got {boxes.shape[0]} boxes but {scores.shape[0]} scores.")
    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(i)
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union_ = areas[i] + areas[rest] - inter
        with np.errstate(divide="ignore", invalid="ignore"):
            overlap = np.where(union_ > 0, inter / union_, 0.0)

        order = rest[overlap < cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(
    boxes: Sequence[Box],
    iou_threshold: float = 0.7,
    max_detections: Optional[int] = None,
) -> DetectionList:
    """
    Greedy non-maximum suppression over `Box` candidates.

    Returns the survivors ordered by confidence, highest first.
    """

    boxes = list(boxes)
    if not boxes:
        return []

    xyxy = np.array([b.as_xyxy() for b in boxes], dtype=np.float64)
    scores = np.array([b.confidence for b in boxes], dtype=np.float64)
    keep = nms(xyxy, scores, NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections))
    return [boxes[int(i)] for i in keep]
