from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidInput
from .nms import suppress
from .types import Box, DetectionList


DEFAULT_CLASS_NAMES: Tuple[str, ...] = ("pool",)


@dataclass(frozen=True)
class PoolPostConfig:
    """
    Post-processing settings for a (C + 4, A) YOLOv8-style export.
    """

    conf_threshold: float = 0.5
    iou_threshold: float = 0.7
    model_input_size: int = 640
    grid_size: int = 8400
    class_names: Tuple[str, ...] = DEFAULT_CLASS_NAMES
    # None derives the class count from `class_names`.
    num_classes: Optional[int] = None
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        # Lists from JSON/YAML become an immutable table.
        object.__setattr__(self, "class_names", tuple(self.class_names))

    @property
    def resolved_num_classes(self) -> int:
        return self.num_classes if self.num_classes is not None else len(self.class_names)


def _label_for(class_id: int, class_names: Sequence[str]) -> str:
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return str(class_id)


def decode(
    output: np.ndarray,
    orig_width: float,
    orig_height: float,
    grid_size: int = 8400,
    num_classes: Optional[int] = None,
    model_input_size: int = 640,
    conf_threshold: float = 0.5,
    class_names: Sequence[str] = DEFAULT_CLASS_NAMES,
) -> DetectionList:
    """
    Decode raw anchor predictions into candidate boxes (before NMS).

    Layout (flat, or shaped (1, C+4, A) / (C+4, A)):
        [cx(A), cy(A), w(A), h(A), class_0(A), ..., class_{C-1}(A)]

    Args:
        output: model output for a single image
        orig_width, orig_height: size of the image the boxes are mapped back to
        grid_size: number of anchors A
        num_classes: number of class channels C; defaults to len(class_names)
        model_input_size: square model input side the geometry is expressed in
        conf_threshold: anchors whose best class score is below this are dropped

    Returns:
        Boxes in anchor-scan order.
    """

    if num_classes is None:
        num_classes = len(class_names)
    if num_classes <= 0 or grid_size <= 0:
        raise InvalidInput(f"num_classes and grid_size must be > 0 (got {num_classes}, {grid_size}).")
    if model_input_size <= 0:
        raise InvalidInput(f"model_input_size must be > 0, got {model_input_size}")

    p = np.asarray(output, dtype=np.float64).reshape(-1)
    expected = (num_classes + 4) * grid_size
    if p.size != expected:
        raise InvalidInput(
            f"Output buffer has {p.size} values, expected ({num_classes} + 4) x {grid_size} = {expected}."
        )

    p = p.reshape(num_classes + 4, grid_size)
    class_scores = p[4:, :]  # (C, A)
    # argmax returns the first maximum, so ties go to the lowest class id
    class_ids = np.argmax(class_scores, axis=0)
    scores = class_scores[class_ids, np.arange(grid_size)]

    keep = np.nonzero(scores >= conf_threshold)[0]
    if keep.size == 0:
        return []

    cx, cy, w_box, h_box = p[0:4, keep]
    sx = orig_width / model_input_size
    sy = orig_height / model_input_size
    x1 = (cx - w_box / 2) * sx
    y1 = (cy - h_box / 2) * sy
    x2 = (cx + w_box / 2) * sx
    y2 = (cy + h_box / 2) * sy

    return [
        Box(
            x1=float(x1[k]),
            y1=float(y1[k]),
            x2=float(x2[k]),
            y2=float(y2[k]),
            label=_label_for(int(class_ids[idx]), class_names),
            confidence=float(scores[idx]),
            class_id=int(class_ids[idx]),
        )
        for k, idx in enumerate(keep)
    ]


class PoolPostprocessor:
    """
    Raw model output -> thresholded, de-duplicated detections in original
    image coordinates.
    """

    def __init__(self, cfg: PoolPostConfig = PoolPostConfig()):
        self.cfg = cfg

    def decode(self, output: np.ndarray, orig_size: Tuple[float, float]) -> DetectionList:
        orig_w, orig_h = orig_size
        return decode(
            output,
            orig_w,
            orig_h,
            grid_size=self.cfg.grid_size,
            num_classes=self.cfg.resolved_num_classes,
            model_input_size=self.cfg.model_input_size,
            conf_threshold=self.cfg.conf_threshold,
            class_names=self.cfg.class_names,
        )

    def process(self, output: np.ndarray, orig_size: Tuple[float, float]) -> DetectionList:
        """
        Args:
            output: model output for a single image
            orig_size: (width, height) of the original image
        """

        candidates = self.decode(output, orig_size)
        if not candidates:
            return []
        return suppress(candidates, iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections)
