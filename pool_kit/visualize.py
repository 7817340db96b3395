from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import Box


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Box],
    *,
    color: Tuple[int, int, int] = (0, 0, 255),
    show_score: bool = True,
    box_thickness: int = 3,
    font_scale: float = 0.7,
    font_thickness: int = 2,
) -> np.ndarray:
    """
    Draw each box with a "<label> <confidence>" caption on a copy of a BGR image.

    Boxes are expected in the image's own pixel coordinates; inverted corners
    are normalized before drawing.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1, x2 = min(x1, x2), max(x1, x2)
        y1, y2 = min(y1, y2), max(y1, y2)
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = det.label
        if show_score:
            label = f"{label} {det.confidence:.2f}"

        (_, th), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Caption sits 5px above the box, or inside it near the top edge.
        y_text = y1i - 5
        if y_text - th < 0:
            y_text = min(y1i + th + 5, h - 1)

        cv2.putText(
            out,
            label,
            (x1i, y_text),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
