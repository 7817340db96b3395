"""
Pool detection on top of a YOLOv8-style ONNX export.

Pre/post-processing only needs NumPy: RGBA pixels in, a de-duplicated list of
`Box` out. OpenCV is used for reading/drawing images and ONNX Runtime for the
optional inference backend.
"""

from .types import Box, DetectionList
from .errors import InferenceFailure, InvalidInput
from .preprocess import rgba_from_image, to_tensor
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import DEFAULT_CLASS_NAMES, PoolPostConfig, PoolPostprocessor, decode
from .config import load_detector_config
from .runtime import PoolPipeline, load_pipeline, find_project_root, resolve_path
from .metadata import load_class_names
from .visualize import draw_detections

__all__ = [
    "Box",
    "DetectionList",
    "InferenceFailure",
    "InvalidInput",
    "rgba_from_image",
    "to_tensor",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "DEFAULT_CLASS_NAMES",
    "PoolPostConfig",
    "PoolPostprocessor",
    "decode",
    "load_detector_config",
    "PoolPipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "load_class_names",
    "draw_detections",
]
