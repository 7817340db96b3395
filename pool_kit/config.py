from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .postprocess import DEFAULT_CLASS_NAMES, PoolPostConfig


PathLike = Union[str, Path]

SCHEMA_VERSION = 1


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_threshold(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{key} must be in [0, 1]")
    return value


def _optional_positive_int(payload: Dict[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    value = payload.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    if value <= 0:
        raise ValueError(f"{key} must be > 0")
    return int(value)


def load_detector_config(path: PathLike) -> PoolPostConfig:
    """
    Load post-processing settings from a JSON detector profile.

        {"schema_version": 1, "conf_threshold": 0.5, "iou_threshold": 0.7,
         "model_input_size": 640, "grid_size": 8400, "class_names": ["pool"]}

    Only `schema_version` is required; missing keys keep their defaults.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector profile must be a JSON object")

    allowed = {
        "schema_version",
        "conf_threshold",
        "iou_threshold",
        "model_input_size",
        "grid_size",
        "class_names",
        "num_classes",
        "max_detections",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector profile keys: {unknown}")

    if _require_int(payload, "schema_version") != SCHEMA_VERSION:
        raise ValueError(f"detector profile schema_version must be {SCHEMA_VERSION}")

    defaults = PoolPostConfig()
    class_names = payload.get("class_names", list(DEFAULT_CLASS_NAMES))
    if not isinstance(class_names, list) or not class_names or not all(isinstance(n, str) for n in class_names):
        raise ValueError("class_names must be a non-empty list of strings")

    return PoolPostConfig(
        conf_threshold=_optional_threshold(payload, "conf_threshold", defaults.conf_threshold),
        iou_threshold=_optional_threshold(payload, "iou_threshold", defaults.iou_threshold),
        model_input_size=_optional_positive_int(payload, "model_input_size", defaults.model_input_size),
        grid_size=_optional_positive_int(payload, "grid_size", defaults.grid_size),
        class_names=tuple(class_names),
        num_classes=_optional_positive_int(payload, "num_classes", None),
        max_detections=_optional_positive_int(payload, "max_detections", None),
    )
