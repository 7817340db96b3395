from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers; None lets ORT pick its default
    - input_name/output_name: I/O slots of the exported YOLOv8 graph
    """

    providers: Optional[Sequence[str]] = None
    input_name: str = "images"
    output_name: str = "output0"


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    Expects an NCHW float32 blob shaped (1, 3, S, S) and returns the flat
    float32 output buffer.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        input_names = [i.name for i in self.session.get_inputs()]
        output_names = [o.name for o in self.session.get_outputs()]
        if cfg.input_name not in input_names:
            raise ValueError(f"Model has no input named {cfg.input_name!r} (inputs: {input_names})")
        if cfg.output_name not in output_names:
            raise ValueError(f"Model has no output named {cfg.output_name!r} (outputs: {output_names})")
        self.input_name = cfg.input_name
        self.output_name = cfg.output_name

        logger.info(
            "Loaded %s (input=%s, output=%s, providers=%s)",
            self.model_path.name,
            self.input_name,
            self.output_name,
            ", ".join(self.providers_in_use),
        )

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray, extra_inputs: Optional[Dict[str, Any]] = None) -> np.ndarray:
        inputs: Dict[str, Any] = {self.input_name: np.ascontiguousarray(blob, dtype=np.float32)}
        if extra_inputs:
            inputs.update(extra_inputs)
        outputs = self.session.run([self.output_name], inputs)
        return np.asarray(outputs[0], dtype=np.float32).reshape(-1)
