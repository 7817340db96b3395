from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InferenceFailure
from .postprocess import PoolPostConfig, PoolPostprocessor
from .preprocess import PixelBuffer, rgba_from_image, to_tensor
from .types import DetectionList


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, so `models/pool.onnx` resolves the
    same way regardless of the working directory.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]


class PoolPipeline:
    """
    Plug-and-play pipeline: RGBA pixels -> tensor -> inference -> detections.

    `infer_fn` is the only collaborator: it takes the (1, 3, S, S) float32
    tensor and returns the raw output buffer. Nothing is cached between calls.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        post_cfg: PoolPostConfig = PoolPostConfig(),
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.backend_name = backend_name
        self.post_cfg = post_cfg
        self.post = PoolPostprocessor(post_cfg)

    @property
    def input_size(self) -> int:
        return self.post_cfg.model_input_size

    def preprocess(self, pixels: PixelBuffer, orig_size: Optional[Tuple[int, int]] = None) -> PreprocessResult:
        """
        Args:
            pixels: RGBA bytes of the S x S canvas the model sees
            orig_size: (width, height) the boxes are mapped back to; defaults to (S, S)
        """

        s = self.input_size
        blob = to_tensor(pixels, (1, 3, s, s))
        return PreprocessResult(blob=blob, orig_size=orig_size if orig_size is not None else (s, s))

    def _infer(self, blob: np.ndarray) -> np.ndarray:
        try:
            preds = self._infer_fn(blob)
        except Exception as exc:
            logger.error("Inference failed (%s): %s", self.backend_name or "custom", exc)
            raise InferenceFailure(f"Inference backend failed: {exc}") from exc
        if preds is None:
            raise InferenceFailure("Inference backend returned no output.")
        return preds

    def _postprocess(self, preds: np.ndarray, orig_size: Tuple[int, int]) -> DetectionList:
        detections = self.post.process(preds, orig_size)
        logger.debug(
            "%d detection(s) (conf>=%.2f, iou<%.2f)",
            len(detections),
            self.post_cfg.conf_threshold,
            self.post_cfg.iou_threshold,
        )
        return detections

    def __call__(self, pixels: PixelBuffer, orig_size: Optional[Tuple[int, int]] = None) -> DetectionList:
        prep = self.preprocess(pixels, orig_size)
        preds = self._infer(prep.blob)
        return self._postprocess(preds, prep.orig_size)

    async def detect_async(self, pixels: PixelBuffer, orig_size: Optional[Tuple[int, int]] = None) -> DetectionList:
        """
        Same as calling the pipeline, but the inference call runs in the
        default executor and is the only await.
        """

        prep = self.preprocess(pixels, orig_size)
        loop = asyncio.get_running_loop()
        preds = await loop.run_in_executor(None, self._infer, prep.blob)
        return self._postprocess(preds, prep.orig_size)

    def detect_image(self, image_bgr: np.ndarray, *, map_to_image: bool = False) -> DetectionList:
        """
        Run on an OpenCV BGR image stretched onto the S x S canvas.

        With `map_to_image=False` boxes stay in canvas coordinates (what an
        overlay on the canvas needs); with True they map back to the image.
        """

        pixels = rgba_from_image(image_bgr, self.input_size)
        orig_size = None
        if map_to_image:
            h, w = image_bgr.shape[:2]
            orig_size = (w, h)
        return self(pixels, orig_size)


def load_pipeline(
    model_path: PathLike,
    *,
    root: Optional[PathLike] = "auto",
    post_cfg: PoolPostConfig = PoolPostConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: str = "images",
    onnx_output_name: str = "output0",
) -> PoolPipeline:
    """
    Create a pipeline for an ONNX model on disk.

        pipe = load_pipeline("models/pool-model.onnx")  # resolves from project root by default
    """

    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Only .onnx models are supported, got '{resolved.suffix}'.")
    if not resolved.exists():
        raise FileNotFoundError(str(resolved))

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    ort_backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=onnx_input_name,
            output_name=onnx_output_name,
        ),
    )
    return PoolPipeline(
        ort_backend.infer,
        backend=ort_backend,
        backend_name="onnxruntime",
        post_cfg=post_cfg,
    )
