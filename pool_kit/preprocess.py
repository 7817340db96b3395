from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np

from .errors import InvalidInput


PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[int]]

DEFAULT_DIMS: Tuple[int, int, int, int] = (1, 3, 640, 640)


def _as_uint8(pixels: PixelBuffer) -> np.ndarray:
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        return np.frombuffer(pixels, dtype=np.uint8)
    arr = np.asarray(pixels)
    if arr.dtype != np.uint8:
        if arr.size and not np.issubdtype(arr.dtype, np.integer):
            raise InvalidInput(f"Pixel values must be integers (got dtype {arr.dtype}).")
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise InvalidInput("Pixel values must be in [0, 255].")
        arr = arr.astype(np.uint8)
    return arr.reshape(-1)


def to_tensor(pixels: PixelBuffer, dims: Sequence[int] = DEFAULT_DIMS) -> np.ndarray:
    """
    Convert an RGBA pixel buffer into a normalized NCHW float32 tensor.

    Args:
        pixels: flat RGBA bytes in raster order (e.g. a canvas snapshot), length W*H*4
        dims: (batch, channels, height, width); batch must be 1 and channels 3

    Returns:
        float32 array of shape `dims`, R plane then G plane then B plane, values in [0, 1]
    """

    if len(dims) != 4:
        raise InvalidInput(f"dims must be (batch, channels, height, width), got {tuple(dims)}")
    batch, channels, height, width = (int(d) for d in dims)
    if batch != 1 or channels != 3:
        raise InvalidInput(f"Only a single RGB image is supported (got dims {tuple(dims)}).")

    rgba = _as_uint8(pixels)
    if rgba.size % 4 != 0:
        raise InvalidInput(f"Pixel buffer length {rgba.size} is not a multiple of 4 (RGBA).")
    if rgba.size // 4 != height * width:
        raise InvalidInput(
            f"Pixel buffer holds {rgba.size // 4} pixels, expected {height}x{width}={height * width}."
        )

    # (H*W, 4) -> drop alpha -> (3, H*W): raster order is preserved within each plane
    planes = rgba.reshape(-1, 4)[:, :3].T
    tensor = planes.astype(np.float32) / 255.0
    return np.ascontiguousarray(tensor.reshape(batch, channels, height, width))


def rgba_from_image(image_bgr: np.ndarray, size: int = 640) -> np.ndarray:
    """
    Draw a BGR image onto a `size` x `size` canvas and return its RGBA bytes.

    The image is stretched (no letterbox), so detections decoded against
    `size` scale back with independent x/y factors.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for rgba_from_image(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise InvalidInput("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise InvalidInput(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")
    if size <= 0:
        raise InvalidInput(f"size must be > 0, got {size}")

    img = image_bgr
    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    h, w = img.shape[:2]
    if (w, h) != (size, size):
        img = cv2.resize(img, (size, size), interpolation=cv2.INTER_LINEAR)

    rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    return np.ascontiguousarray(rgba).reshape(-1)
