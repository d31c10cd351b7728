"""
Grayscale conversion, gradient edge map and edge-density profiles.
"""

from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

ImageInput = Union[np.ndarray, Image.Image, Path, str]


def to_grayscale(image: ImageInput) -> np.ndarray:
    """
    Convert an image to a single-channel uint8 array.

    Args:
        image: Numpy array (gray, RGB or RGBA), PIL Image, or path.

    Returns:
        2D uint8 array, row-major.

    Raises:
        ValueError: If the image cannot be read or has an unexpected shape.
    """
    if isinstance(image, (str, Path)):
        with Image.open(image) as img:
            image = np.array(img.convert("RGB"))
    elif isinstance(image, Image.Image):
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        image = np.array(image)

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Unsupported image type: {type(image)}")

    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    else:
        raise ValueError(f"Unsupported image shape: {image.shape}")

    if gray.size == 0:
        raise ValueError("Image is empty")

    return np.ascontiguousarray(gray)


def gradient_magnitude(gray: np.ndarray) -> np.ndarray:
    """
    Finite-difference gradient magnitude.

    For interior pixels ``gx = I(x+1, y) - I(x-1, y)`` and
    ``gy = I(x, y+1) - I(x, y-1)``; the 1-pixel border stays zero.

    Args:
        gray: 2D intensity array.

    Returns:
        float32 edge map with the same shape as ``gray``.
    """
    height, width = gray.shape
    edges = np.zeros((height, width), dtype=np.float32)
    if height < 3 or width < 3:
        return edges

    pixels = gray.astype(np.float32)
    gx = pixels[1:-1, 2:] - pixels[1:-1, :-2]
    gy = pixels[2:, 1:-1] - pixels[:-2, 1:-1]
    edges[1:-1, 1:-1] = np.sqrt(gx * gx + gy * gy)

    return edges


def column_scores(edges: np.ndarray) -> np.ndarray:
    """Mean edge value of every column."""
    height = edges.shape[0]
    return edges.sum(axis=0) / height


def row_scores(edges: np.ndarray) -> np.ndarray:
    """Mean edge value of every row."""
    width = edges.shape[1]
    return edges.sum(axis=1) / width
