"""
Simple I/O helpers for reading and writing images (BGR, as OpenCV expects).
"""

from __future__ import annotations
import os
import cv2
import numpy as np

from docscan.core.errors import ImageLoadError, OutputWriteError


def _read(path: str, flags: int) -> np.ndarray:
    if not os.path.isfile(path):
        raise ImageLoadError(f"Image not found: {path}")
    img = cv2.imread(path, flags)
    if img is None:
        raise ImageLoadError(f"Could not read image at: {path}")
    if img.size == 0:
        raise ImageLoadError(f"Image at {path} is empty")
    return img


def load_image(path: str) -> np.ndarray:
    """
    Load an image from disk (BGR).
    Raises ImageLoadError if missing, unreadable or empty.
    """
    return _read(str(path), cv2.IMREAD_COLOR)


def load_grayscale(path: str) -> np.ndarray:
    """
    Load a single-channel grayscale image.
    """
    return _read(str(path), cv2.IMREAD_GRAYSCALE)


def save_image(path: str, image: np.ndarray) -> bool:
    """
    Write `image` to `path`; the format follows the file extension.
    Raises OutputWriteError instead of returning False.
    """
    try:
        ok = cv2.imwrite(str(path), image)
    except cv2.error as e:
        raise OutputWriteError(f"Could not write image to {path}: {e}")
    if not ok:
        raise OutputWriteError(f"Could not write image to {path}")
    return True
