# docscan/geometry/isolate.py
from __future__ import annotations
from typing import Dict, Optional, Tuple
import cv2
import numpy as np

from docscan.core.config import compute_target_size, merge_cfg


def resize_to_target(image: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """Resize to the fixed working size, ignoring the source aspect ratio."""
    cfg = merge_cfg(cfg)
    w, h = compute_target_size(cfg)
    resized = cv2.resize(image, (w, h))
    if cfg.get("debug"):
        print(f"[resize] {image.shape[1]}x{image.shape[0]} -> {w}x{h}")
    return resized


def elliptical_kernel(radius: int) -> np.ndarray:
    size = 2 * int(radius) + 1
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size), (int(radius), int(radius)))


def close_image(gray: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """
    Morphological closing with an elliptical kernel; merges nearby regions
    and fills small dark gaps inside the bright page.
    """
    cfg = merge_cfg(cfg)
    m = cfg["morph"]
    kernel = elliptical_kernel(m["radius"])
    return cv2.morphologyEx(gray, cv2.MORPH_CLOSE, kernel, iterations=int(m["iterations"]))


def threshold_image(closed: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """Fixed global threshold producing a strict 0/255 image."""
    cfg = merge_cfg(cfg)
    t = cfg["threshold"]
    mode = cv2.THRESH_BINARY_INV if t.get("invert") else cv2.THRESH_BINARY
    _, binary = cv2.threshold(closed, int(t["cutoff"]), 255, mode)
    return binary


def isolate_shape(gray: np.ndarray, cfg: Optional[Dict] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Return (closed, binary) for an already resized grayscale image."""
    if gray.ndim == 3:
        gray = cv2.cvtColor(gray, cv2.COLOR_BGR2GRAY)
    closed = close_image(gray, cfg)
    return closed, threshold_image(closed, cfg)
