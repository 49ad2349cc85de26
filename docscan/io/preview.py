# docscan/io/preview.py
from __future__ import annotations
import cv2
import numpy as np


def show_preview(original: np.ndarray, rectified: np.ndarray, wait_ms: int = 0) -> int:
    """
    Show the resized input and the rectified page side by side in two windows.
    Blocks until a key is pressed (wait_ms=0), then closes both windows.
    Returns the key code from cv2.waitKey.
    """
    cv2.imshow("original", original)
    cv2.imshow("Scanned image", rectified)
    try:
        return cv2.waitKey(wait_ms)
    finally:
        cv2.destroyAllWindows()
