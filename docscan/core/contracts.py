"""
Core contracts and simple data types shared across stages.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import numpy as np


@dataclass
class Corners:
    """
    The four document corners in resized-image coordinates (pixels), in the
    order the destination rectangle expects:
    [top-left, bottom-left, bottom-right, top-right].

    pts: np.ndarray with shape (4, 2), dtype float32
    """
    pts: np.ndarray

    @property
    def top_left(self) -> np.ndarray:
        return self.pts[0]

    @property
    def bottom_left(self) -> np.ndarray:
        return self.pts[1]

    @property
    def bottom_right(self) -> np.ndarray:
        return self.pts[2]

    @property
    def top_right(self) -> np.ndarray:
        return self.pts[3]

    def as_tuple(self) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
        return tuple(map(tuple, self.pts.astype(float)))  # type: ignore[return-value]


@dataclass
class ScanResult:
    """Everything one pipeline run produced, stage by stage."""
    rectified: np.ndarray
    resized: np.ndarray
    closed: np.ndarray
    binary: np.ndarray
    contours: List[np.ndarray]
    contour_index: int
    contour_area: float
    polygon: np.ndarray
    corners: Corners
    homography: np.ndarray

    @property
    def contour_count(self) -> int:
        return len(self.contours)

    @property
    def contour(self) -> np.ndarray:
        return self.contours[self.contour_index]


@dataclass
class BatchItem:
    path: str
    output_path: str
    result: Optional[ScanResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
