# docscan/geometry/rectify.py
from __future__ import annotations
from itertools import combinations
from typing import Dict, Optional, Tuple
import cv2
import numpy as np

from docscan.core.config import INTERPOLATIONS, compute_target_size, merge_cfg
from docscan.core.contracts import Corners
from docscan.core.errors import SingularHomographyError

_MIN_ABS_DET = 1e-9


def destination_points(width: int, height: int) -> np.ndarray:
    """Target rectangle corners in TL, BL, BR, TR order."""
    return np.array([[0, 0],
                     [0, height],
                     [width, height],
                     [width, 0]], dtype=np.float32)


def check_general_position(pts: np.ndarray, cfg: Optional[Dict] = None) -> None:
    """
    Four points admit a unique homography only if no three are collinear.
    Raises SingularHomographyError for duplicates or (near) collinear triples.
    """
    cfg = merge_cfg(cfg)
    p = np.asarray(pts, dtype=np.float64).reshape(4, 2)
    if not np.isfinite(p).all():
        raise SingularHomographyError(f"non-finite corner coordinates: {p.tolist()}")
    min_area = float(cfg.get("min_corner_triangle_area", 1.0))
    for a, b, c in combinations(range(4), 3):
        ab, ac = p[b] - p[a], p[c] - p[a]
        area = 0.5 * abs(ab[0] * ac[1] - ab[1] * ac[0])
        if area < min_area:
            raise SingularHomographyError(
                f"points {p[a].tolist()}, {p[b].tolist()}, {p[c].tolist()} are collinear "
                f"or duplicated (triangle area {area:.3f} < {min_area})"
            )


def compute_homography(src: np.ndarray, dst: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """Exact 3x3 projective transform taking the 4 `src` points onto `dst`."""
    cfg = merge_cfg(cfg)
    src = np.asarray(src, dtype=np.float32).reshape(4, 2)
    dst = np.asarray(dst, dtype=np.float32).reshape(4, 2)
    check_general_position(src, cfg)
    check_general_position(dst, cfg)

    try:
        Hmat = cv2.getPerspectiveTransform(src, dst)
    except cv2.error as e:
        raise SingularHomographyError(f"perspective solve failed: {e}")

    if Hmat is None or not np.isfinite(Hmat).all() or abs(np.linalg.det(Hmat)) < _MIN_ABS_DET:
        raise SingularHomographyError(f"degenerate homography:\n{Hmat}")
    if cfg.get("debug"):
        print(f"[homography]\n{Hmat}")
    return Hmat


def warp_document(image: np.ndarray, Hmat: np.ndarray, size: Tuple[int, int], cfg: Optional[Dict] = None) -> np.ndarray:
    """Inverse-mapped perspective warp into a `size` = (W, H) buffer."""
    cfg = merge_cfg(cfg)
    flags = INTERPOLATIONS[cfg["interpolation"]]
    return cv2.warpPerspective(image, Hmat, (int(size[0]), int(size[1])), flags=flags)


def rectify(image: np.ndarray, corners: Corners, cfg: Optional[Dict] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map the detected quadrilateral onto the full working rectangle.

    Returns (rectified image, homography).
    """
    cfg = merge_cfg(cfg)
    w, h = compute_target_size(cfg)
    Hmat = compute_homography(corners.pts, destination_points(w, h), cfg)
    return warp_document(image, Hmat, (w, h), cfg), Hmat
