# docscan/geometry/detect.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import cv2
import numpy as np

from docscan.core.config import RETRIEVAL_MODES, merge_cfg
from docscan.core.contracts import Corners
from docscan.core.errors import DegenerateCornersError, NoContourFoundError

# Perimeter-relative tolerances tried when squeezing a hull down to 4 vertices
_QUAD_EPS_STEPS = (0.005, 0.01, 0.02, 0.03, 0.05, 0.08, 0.12)


# ----------------------------------------------------------------------------- #
# Boundary extraction                                                           #
# ----------------------------------------------------------------------------- #

def ensure_foreground(binary: np.ndarray, cfg: Optional[Dict] = None) -> None:
    """
    A binary image that is entirely 0 or entirely 255 has no document boundary.
    (An all-255 image still yields one contour along the image edge.)
    """
    cfg = merge_cfg(cfg)
    nonzero = cv2.countNonZero(binary)
    if nonzero == 0 or nonzero == binary.size:
        level = "black" if nonzero == 0 else "white"
        raise NoContourFoundError(f"thresholded image is uniformly {level}; no document region")
    if cfg.get("debug"):
        print(f"[contours] foreground={nonzero / float(binary.size):.3f}")


def find_contours(binary: np.ndarray, cfg: Optional[Dict] = None) -> List[np.ndarray]:
    cfg = merge_cfg(cfg)
    mode = RETRIEVAL_MODES[cfg["contours"]["retrieval"]]
    cnts, _ = cv2.findContours(binary, mode, cv2.CHAIN_APPROX_SIMPLE)
    if cfg.get("debug"):
        print(f"[contours] found {len(cnts)}")
    return list(cnts)


def largest_contour(contours: List[np.ndarray], frame_shape, cfg: Optional[Dict] = None) -> Tuple[int, float]:
    """
    Index and area of the largest contour. Strict '>' so the first of equally
    large contours wins; zero-area contours never qualify. A page filling the
    whole frame is a valid answer.
    """
    cfg = merge_cfg(cfg)
    H, W = frame_shape[:2]

    best_idx, best_area = -1, 0.0
    for i, c in enumerate(contours):
        area = float(cv2.contourArea(c))
        if area > best_area:
            best_idx, best_area = i, area

    if best_idx < 0:
        raise NoContourFoundError(
            f"no contour with positive area among {len(contours)} candidates (frame {W}x{H})"
        )
    if cfg.get("debug"):
        print(f"[contours] largest #{best_idx}: area={best_area:.1f}")
    return best_idx, best_area


# ----------------------------------------------------------------------------- #
# Polygon approximation                                                         #
# ----------------------------------------------------------------------------- #

def approximate_polygon(contour: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """Douglas-Peucker simplification of a closed contour; returns (N, 2) int32."""
    cfg = merge_cfg(cfg)
    eps = float(cfg["approx"]["epsilon"])
    if cfg["approx"].get("relative"):
        eps *= cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, eps, True)
    poly = approx.reshape(-1, 2).astype(np.int32)
    if cfg.get("debug"):
        print(f"[approx] eps={eps:.4f} -> {len(poly)} vertices")
    return poly


def extremal_indices(poly: np.ndarray) -> Tuple[int, int, int, int]:
    """(min-x, max-x, min-y, max-y) vertex indices; first occurrence wins ties."""
    p = np.asarray(poly).reshape(-1, 2)
    xs, ys = p[:, 0], p[:, 1]
    return int(np.argmin(xs)), int(np.argmax(xs)), int(np.argmin(ys)), int(np.argmax(ys))


def _bbox_corners(p: np.ndarray) -> np.ndarray:
    x0, y0 = p.min(axis=0)
    x1, y1 = p.max(axis=0)
    return np.array([[x0, y0], [x0, y1], [x1, y1], [x1, y0]], dtype=np.float32)


def _distinct(pts: np.ndarray) -> bool:
    return len(np.unique(np.asarray(pts).reshape(-1, 2), axis=0)) == len(pts)


# ----------------------------------------------------------------------------- #
# Corner identification                                                         #
# ----------------------------------------------------------------------------- #

def assign_corners_extremal(poly: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """
    Min/max-coordinate heuristic for a mildly rotated page.

    Compares the y of the max-x vertex against the min-x vertex:
      max-x lower  -> TL=min-x, BL=max-y, BR=max-x, TR=min-y
      max-x higher -> TL=min-y, BL=min-x, BR=max-y, TR=max-x
    A tie, or an assignment that reuses a vertex, goes to `tie_fallback`:
    the polygon's bounding-box corners, or DegenerateCornersError.

    Returns (4, 2) float32 in TL, BL, BR, TR order.
    """
    cfg = merge_cfg(cfg)
    p = np.asarray(poly, dtype=np.float32).reshape(-1, 2)
    if len(p) < 4:
        raise DegenerateCornersError(f"polygon has {len(p)} vertices, need at least 4")

    i_minx, i_maxx, i_miny, i_maxy = extremal_indices(p)
    if cfg.get("debug"):
        print(f"[corners] minX={p[i_minx]} maxX={p[i_maxx]} minY={p[i_miny]} maxY={p[i_maxy]}")

    if p[i_maxx, 1] > p[i_minx, 1]:
        quad = p[[i_minx, i_maxy, i_maxx, i_miny]]
        reason = None
    elif p[i_maxx, 1] < p[i_minx, 1]:
        quad = p[[i_miny, i_minx, i_maxy, i_maxx]]
        reason = None
    else:
        quad = None
        reason = "orientation tie (min-x and max-x share a y)"

    if quad is not None and not _distinct(quad):
        reason = "extremal vertices coincide"

    if reason is None:
        return quad.astype(np.float32)

    if cfg["corners"].get("tie_fallback", "bbox") == "error":
        raise DegenerateCornersError(reason)
    if cfg.get("debug"):
        print(f"[corners] {reason} -> bounding-box corners")
    return _bbox_corners(p)


def reduce_to_quad(poly: np.ndarray) -> np.ndarray:
    """
    Four vertices pass through. More are reduced through the convex hull with
    growing perimeter-relative tolerances; the minimum-area rectangle is the
    last resort.
    """
    p = np.asarray(poly, dtype=np.float32).reshape(-1, 2)
    if len(p) == 4:
        return p
    if len(p) < 4:
        raise DegenerateCornersError(f"polygon has {len(p)} vertices, need at least 4")

    hull = cv2.convexHull(p.reshape(-1, 1, 2))
    if len(hull) < 4:
        raise DegenerateCornersError(f"convex hull has only {len(hull)} vertices")
    if len(hull) == 4:
        return hull.reshape(4, 2).astype(np.float32)

    peri = cv2.arcLength(hull, True)
    for eps in _QUAD_EPS_STEPS:
        approx = cv2.approxPolyDP(hull, eps * peri, True)
        if len(approx) == 4:
            return approx.reshape(4, 2).astype(np.float32)
    return cv2.boxPoints(cv2.minAreaRect(p)).astype(np.float32)


def order_corners_by_angle(pts: np.ndarray) -> np.ndarray:
    """
    Sort 4 points by angle around their centroid (clockwise on screen, since
    image y grows downward), then rotate so the smallest x+y is top-left.
    Returns (4, 2) float32 in TL, BL, BR, TR order.
    """
    p = np.asarray(pts, dtype=np.float32).reshape(4, 2)
    c = p.mean(axis=0)
    ang = np.arctan2(p[:, 1] - c[1], p[:, 0] - c[0])
    cw = p[np.argsort(ang, kind="stable")]
    start = int(np.argmin(cw.sum(axis=1)))
    tl, tr, br, bl = np.roll(cw, -start, axis=0)
    return np.array([tl, bl, br, tr], dtype=np.float32)


def identify_corners(poly: np.ndarray, cfg: Optional[Dict] = None) -> Corners:
    cfg = merge_cfg(cfg)
    p = np.asarray(poly).reshape(-1, 2)
    if len(p) < 4:
        raise DegenerateCornersError(f"polygon has {len(p)} vertices, need at least 4")

    if cfg["corners"]["method"] == "extremal":
        pts = assign_corners_extremal(p, cfg)
    else:
        pts = order_corners_by_angle(reduce_to_quad(p))

    if not _distinct(pts):
        raise DegenerateCornersError(f"corners are not distinct: {pts.tolist()}")
    corners = Corners(pts=pts.astype(np.float32))
    if cfg.get("debug"):
        tl, bl, br, tr = corners.as_tuple()
        print(f"[corners] TL={tl} BL={bl} BR={br} TR={tr}")
    return corners


# ----------------------------------------------------------------------------- #
# Public entrypoint                                                             #
# ----------------------------------------------------------------------------- #

def detect(binary: np.ndarray, cfg: Optional[Dict] = None) -> Corners:
    """Thresholded image -> document corners (raises on empty or degenerate input)."""
    cfg = merge_cfg(cfg)
    ensure_foreground(binary, cfg)
    cnts = find_contours(binary, cfg)
    idx, _ = largest_contour(cnts, binary.shape, cfg)
    return identify_corners(approximate_polygon(cnts[idx], cfg), cfg)
