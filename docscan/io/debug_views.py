# docscan/io/debug_views.py
from __future__ import annotations
import os
from typing import Dict, List
import cv2
import numpy as np


def render_stage_views(resized: np.ndarray,
                       closed: np.ndarray,
                       binary: np.ndarray,
                       contours: List[np.ndarray],
                       contour_index: int,
                       polygon: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Build the intermediate pictures of one run:
    closing, threshold, all contours (green), the filled largest contour,
    and the approximated polygon on a black canvas.
    """
    base = resized if resized.ndim == 3 else cv2.cvtColor(resized, cv2.COLOR_GRAY2BGR)
    all_contours = base.copy()
    cv2.drawContours(all_contours, contours, -1, (0, 255, 0), 3)

    mask = np.zeros(binary.shape[:2], np.uint8)
    if contour_index >= 0:
        cv2.drawContours(mask, contours, contour_index, 255, thickness=cv2.FILLED)

    poly_canvas = np.zeros((*binary.shape[:2], 3), np.uint8)
    if polygon is not None and len(polygon) > 0:
        cv2.polylines(poly_canvas, [polygon.reshape(-1, 1, 2).astype(np.int32)], True, (0, 255, 0), 2)

    return {
        "01_closed": closed,
        "02_threshold": binary,
        "03_contours": all_contours,
        "04_mask": mask,
        "05_polygon": poly_canvas,
    }


def draw_corners(image: np.ndarray, pts: np.ndarray, color=(0, 0, 255)) -> np.ndarray:
    vis = image.copy() if image.ndim == 3 else cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    q = np.asarray(pts).astype(int).reshape(-1, 2)
    cv2.polylines(vis, [q.reshape(-1, 1, 2)], True, color, 2, lineType=cv2.LINE_AA)
    for label, (x, y) in zip(("TL", "BL", "BR", "TR"), q):
        cv2.circle(vis, (int(x), int(y)), 5, color, -1)
        cv2.putText(vis, label, (int(x) + 6, int(y) - 6), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1, cv2.LINE_AA)
    return vis


def save_stage_views(out_dir: str, views: Dict[str, np.ndarray], prefix: str = "") -> List[str]:
    """Write every view as <out_dir>/<prefix><name>.png; returns the paths written."""
    os.makedirs(out_dir, exist_ok=True)
    written = []
    for name, img in views.items():
        path = os.path.join(out_dir, f"{prefix}{name}.png")
        if cv2.imwrite(path, img):
            written.append(path)
        else:
            print(f"[debug] could not write {path}")
    return written
