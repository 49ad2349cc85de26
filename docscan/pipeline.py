"""
The document scan as a chain of stages:
resize -> close/threshold -> largest contour -> polygon -> corners -> warp.

Every function here is headless; saving, stage dumps and the preview window
happen only in scan_and_save, and only when configured.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set
import cv2
import numpy as np

from docscan.core.config import merge_cfg, validate_cfg
from docscan.core.contracts import BatchItem, ScanResult
from docscan.core.errors import DocScanError, ImageLoadError
from docscan.geometry.detect import (
    approximate_polygon,
    ensure_foreground,
    find_contours,
    identify_corners,
    largest_contour,
)
from docscan.geometry.isolate import isolate_shape, resize_to_target
from docscan.geometry.rectify import rectify
from docscan.io.debug_views import draw_corners, render_stage_views, save_stage_views
from docscan.io.ingest import load_grayscale, load_image, save_image
from docscan.io.preview import show_preview


def scan_image(image: np.ndarray, cfg: Optional[Dict] = None) -> ScanResult:
    """
    Rectify an already loaded image (grayscale or BGR).
    Detection always runs on grayscale; with cfg["color"] the BGR image is warped.
    """
    cfg = validate_cfg(merge_cfg(cfg))
    if image is None or image.size == 0:
        raise ImageLoadError("input image is empty")

    resized = resize_to_target(image, cfg)
    gray = cv2.cvtColor(resized, cv2.COLOR_BGR2GRAY) if resized.ndim == 3 else resized

    closed, binary = isolate_shape(gray, cfg)
    ensure_foreground(binary, cfg)
    contours = find_contours(binary, cfg)
    idx, area = largest_contour(contours, binary.shape, cfg)
    polygon = approximate_polygon(contours[idx], cfg)
    corners = identify_corners(polygon, cfg)

    source = resized if (cfg.get("color") and resized.ndim == 3) else gray
    rectified, Hmat = rectify(source, corners, cfg)

    return ScanResult(
        rectified=rectified,
        resized=source,
        closed=closed,
        binary=binary,
        contours=contours,
        contour_index=idx,
        contour_area=area,
        polygon=polygon,
        corners=corners,
        homography=Hmat,
    )


def scan_file(path: str, cfg: Optional[Dict] = None) -> ScanResult:
    cfg = merge_cfg(cfg)
    img = load_image(path) if cfg.get("color") else load_grayscale(path)
    return scan_image(img, cfg)


def scan_and_save(path: Optional[str] = None, output_path: Optional[str] = None, cfg: Optional[Dict] = None) -> ScanResult:
    """
    Full single-image run: load, scan, write the result, then optionally dump
    stage images to cfg["debug_dir"] and show the preview windows.
    """
    cfg = merge_cfg(cfg)
    path = path or cfg["input_path"]
    out = output_path or cfg["output_path"]

    result = scan_file(path, cfg)
    ok = save_image(out, result.rectified)
    if cfg.get("debug"):
        print(f"[save] {out} ok={ok}")

    if cfg.get("debug_dir"):
        views = render_stage_views(result.resized, result.closed, result.binary,
                                   result.contours, result.contour_index, result.polygon)
        views["06_corners"] = draw_corners(result.resized, result.corners.pts)
        written = save_stage_views(cfg["debug_dir"], views, prefix=f"{Path(path).stem}_")
        if cfg.get("debug"):
            print(f"[debug] wrote {len(written)} stage images to {cfg['debug_dir']}")

    if cfg.get("preview"):
        show_preview(result.resized, result.rectified)
    return result


def batch_output_path(path: str, out_dir: str, taken: Optional[Set[str]] = None,
                      suffix: str = "_scanned", ext: str = ".jpg") -> str:
    """
    <out_dir>/<stem>_scanned.jpg; names already in `taken` get _1, _2, ...
    appended so inputs sharing a stem never overwrite each other.
    """
    stem = f"{Path(path).stem}{suffix}"
    out = os.path.join(out_dir, f"{stem}{ext}")
    n = 0
    while taken is not None and out in taken:
        n += 1
        out = os.path.join(out_dir, f"{stem}_{n}{ext}")
    if taken is not None:
        taken.add(out)
    return out


def scan_batch(paths: Iterable[str], out_dir: str, cfg: Optional[Dict] = None) -> List[BatchItem]:
    """
    Scan several files into `out_dir`. A DocScanError on one image is recorded
    on its BatchItem and the batch moves on.
    """
    cfg = merge_cfg(cfg)
    os.makedirs(out_dir, exist_ok=True)
    items: List[BatchItem] = []
    taken: Set[str] = set()
    for p in paths:
        out = batch_output_path(p, out_dir, taken)
        item = BatchItem(path=str(p), output_path=out)
        try:
            item.result = scan_and_save(str(p), out, cfg)
        except DocScanError as e:
            item.error = e
            if cfg.get("debug"):
                print(f"[batch] {p}: {type(e).__name__}: {e}")
        items.append(item)
    return items
