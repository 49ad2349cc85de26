"""
Synthetic scenes shared by the tests; everything is drawn on the fly,
so no image assets are required.
"""
from __future__ import annotations
import numpy as np
import cv2
import pytest

W, H = 500, 666  # default working size (500 x int(500 * 1.333))


def _roles(pts: np.ndarray) -> np.ndarray:
    """TL, BL, BR, TR for a mildly rotated quad (sum/diff rule)."""
    p = np.asarray(pts, np.float32).reshape(4, 2)
    s = p.sum(axis=1)
    d = p[:, 1] - p[:, 0]
    return np.array([p[np.argmin(s)], p[np.argmax(d)], p[np.argmax(s)], p[np.argmin(d)]], np.float32)


@pytest.fixture
def rotated_page():
    """Factory: white rotated rectangle on black, at the working size."""
    def _make(angle: float = 10.0, size=(300, 400), center=(W / 2, H / 2)):
        img = np.zeros((H, W), np.uint8)
        box = cv2.boxPoints((center, size, angle))
        quad = np.round(box).astype(np.int32)
        cv2.fillConvexPoly(img, quad, 255)
        return img, _roles(quad)
    return _make


@pytest.fixture
def synthetic_photo():
    """
    A 'photographed' page: bright paper with dark text lines, seen in
    perspective on a dark desk, at twice the working resolution.
    Returns (image, ground-truth corners TL, BL, BR, TR in full-res pixels).
    """
    fw, fh = 1000, 1333
    page_w, page_h = 600, 800
    page = np.full((page_h, page_w), 235, np.uint8)
    for y in range(80, page_h - 60, 40):
        cv2.line(page, (50, y), (page_w - 50, y), 30, 2)
    cv2.putText(page, "INVOICE", (60, 60), cv2.FONT_HERSHEY_SIMPLEX, 1.5, 20, 3, cv2.LINE_AA)

    gt = np.array([[180, 200], [130, 1180], [860, 1150], [820, 150]], np.float32)  # TL, BL, BR, TR
    src = np.array([[0, 0], [0, page_h - 1], [page_w - 1, page_h - 1], [page_w - 1, 0]], np.float32)
    Hmat = cv2.getPerspectiveTransform(src, gt)
    warped = cv2.warpPerspective(page, Hmat, (fw, fh))
    mask = np.zeros((fh, fw), np.uint8)
    cv2.fillConvexPoly(mask, np.round(gt).astype(np.int32), 255)

    frame = np.full((fh, fw), 60, np.uint8)
    frame[mask > 0] = warped[mask > 0]
    frame = cv2.GaussianBlur(frame, (3, 3), 0)
    return frame, gt


@pytest.fixture
def write_image(tmp_path):
    """Factory: write an array to tmp_path/<name> and return the path as str."""
    def _write(name: str, img: np.ndarray) -> str:
        p = tmp_path / name
        assert cv2.imwrite(str(p), img)
        return str(p)
    return _write
