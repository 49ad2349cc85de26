"""
End-to-end scans on synthetic scenes, batch isolation and file I/O.
"""
from __future__ import annotations
import os

import numpy as np
import cv2
import pytest

from docscan.core.contracts import ScanResult
from docscan.core.errors import (
    DocScanError,
    ImageLoadError,
    NoContourFoundError,
    OutputWriteError,
)
from docscan.io.ingest import load_grayscale, load_image, save_image
import docscan.pipeline as pipeline
from docscan.pipeline import scan_and_save, scan_batch, scan_file, scan_image

# ---------- Headless pipeline ---------- #

@pytest.mark.parametrize("angle", [5, 10, 15])
def test_rotated_page_is_rectified_to_target_size(rotated_page, angle):
    img, truth = rotated_page(angle=angle)
    res = scan_image(img)
    assert isinstance(res, ScanResult)
    assert res.rectified.shape == (666, 500)
    assert res.corners.pts.shape == (4, 2)
    assert np.abs(res.corners.pts - truth).max() <= 3.0
    # the page fills the output; only a thin border may pick up background
    assert res.rectified[15:-15, 15:-15].mean() > 245


def test_scan_result_carries_diagnostics(rotated_page):
    img, _ = rotated_page(angle=10)
    res = scan_image(img)
    assert res.contour_count >= 1
    assert res.contour_area == pytest.approx(300 * 400, rel=0.03)
    assert res.contour.ndim == 3
    assert res.homography.shape == (3, 3)
    assert res.binary.shape == res.closed.shape == (666, 500)


@pytest.mark.parametrize("value", [0, 255])
def test_blank_image_reports_no_contour(value):
    img = np.full((900, 700), value, np.uint8)
    with pytest.raises(NoContourFoundError):
        scan_image(img)


def test_page_filling_frame_warps_to_near_identity():
    page = np.full((666, 500), 240, np.uint8)
    cv2.rectangle(page, (200, 100), (300, 180), 0, -1)  # logo block
    res = scan_image(page)
    assert res.contour_area == pytest.approx(499 * 665, rel=0.01)
    assert res.rectified[140, 250] < 50
    assert res.rectified[400, 250] > 200
    diff = np.abs(res.rectified.astype(int) - page.astype(int))
    assert diff.mean() < 2.0


@pytest.mark.parametrize("angle", [8, -8])
def test_extremal_corners_on_staircase_polygon(rotated_page, angle):
    img, truth = rotated_page(angle=angle)
    res = scan_image(img, {"corners": {"method": "extremal"}})
    assert len(res.polygon) > 4
    # first-occurrence extrema may sit a few pixels along a stepped edge
    assert np.abs(res.corners.pts - truth).max() <= 9.0
    assert res.rectified[25:-25, 25:-25].mean() > 240


def test_empty_array_is_a_load_error():
    with pytest.raises(ImageLoadError):
        scan_image(np.zeros((0, 0), np.uint8))


def test_golden_photo_corners_within_tolerance(synthetic_photo):
    photo, gt = synthetic_photo
    res = scan_image(photo)
    sx = 500 / photo.shape[1]
    sy = 666 / photo.shape[0]
    expected = gt * np.array([sx, sy], np.float32)
    assert np.abs(res.corners.pts - expected).max() <= 4.0


def test_color_mode_warps_bgr(synthetic_photo):
    photo, _ = synthetic_photo
    bgr = cv2.cvtColor(photo, cv2.COLOR_GRAY2BGR)
    res = scan_image(bgr, {"color": True})
    assert res.rectified.shape == (666, 500, 3)
    assert scan_image(bgr).rectified.shape == (666, 500)


# ---------- I/O ---------- #

def test_load_missing_file_raises(tmp_path):
    missing = str(tmp_path / "nope.jpg")
    with pytest.raises(ImageLoadError):
        load_grayscale(missing)
    with pytest.raises(FileNotFoundError):
        load_image(missing)


def test_load_non_image_raises(tmp_path):
    p = tmp_path / "notes.jpg"
    p.write_text("not an image")
    with pytest.raises(ImageLoadError):
        load_grayscale(str(p))


def test_save_to_missing_directory_raises(tmp_path):
    img = np.zeros((10, 10), np.uint8)
    with pytest.raises(OutputWriteError):
        save_image(str(tmp_path / "no" / "such" / "dir" / "out.png"), img)
    assert save_image(str(tmp_path / "out.png"), img) is True


def test_scan_file_round_trip(rotated_page, write_image):
    img, _ = rotated_page(angle=10)
    path = write_image("page.png", img)
    res = scan_file(path)
    assert res.rectified.shape == (666, 500)


def test_scan_and_save_writes_output_and_stage_views(rotated_page, write_image, tmp_path, monkeypatch):
    img, _ = rotated_page(angle=10)
    path = write_image("page.png", img)
    out = str(tmp_path / "scanned.jpg")
    shown = []
    monkeypatch.setattr(pipeline, "show_preview", lambda a, b: shown.append((a.shape, b.shape)))

    scan_and_save(path, out, {"debug_dir": str(tmp_path / "dbg")})
    assert os.path.isfile(out)
    written = sorted(os.listdir(tmp_path / "dbg"))
    assert "page_02_threshold.png" in written
    assert "page_06_corners.png" in written
    assert shown == []  # preview is opt-in

    scan_and_save(path, out, {"preview": True})
    assert shown == [((666, 500), (666, 500))]


def test_debug_prints_stage_tags(rotated_page, capsys):
    img, _ = rotated_page(angle=10)
    scan_image(img, {"debug": True})
    out = capsys.readouterr().out
    for tag in ("[resize]", "[contours]", "[approx]", "[corners]", "[homography]"):
        assert tag in out


# ---------- Batch ---------- #

def test_batch_isolates_failures(rotated_page, write_image, tmp_path):
    good, _ = rotated_page(angle=10)
    paths = [
        write_image("good.png", good),
        str(tmp_path / "missing.png"),
        write_image("blank.png", np.zeros((600, 400), np.uint8)),
    ]
    out_dir = str(tmp_path / "scans")
    items = scan_batch(paths, out_dir)

    assert [it.ok for it in items] == [True, False, False]
    assert os.path.isfile(items[0].output_path)
    assert items[0].output_path.endswith("good_scanned.jpg")
    assert isinstance(items[1].error, ImageLoadError)
    assert isinstance(items[2].error, NoContourFoundError)
    assert all(isinstance(it.error, DocScanError) for it in items[1:])


def test_batch_gives_same_named_inputs_distinct_outputs(rotated_page, tmp_path):
    first, _ = rotated_page(angle=5)
    second, _ = rotated_page(angle=-5)
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    pa, pb = str(tmp_path / "a" / "page.png"), str(tmp_path / "b" / "page.png")
    assert cv2.imwrite(pa, first) and cv2.imwrite(pb, second)

    items = scan_batch([pa, pb, pa], str(tmp_path / "out"))
    outs = [it.output_path for it in items]
    assert all(it.ok for it in items)
    assert len(set(outs)) == 3
    assert outs[0].endswith("page_scanned.jpg")
    assert outs[1].endswith("page_scanned_1.jpg")
    assert outs[2].endswith("page_scanned_2.jpg")
    assert all(os.path.isfile(o) for o in outs)
