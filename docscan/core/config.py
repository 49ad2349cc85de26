# docscan/core/config.py
from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional, Tuple
import cv2
import yaml

from docscan.core.errors import ConfigError

# Defaults reproduce the classic single-image scanner: 500 px wide, 4:3 portrait
_DEFAULT_CFG: Dict = {
    "input_path": "scanned-form.jpg",
    "output_path": "scanned.jpg",
    "width": 500,
    "aspect": 1.333,                   # height = int(width * aspect)
    "color": False,                    # warp the BGR image; detection stays grayscale
    "morph": {"radius": 3, "iterations": 3},
    "threshold": {"cutoff": 200, "invert": False},
    "contours": {
        "retrieval": "list",           # "list" | "external"
    },
    # absolute pixels unless relative=True (then fraction of the perimeter)
    "approx": {"epsilon": 0.02, "relative": False},
    "corners": {
        "method": "angle",             # "angle" | "extremal"
        "tie_fallback": "bbox",        # extremal only: "bbox" | "error"
    },
    "min_corner_triangle_area": 1.0,   # px²
    "interpolation": "linear",
    "preview": False,
    "debug": False,
    "debug_dir": None,
}

INTERPOLATIONS: Dict[str, int] = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "area": cv2.INTER_AREA,
    "lanczos": cv2.INTER_LANCZOS4,
}

RETRIEVAL_MODES: Dict[str, int] = {
    "list": cv2.RETR_LIST,
    "external": cv2.RETR_EXTERNAL,
}

CORNER_METHODS = ("angle", "extremal")
TIE_FALLBACKS = ("bbox", "error")


def default_cfg() -> Dict:
    return merge_cfg(None)


def merge_cfg(cfg: Optional[Dict]) -> Dict:
    merged = {k: (dict(v) if isinstance(v, dict) else v) for k, v in _DEFAULT_CFG.items()}
    if not cfg:
        return merged
    for k, v in cfg.items():
        if isinstance(v, dict) and k in merged and isinstance(merged[k], dict):
            merged[k] = {**merged[k], **v}
        else:
            merged[k] = v
    return merged


def load_cfg(path: str | Path, overrides: Optional[Dict] = None) -> Dict:
    """
    Read a YAML config file and merge it over the defaults.
    `overrides` (e.g. from command-line flags) win over the file.
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must hold a mapping, got {type(data).__name__}")

    cfg = merge_cfg(data)
    if overrides:
        for k, v in overrides.items():
            if isinstance(v, dict) and isinstance(cfg.get(k), dict):
                cfg[k] = {**cfg[k], **v}
            else:
                cfg[k] = v
    return validate_cfg(cfg)


def validate_cfg(cfg: Dict) -> Dict:
    """Raise ConfigError on the first out-of-range or unknown value."""
    if int(cfg["width"]) <= 0:
        raise ConfigError(f"width must be positive, got {cfg['width']}")
    if float(cfg["aspect"]) <= 0:
        raise ConfigError(f"aspect must be positive, got {cfg['aspect']}")
    if int(cfg["width"] * cfg["aspect"]) <= 0:
        raise ConfigError("width * aspect truncates to a zero height")
    if int(cfg["morph"]["radius"]) < 0:
        raise ConfigError(f"morph.radius must be >= 0, got {cfg['morph']['radius']}")
    if int(cfg["morph"]["iterations"]) < 1:
        raise ConfigError(f"morph.iterations must be >= 1, got {cfg['morph']['iterations']}")
    if not 0 <= int(cfg["threshold"]["cutoff"]) <= 255:
        raise ConfigError(f"threshold.cutoff must be within 0..255, got {cfg['threshold']['cutoff']}")
    if float(cfg["approx"]["epsilon"]) < 0:
        raise ConfigError(f"approx.epsilon must be >= 0, got {cfg['approx']['epsilon']}")
    if cfg["contours"]["retrieval"] not in RETRIEVAL_MODES:
        raise ConfigError(f"unknown contours.retrieval {cfg['contours']['retrieval']!r}")
    if cfg["corners"]["method"] not in CORNER_METHODS:
        raise ConfigError(f"unknown corners.method {cfg['corners']['method']!r}")
    if cfg["corners"]["tie_fallback"] not in TIE_FALLBACKS:
        raise ConfigError(f"unknown corners.tie_fallback {cfg['corners']['tie_fallback']!r}")
    if cfg["interpolation"] not in INTERPOLATIONS:
        raise ConfigError(f"unknown interpolation {cfg['interpolation']!r}")
    return cfg


def compute_target_size(cfg: Dict) -> Tuple[int, int]:
    """(W, H) of both the resized input and the rectified output."""
    width = int(cfg["width"])
    return width, int(width * float(cfg["aspect"]))
