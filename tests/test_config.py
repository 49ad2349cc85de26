"""
Configuration defaults, merging, YAML loading and validation.
"""
from __future__ import annotations
from pathlib import Path

import pytest

from docscan.core.config import (
    compute_target_size,
    default_cfg,
    load_cfg,
    merge_cfg,
    validate_cfg,
)
from docscan.core.errors import ConfigError


def test_defaults_match_classic_scanner():
    cfg = default_cfg()
    assert compute_target_size(cfg) == (500, 666)
    assert cfg["morph"] == {"radius": 3, "iterations": 3}
    assert cfg["threshold"]["cutoff"] == 200
    assert cfg["approx"]["epsilon"] == 0.02
    assert cfg["corners"]["method"] == "angle"
    assert cfg["preview"] is False


def test_merge_keeps_untouched_nested_defaults():
    cfg = merge_cfg({"morph": {"radius": 5}, "width": 800})
    assert cfg["morph"] == {"radius": 5, "iterations": 3}
    assert cfg["width"] == 800


def test_merge_does_not_leak_into_defaults():
    cfg = merge_cfg(None)
    cfg["morph"]["radius"] = 99
    assert default_cfg()["morph"]["radius"] == 3


def test_load_yaml_with_overrides(tmp_path):
    p = tmp_path / "scan.yaml"
    p.write_text("width: 400\nthreshold:\n  cutoff: 150\n")
    cfg = load_cfg(p, {"threshold": {"invert": True}})
    assert cfg["width"] == 400
    assert cfg["threshold"] == {"cutoff": 150, "invert": True}
    assert compute_target_size(cfg) == (400, 533)


def test_shipped_config_loads():
    cfg = load_cfg(Path(__file__).resolve().parent.parent / "config" / "scan.yaml")
    assert cfg == default_cfg()


def test_missing_or_bad_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_cfg(tmp_path / "absent.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_cfg(bad)


@pytest.mark.parametrize("override", [
    {"width": 0},
    {"aspect": -1.0},
    {"morph": {"radius": -1}},
    {"morph": {"iterations": 0}},
    {"threshold": {"cutoff": 300}},
    {"approx": {"epsilon": -0.5}},
    {"contours": {"retrieval": "tree"}},
    {"corners": {"method": "magic"}},
    {"corners": {"tie_fallback": "guess"}},
    {"interpolation": "bogus"},
])
def test_validate_rejects_bad_values(override):
    with pytest.raises(ConfigError):
        validate_cfg(merge_cfg(override))
    # ConfigError is also a ValueError for generic callers
    with pytest.raises(ValueError):
        validate_cfg(merge_cfg(override))
