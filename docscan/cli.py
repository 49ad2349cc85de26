#!/usr/bin/env python3
"""
Command-line scanner:

    python -m docscan.cli photo.jpg -o scanned.jpg
    python -m docscan.cli a.jpg b.jpg c.jpg --out-dir scans/
    python -m docscan.cli photo.jpg --config config/scan.yaml --preview
"""
from __future__ import annotations
import argparse
import sys
from datetime import datetime
from typing import Dict, List, Optional

from docscan.core.config import default_cfg, load_cfg, validate_cfg
from docscan.core.errors import ConfigError, DocScanError, OutputWriteError
from docscan.pipeline import scan_and_save, scan_batch


class Tee:
    def __init__(self, *streams):
        self.streams = streams

    def write(self, data):
        for s in self.streams:
            s.write(data)
            s.flush()

    def flush(self):
        for s in self.streams:
            s.flush()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Rectify photographed documents into a top-down view.")
    ap.add_argument("inputs", nargs="*", help="Input image(s). Default: input_path from the config.")
    ap.add_argument("-o", "--output", default=None, help="Output path (single input only).")
    ap.add_argument("--out-dir", default=None, help="Directory for <name>_scanned.jpg outputs (batch mode).")
    ap.add_argument("--config", default=None, help="YAML config file.")
    ap.add_argument("--width", type=int, default=None, help="Working/output width in pixels.")
    ap.add_argument("--aspect", type=float, default=None, help="Height/width ratio.")
    ap.add_argument("--radius", type=int, default=None, help="Closing kernel radius.")
    ap.add_argument("--iterations", type=int, default=None, help="Closing iterations.")
    ap.add_argument("--cutoff", type=int, default=None, help="Threshold cutoff 0..255.")
    ap.add_argument("--invert", action=argparse.BooleanOptionalAction, default=None, help="Dark document on bright background.")
    ap.add_argument("--epsilon", type=float, default=None, help="Polygon approximation tolerance.")
    ap.add_argument("--relative-epsilon", action=argparse.BooleanOptionalAction, default=None, help="Treat --epsilon as a fraction of the perimeter.")
    ap.add_argument("--corners", choices=["angle", "extremal"], default=None, help="Corner ordering method.")
    ap.add_argument("--color", action=argparse.BooleanOptionalAction, default=None, help="Warp the colour image instead of grayscale.")
    ap.add_argument("--preview", action=argparse.BooleanOptionalAction, default=None, help="Show original and result windows (blocks until a key).")
    ap.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None, help="Print stage diagnostics.")
    ap.add_argument("--debug-dir", default=None, help="Write intermediate stage images here.")
    ap.add_argument("--log-file", nargs="?", const="", default=None,
                    help="Tee output to a log file (default name: scan_<timestamp>.log).")
    return ap


def cfg_from_args(args: argparse.Namespace) -> Dict:
    overrides: Dict = {}
    if args.width is not None:
        overrides["width"] = args.width
    if args.aspect is not None:
        overrides["aspect"] = args.aspect
    morph = {k: v for k, v in (("radius", args.radius), ("iterations", args.iterations)) if v is not None}
    if morph:
        overrides["morph"] = morph
    threshold: Dict = {}
    if args.cutoff is not None:
        threshold["cutoff"] = args.cutoff
    if args.invert is not None:
        threshold["invert"] = args.invert
    if threshold:
        overrides["threshold"] = threshold
    approx: Dict = {}
    if args.epsilon is not None:
        approx["epsilon"] = args.epsilon
    if args.relative_epsilon is not None:
        approx["relative"] = args.relative_epsilon
    if approx:
        overrides["approx"] = approx
    if args.corners is not None:
        overrides["corners"] = {"method": args.corners}
    for flag in ("color", "preview", "debug"):
        if getattr(args, flag) is not None:
            overrides[flag] = getattr(args, flag)
    if args.debug_dir is not None:
        overrides["debug_dir"] = args.debug_dir
    if args.output is not None:
        overrides["output_path"] = args.output

    if args.config:
        return load_cfg(args.config, overrides)
    cfg = default_cfg()
    for k, v in overrides.items():
        cfg[k] = {**cfg[k], **v} if isinstance(v, dict) else v
    return validate_cfg(cfg)


def run(args: argparse.Namespace) -> int:
    try:
        cfg = cfg_from_args(args)
    except ConfigError as e:
        print(f"[ERR] {e}", file=sys.stderr)
        return 2

    inputs = args.inputs or [cfg["input_path"]]
    if args.output and len(inputs) > 1:
        print("[ERR] --output takes a single input; use --out-dir for several", file=sys.stderr)
        return 2

    if args.out_dir or len(inputs) > 1:
        items = scan_batch(inputs, args.out_dir or ".", cfg)
        for it in items:
            if it.ok:
                print(f"[ok] {it.path} -> {it.output_path}")
            else:
                print(f"[fail] {it.path}: {type(it.error).__name__}: {it.error}")
        failed = sum(not it.ok for it in items)
        print(f"[batch] {len(items) - failed}/{len(items)} scanned")
        return 1 if failed else 0

    try:
        scan_and_save(inputs[0], cfg["output_path"], cfg)
    except DocScanError as e:
        print(f"[fail] {inputs[0]}: {type(e).__name__}: {e}")
        if isinstance(e, OutputWriteError):
            print("Failed to save the image.")
        return 1
    print(f"Image saved successfully! -> {cfg['output_path']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_file is None:
        return run(args)

    logfile = args.log_file or f"scan_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    stdout, stderr = sys.stdout, sys.stderr
    with open(logfile, "w") as log:
        sys.stdout = Tee(stdout, log)
        sys.stderr = Tee(stderr, log)
        try:
            print(f"[logging] Writing output to: {logfile}")
            return run(args)
        finally:
            sys.stdout, sys.stderr = stdout, stderr


if __name__ == "__main__":
    sys.exit(main())
