#!/usr/bin/env python3
"""Parity verification: headless dry-run report vs. live execution on the same topology.

Rebuilds the scene described by a request document, then checks that
  1. the headless analysis and the live execution report identical counts,
  2. world positions of every surviving node are unchanged by the merge,
  3. the merged hierarchy is acyclic and no skin references a deleted bone,
  4. planning the merge again (when the clothing root survives) is a no-op.

Usage:
    python verify_parity.py request.json [--preview merged.glb]
"""

import argparse
import logging
import sys

import numpy as np

from rigmerge.config import LOG_FORMAT, LOG_LEVEL
from rigmerge.errors import RigMergeError
from rigmerge.merge import analyze_request, merge_clothing
from rigmerge.planner import plan_merge
from rigmerge.skeleton_preview import export_skeleton_preview
from rigmerge.wire import build_scene, load_request


def main(argv=None):
    parser = argparse.ArgumentParser(description="Dry-run vs. live merge parity check")
    parser.add_argument("request", help="Request .json")
    parser.add_argument("--suffix", type=str, default=None, help="Override the request's suffix")
    parser.add_argument("--preview", type=str, default=None,
                        help="Write a GLB stick figure of the merged avatar")
    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    try:
        request = load_request(args.request)
        if args.suffix is not None:
            request.suffix = args.suffix

        # ── Dry run ──
        dry = analyze_request(request)
        print("Dry run:")
        for line in dry.summary_lines():
            print(f"  {line}")

        # ── Live run ──
        scene = build_scene(request)
        model = scene.model
        before = {h: model.world_position(h) for r in model.roots() for h in model.iter_subtree(r)}
        live = merge_clothing(model, scene.avatar_root, scene.clothing_root,
                              suffix=scene.suffix, skins=scene.skins)
    except RigMergeError as e:
        print(f"FAIL: {e}", file=sys.stderr)
        return 1

    ok = True

    if dry.counts() != live.counts():
        print(f"FAIL counts: dry={dry.counts()} live={live.counts()}")
        ok = False
    else:
        print(f"OK counts: {live.counts()}")

    errs = [np.abs(model.world_position(h) - pos).max() for h, pos in before.items() if model.contains(h)]
    max_err = max(errs) if errs else 0.0
    print(f"{'OK' if max_err < 1e-6 else 'FAIL'} world pose drift: {max_err:.3e}")
    ok = ok and max_err < 1e-6

    integrity = model.validate()
    if integrity["valid"]:
        print("OK integrity")
    else:
        ok = False
        for err in integrity["errors"]:
            print(f"FAIL integrity: {err}")

    if model.contains(scene.clothing_root):
        again = plan_merge(model, scene.avatar_root, scene.clothing_root, suffix=scene.suffix).report
        print(f"{'OK' if again.is_noop() else 'FAIL'} second run: {again.counts()}")
        ok = ok and again.is_noop()

    if args.preview:
        export_skeleton_preview(model, {"avatar": scene.avatar_root}, args.preview)
        print(f"Preview written: {args.preview}")

    print("PASS" if ok else "FAILED")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
