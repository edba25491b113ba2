#!/usr/bin/env python3
"""CLI: headless dry-run analysis of a clothing merge.

Reads a request document (avatar/clothing bone topology, clothing skins,
suffix), runs the merge planner without touching any scene, and writes the
response document the host reads back.

Usage:
    python analyze_merge.py --input request.json --output report.json
    python analyze_merge.py            # analyze the built-in sample request
"""

import argparse
import logging
import sys

from rigmerge.config import LOG_FORMAT, LOG_LEVEL
from rigmerge.errors import RigMergeError
from rigmerge.merge import analyze_request
from rigmerge.wire import BoneInfo, MergeRequest, SmrInfo, load_request, save_report

log = logging.getLogger("analyze_merge")


def sample_request():
    """Small avatar + jacket pair used when no input file is given."""
    return MergeRequest(
        avatar_bones=[
            BoneInfo("Hips", None),
            BoneInfo("Spine", "Hips"),
        ],
        clothing_bones=[
            BoneInfo("Jacket_Root", None),
            BoneInfo("Spine", "Jacket_Root"),
            BoneInfo("Chest", "Spine"),
            BoneInfo("Jacket", "Jacket_Root"),
        ],
        clothing_smrs=[SmrInfo("Jacket", root_bone="Spine", bones=["Spine", "Chest"])],
        suffix="_cloth",
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Dry-run a clothing merge from a request JSON and write the report JSON"
    )
    parser.add_argument("--input", type=str, default=None,
                        help="Request JSON exported by the host (default: built-in sample)")
    parser.add_argument("--output", type=str, default=None,
                        help="Where to write the report JSON (parent folders are created)")
    parser.add_argument("--suffix", type=str, default=None,
                        help="Override the request's suffix")
    parser.add_argument("--verbose", action="store_true", help="Log planning decisions")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL, format=LOG_FORMAT)

    try:
        if args.input:
            request = load_request(args.input)
            print(f"Input: {args.input}")
        else:
            print("No input file, analyzing the built-in sample request.")
            request = sample_request()
        if args.suffix is not None:
            request.suffix = args.suffix

        print(f"  avatar_bones={len(request.avatar_bones)}, "
              f"clothing_bones={len(request.clothing_bones)}, "
              f"clothing_smrs={len(request.clothing_smrs)}")
        report = analyze_request(request)

        if args.output:
            save_report(args.output, report)
    except RigMergeError as e:
        log.error(str(e))
        print(f"FAIL: {e}", file=sys.stderr)
        return 1

    for line in report.summary_lines():
        print(line)
    if args.output:
        print(f"Report saved: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
