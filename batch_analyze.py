#!/usr/bin/env python3
"""CLI: analyze many merge request documents, optionally in parallel."""

import argparse
import logging
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from rigmerge.config import LOG_FORMAT, LOG_LEVEL
from rigmerge.merge import analyze_file

REPORT_SUFFIX = "_report.json"


def gather_inputs(paths):
    """Resolve input paths to a list of request .json files."""
    files = []
    for p in paths:
        p = Path(p)
        if p.is_file() and p.suffix == ".json":
            files.append(p)
        elif p.is_dir():
            files.extend(f for f in sorted(p.glob("*.json")) if not f.name.endswith(REPORT_SUFFIX))
        else:
            print(f"Warning: skipping {p} (not a .json file or directory)", file=sys.stderr)
    return files


def analyze_one(args):
    """Wrapper for ProcessPoolExecutor."""
    request_path, output_path = args
    try:
        report = analyze_file(request_path, output_path)
        return str(request_path), report.counts(), None
    except Exception as e:
        return str(request_path), None, str(e)


def _print_result(name, counts, err):
    if err:
        print(f"FAIL: {Path(name).name}: {err}", file=sys.stderr)
    else:
        summary = ", ".join(f"{k}={v}" for k, v in counts.items())
        print(f"OK: {Path(name).name} ({summary})")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Dry-run clothing merges for a batch of request JSON files"
    )
    parser.add_argument("input", nargs="+", help="Request .json file(s) or directory")
    parser.add_argument("--output-dir", type=str, default="./reports",
                        help="Output directory for report .json files")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of parallel workers (default: 1)")
    parser.add_argument("--overwrite", action="store_true",
                        help="Overwrite existing report files")

    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    files = gather_inputs(args.input)
    if not files:
        print("No request .json files found.", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tasks = []
    for f in files:
        out_path = output_dir / f"{f.stem}{REPORT_SUFFIX}"
        if out_path.exists() and not args.overwrite:
            print(f"Skipping {f.name} (exists, use --overwrite)")
            continue
        tasks.append((str(f), str(out_path)))

    if not tasks:
        print("Nothing to do.")
        return 0

    print(f"Analyzing {len(tasks)} request(s) with {args.workers} worker(s)...")

    failures = 0
    if args.workers <= 1:
        for task in tasks:
            name, counts, err = analyze_one(task)
            failures += err is not None
            _print_result(name, counts, err)
    else:
        with ProcessPoolExecutor(max_workers=args.workers) as pool:
            futures = {pool.submit(analyze_one, t): t for t in tasks}
            for future in as_completed(futures):
                name, counts, err = future.result()
                failures += err is not None
                _print_result(name, counts, err)

    print("Done.")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
