"""Orchestrator: plan → execute for live scenes, plan → report for headless requests."""

import logging

from rigmerge.executor import execute_plan
from rigmerge.planner import plan_merge
from rigmerge.wire import build_scene, load_request, save_report

log = logging.getLogger(__name__)


def merge_clothing(model, avatar_root, clothing_root, suffix="", skins=None):
    """
    Merge a clothing hierarchy into an avatar hierarchy in place.

    Parameters
    ----------
    model : SceneModel, mutated
    avatar_root, clothing_root : node handles
    suffix : str, raw suffix (normalized before use)
    skins : list of Skin or None, None takes every skin under clothing_root

    Returns the realized MergeReport. Snapshot ``model.copy()`` beforehand if
    a failed execution must be rolled back.
    """
    plan = plan_merge(model, avatar_root, clothing_root, skins=skins, suffix=suffix)
    log.info(f"Applying {len(plan)} operation(s)")
    report = execute_plan(plan, model)
    for w in report.warnings:
        log.warning(w)
    return report


def analyze_request(request):
    """Dry-run a MergeRequest; the result matches what merge_clothing would realize."""
    scene = build_scene(request)
    plan = plan_merge(scene.model, scene.avatar_root, scene.clothing_root,
                      skins=scene.skins, suffix=scene.suffix)
    return plan.report


def analyze_file(input_path, output_path=None):
    """Read a request document, analyze it, optionally write the response document."""
    request = load_request(input_path)
    log.info(
        f"Loaded request: avatar_bones={len(request.avatar_bones)}, "
        f"clothing_bones={len(request.clothing_bones)}, clothing_smrs={len(request.clothing_smrs)}"
    )
    report = analyze_request(request)
    if output_path is not None:
        save_report(output_path, report)
        log.info(f"Report written to {output_path}")
    return report
