"""Apply a MergePlan to a live SceneModel, in plan order, and report realized counts."""

import logging

import numpy as np

from rigmerge.errors import InternalInconsistency, PlanExecutionError, RigMergeError
from rigmerge.planner import BONE, SMR, Delete, Rename, Reparent
from rigmerge.prune import delete_with_ancestors
from rigmerge.report import MergeReport

log = logging.getLogger(__name__)


def _apply(op, model, avatar_root, counts: dict) -> None:
    if isinstance(op, Reparent):
        model.node(op.new_parent)
        model.set_parent(op.node, op.new_parent, keep_world=True)
        counts["moved_bones" if op.role == BONE else "moved_smrs"] += 1
    elif isinstance(op, Rename):
        model.rename(op.node, op.new_name)
        counts["renamed_bones" if op.role == BONE else "renamed_smrs"] += 1
    elif isinstance(op, Delete):
        deleted = delete_with_ancestors(model, op.node, avatar_root)
        counts["deleted_objects"] += len(deleted)
    else:
        raise InternalInconsistency(f"Unknown operation type: {type(op).__name__}")


def execute_plan(plan, model) -> MergeReport:
    """Apply ``plan`` to ``model`` and return the realized report.

    Reparents keep world poses fixed. Deleting the clothing root also prunes
    its emptied ancestors up to (never including) the avatar root.

    Raises:
        PlanExecutionError: an operation failed; earlier ones stay applied
        InternalInconsistency: realized counts differ from the planned ones
    """
    counts = dict.fromkeys(plan.report.counts(), 0)
    for index, op in enumerate(plan.operations):
        try:
            _apply(op, model, plan.avatar_root, counts)
        except (RigMergeError, np.linalg.LinAlgError) as exc:
            log.error(f"Merge stopped at operation {index} ({op}): {exc}")
            raise PlanExecutionError(applied=index, index=index, operation=op, cause=exc) from exc

    planned = plan.report.counts()
    if counts != planned:
        diff = {k: (planned[k], counts[k]) for k in counts if counts[k] != planned[k]}
        log.error(f"Realized counts differ from plan (planned, realized): {diff}")
        raise InternalInconsistency(
            f"All {len(plan.operations)} operation(s) applied but counts differ from plan: {diff}"
        )

    report = plan.report
    return MergeReport(
        duplicate_avatar_bone_names=list(report.duplicate_avatar_bone_names),
        duplicate_clothing_bone_names=list(report.duplicate_clothing_bone_names),
        referenced_clothing_bones=report.referenced_clothing_bones,
        warnings=list(report.warnings),
        **counts,
    )
