"""Reference-aware deletion of the clothing scaffold and upward pruning of empty ancestors.

Functions here work on any hierarchy view exposing ``contains``, ``parent``,
``children``, ``is_under``, ``has_data`` and ``delete``: the live SceneModel
and the planner's overlay both do, so prediction and execution share one rule.
"""

import logging

from rigmerge.errors import InternalInconsistency

log = logging.getLogger(__name__)


def remaining_under(view, root, referenced) -> list:
    """Referenced nodes that are ``root`` itself or still inside it."""
    return [h for h in referenced if view.contains(h) and view.is_under(h, root)]


def safe_to_delete(view, root, referenced) -> bool:
    return not remaining_under(view, root, referenced)


def prune_upward(view, start_parent, boundary) -> list:
    """Delete childless, data-free ancestors from ``start_parent`` upward.

    Stops at ``boundary`` (never deleted) or at the first ancestor that still
    has children or carries data. Returns deleted handles, nearest first.
    """
    deleted = []
    current = start_parent
    while current is not None and current != boundary:
        if view.children(current) or view.has_data(current):
            break
        parent = view.parent(current)
        view.delete(current)
        deleted.append(current)
        log.debug(f"Pruned empty ancestor {current}")
        current = parent
    return deleted


def delete_with_ancestors(view, target, boundary) -> list:
    """Delete ``target`` (with its subtree) then prune its emptied ancestors.

    Returns the top-level handles deleted: ``target`` first, then each pruned
    ancestor.
    """
    if target == boundary or view.is_under(boundary, target):
        raise InternalInconsistency(
            f"Refusing to delete node {target}: it contains the boundary node {boundary}"
        )
    parent = view.parent(target)
    view.delete(target)
    return [target] + prune_upward(view, parent, boundary)
