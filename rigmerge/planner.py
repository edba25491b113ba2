"""Dry-run merge planning: avatar + clothing hierarchies + skins + suffix -> ordered operations.

The planner never mutates the model. Every check runs against a planned-state
overlay that is updated after each planned operation, so each decision sees
exactly the hierarchy the executor will see when it reaches that operation.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from rigmerge.bone_refs import collect_referenced_bones
from rigmerge.errors import CycleError, InvalidInput
from rigmerge.name_index import build_name_index, duplicate_names, needs_suffix, normalize_suffix
from rigmerge.prune import delete_with_ancestors, remaining_under
from rigmerge.report import (
    WARN_AVATAR_INSIDE_CLOTHING,
    WARN_DUPLICATE_AVATAR,
    WARN_DUPLICATE_CLOTHING,
    WARN_NO_SKINS,
    MergeReport,
    deletion_skipped_warning,
)

log = logging.getLogger(__name__)

BONE = "bone"
SMR = "smr"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Reparent:
    node: int
    new_parent: int
    role: str = BONE


@dataclass(frozen=True)
class Rename:
    node: int
    new_name: str
    role: str = BONE


@dataclass(frozen=True)
class Delete:
    node: int


@dataclass(frozen=True)
class MergePlan:
    avatar_root: int
    clothing_root: int
    suffix: str  # normalized
    operations: tuple
    referenced: tuple  # referenced clothing bones, first-reference order
    report: MergeReport

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self):
        return iter(self.operations)


# ---------------------------------------------------------------------------
# Planned-state overlay
# ---------------------------------------------------------------------------

class PlannedHierarchy:
    """Copy-on-write view of a SceneModel's structure and names.

    Reads fall through to the model until a node's parent, child list or name
    has been overridden by a planned operation.
    """

    def __init__(self, model):
        self._model = model
        self._parents = {}
        self._children = {}
        self._names = {}
        self._deleted = set()

    def contains(self, handle) -> bool:
        return handle not in self._deleted and self._model.contains(handle)

    def name(self, handle) -> str:
        return self._names.get(handle, self._model.name(handle))

    def parent(self, handle) -> Optional[int]:
        if handle in self._parents:
            return self._parents[handle]
        return self._model.parent(handle)

    def children(self, handle) -> tuple:
        if handle in self._children:
            return tuple(self._children[handle])
        return self._model.children(handle)

    def has_data(self, handle) -> bool:
        return self._model.has_data(handle)

    def is_under(self, handle, root) -> bool:
        current = handle
        while current is not None:
            if current == root:
                return True
            current = self.parent(current)
        return False

    def rename(self, handle, name: str) -> None:
        self._names[handle] = name

    def _child_list(self, handle) -> list:
        if handle not in self._children:
            self._children[handle] = list(self._model.children(handle))
        return self._children[handle]

    def set_parent(self, handle, new_parent) -> None:
        if new_parent is not None and self.is_under(new_parent, handle):
            raise CycleError(handle, new_parent)
        old_parent = self.parent(handle)
        if old_parent is not None:
            self._child_list(old_parent).remove(handle)
        if new_parent is not None:
            self._child_list(new_parent).append(handle)
        self._parents[handle] = new_parent

    def delete(self, handle) -> None:
        parent = self.parent(handle)
        if parent is not None:
            self._child_list(parent).remove(handle)
        stack = [handle]
        while stack:
            h = stack.pop()
            self._deleted.add(h)
            stack.extend(self.children(h))


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------

def _require_node(model, handle, label: str) -> None:
    if handle is None:
        raise InvalidInput(f"{label} is required")
    if not model.contains(handle):
        raise InvalidInput(f"{label} ({handle}) does not exist in the scene")


def plan_merge(model, avatar_root: int, clothing_root: int, skins=None, suffix: str = "") -> MergePlan:
    """Plan merging the clothing hierarchy into the avatar hierarchy.

    Args:
        model: SceneModel snapshot (read only)
        avatar_root: handle of the avatar hierarchy root
        clothing_root: handle of the clothing hierarchy root
        skins: clothing skins; None means every skin on a node under clothing_root
        suffix: raw suffix text, normalized with normalize_suffix

    Raises:
        InvalidInput: roots missing, stale or identical; a skin's node missing
    """
    _require_node(model, avatar_root, "Avatar root")
    _require_node(model, clothing_root, "Clothing root")
    if avatar_root == clothing_root:
        raise InvalidInput("Avatar root and clothing root are the same node")

    if skins is None:
        skins = model.skins_under(clothing_root)
    else:
        skins = list(skins)
        for skin in skins:
            _require_node(model, skin.node, "Skin node")

    norm = normalize_suffix(suffix)
    state = PlannedHierarchy(model)
    ops = []

    # 1-2) avatar lookup, referenced clothing bones
    avatar_index = build_name_index(model, avatar_root)
    referenced = collect_referenced_bones(model, skins, clothing_root)

    # 3) bones under same-named avatar bones
    for b in referenced:
        match = avatar_index.lookup(state.name(b))
        if match is None or match == b:
            continue
        if state.is_under(match, b):
            log.debug(f"Skip '{state.name(b)}': avatar match is inside it")
            continue
        if state.parent(b) == match:
            continue
        ops.append(Reparent(b, match, BONE))
        state.set_parent(b, match)

    # 4) suffix on referenced bones
    if norm:
        for b in referenced:
            name = state.name(b)
            if needs_suffix(name, norm):
                ops.append(Rename(b, name + norm, BONE))
                state.rename(b, name + norm)

    # 5) skinned mesh nodes directly under the avatar root
    warnings = []
    for skin in skins:
        t = skin.node
        if state.parent(t) != avatar_root:
            if state.is_under(avatar_root, t):
                warnings.append(f"Skinned mesh '{state.name(t)}' contains the avatar root; left in place.")
            else:
                ops.append(Reparent(t, avatar_root, SMR))
                state.set_parent(t, avatar_root)
        name = state.name(t)
        if needs_suffix(name, norm):
            ops.append(Rename(t, name + norm, SMR))
            state.rename(t, name + norm)

    # 6) clothing root deletion, guarded by every skin that survives it
    surviving = [s for s in model.skins if not state.is_under(s.node, clothing_root)]
    guarded = referenced + tuple(
        b for b in collect_referenced_bones(model, surviving, clothing_root) if b not in referenced
    )
    deleted_objects = 0
    remaining = remaining_under(state, clothing_root, guarded)
    if state.is_under(avatar_root, clothing_root):
        warnings.append(WARN_AVATAR_INSIDE_CLOTHING)
    elif remaining:
        warnings.append(deletion_skipped_warning(len(remaining)))
    else:
        ops.append(Delete(clothing_root))
        deleted_objects = len(delete_with_ancestors(state, clothing_root, avatar_root))

    # 7) report
    dup_avatar = duplicate_names(model, avatar_root)
    dup_clothing = duplicate_names(model, clothing_root)
    head = []
    if dup_avatar:
        head.append(WARN_DUPLICATE_AVATAR)
    if dup_clothing:
        head.append(WARN_DUPLICATE_CLOTHING)
    if not skins:
        head.append(WARN_NO_SKINS)

    ops = tuple(ops)
    kinds = Counter((type(op), getattr(op, "role", None)) for op in ops)
    report = MergeReport(
        duplicate_avatar_bone_names=dup_avatar,
        duplicate_clothing_bone_names=dup_clothing,
        referenced_clothing_bones=len(referenced),
        moved_bones=kinds[(Reparent, BONE)],
        moved_smrs=kinds[(Reparent, SMR)],
        renamed_bones=kinds[(Rename, BONE)],
        renamed_smrs=kinds[(Rename, SMR)],
        deleted_objects=deleted_objects,
        warnings=head + warnings,
    )
    log.debug(f"Planned {len(ops)} operation(s) for {len(skins)} skin(s), suffix '{norm}'")
    return MergePlan(
        avatar_root=avatar_root,
        clothing_root=clothing_root,
        suffix=norm,
        operations=ops,
        referenced=referenced,
        report=report,
    )
