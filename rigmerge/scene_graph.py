"""Arena-backed scene graph: named nodes with local/world poses, and skins bound to bones.

Nodes are addressed by integer handles. Deleting a node drops it (and its
subtree) from the arena, so any later lookup on that handle raises
StaleHandleError instead of touching a dangling object.
"""

import copy
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np

from rigmerge.errors import CycleError, InvalidInput, StaleHandleError


# ---------------------------------------------------------------------------
# Pose helpers
# ---------------------------------------------------------------------------

def trs_to_matrix(t=(0.0, 0.0, 0.0), r_xyzw=(0.0, 0.0, 0.0, 1.0), s=(1.0, 1.0, 1.0)) -> np.ndarray:
    """Build a 4x4 matrix from translation, rotation (xyzw), scale."""
    x, y, z, w = r_xyzw
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = (1 - 2 * (y * y + z * z)) * s[0]
    m[0, 1] = (2 * (x * y - z * w)) * s[1]
    m[0, 2] = (2 * (x * z + y * w)) * s[2]
    m[1, 0] = (2 * (x * y + z * w)) * s[0]
    m[1, 1] = (1 - 2 * (x * x + z * z)) * s[1]
    m[1, 2] = (2 * (y * z - x * w)) * s[2]
    m[2, 0] = (2 * (x * z - y * w)) * s[0]
    m[2, 1] = (2 * (y * z + x * w)) * s[1]
    m[2, 2] = (1 - 2 * (x * x + y * y)) * s[2]
    m[0, 3] = t[0]
    m[1, 3] = t[1]
    m[2, 3] = t[2]
    return m


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class Node:
    handle: int
    name: str
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)
    local: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=np.float64))
    data: dict = field(default_factory=dict)  # non-structural components, blocks pruning


@dataclass
class Skin:
    """A skinned mesh living on ``node`` and deformed by ``bones``.

    The skin's name is the name of its node. ``bones`` entries may be None
    (unbound slots). A skin never owns the bones it references.
    """
    node: int
    root_bone: Optional[int] = None
    bones: List[Optional[int]] = field(default_factory=list)

    def referenced(self) -> Iterator[int]:
        """Yield root bone then bone slots, skipping unbound entries."""
        if self.root_bone is not None:
            yield self.root_bone
        for b in self.bones:
            if b is not None:
                yield b


class SceneModel:
    """Mutable scene: node arena plus skin list."""

    def __init__(self):
        self._nodes = {}
        self._next_handle = 1
        self.skins: List[Skin] = []

    def __repr__(self) -> str:
        return f"SceneModel(nodes={len(self._nodes)}, skins={len(self.skins)})"

    def __len__(self) -> int:
        return len(self._nodes)

    # -- construction -------------------------------------------------------

    def add_node(self, name: str, parent: Optional[int] = None, translation=(0.0, 0.0, 0.0),
                 rotation=(0.0, 0.0, 0.0, 1.0), scale=(1.0, 1.0, 1.0), data=None) -> int:
        """Create a node under ``parent`` (or as a root) with a local TRS pose."""
        if parent is not None:
            self.node(parent)
        handle = self._next_handle
        self._next_handle += 1
        self._nodes[handle] = Node(
            handle=handle,
            name=name,
            parent=parent,
            local=trs_to_matrix(translation, rotation, scale),
            data=dict(data or {}),
        )
        if parent is not None:
            self._nodes[parent].children.append(handle)
        return handle

    def add_skin(self, node: int, root_bone: Optional[int] = None, bones=()) -> Skin:
        """Bind a skin to ``node``. One skin per node, as in the host."""
        self.node(node)
        if self.skin_on(node) is not None:
            raise InvalidInput(f"Node '{self.name(node)}' already carries a skin")
        skin = Skin(node=node, root_bone=root_bone, bones=list(bones))
        self.skins.append(skin)
        return skin

    def copy(self) -> "SceneModel":
        """Deep snapshot, usable for rollback around an execution."""
        return copy.deepcopy(self)

    # -- lookup -------------------------------------------------------------

    def node(self, handle: int) -> Node:
        try:
            return self._nodes[handle]
        except KeyError:
            raise StaleHandleError(handle) from None

    def contains(self, handle) -> bool:
        return handle in self._nodes

    def name(self, handle: int) -> str:
        return self.node(handle).name

    def parent(self, handle: int) -> Optional[int]:
        return self.node(handle).parent

    def children(self, handle: int) -> tuple:
        return tuple(self.node(handle).children)

    def roots(self) -> List[int]:
        return [h for h, n in self._nodes.items() if n.parent is None]

    def find(self, name: str, root: Optional[int] = None) -> Optional[int]:
        """First node called ``name`` in pre-order under ``root`` (or any root)."""
        starts = [root] if root is not None else self.roots()
        for start in starts:
            for h in self.iter_subtree(start):
                if self._nodes[h].name == name:
                    return h
        return None

    def iter_subtree(self, root: int) -> Iterator[int]:
        """Depth-first pre-order walk, children in stored order, root first."""
        self.node(root)
        stack = [root]
        while stack:
            h = stack.pop()
            yield h
            stack.extend(reversed(self._nodes[h].children))

    def is_under(self, handle: int, root: int) -> bool:
        """True if ``handle`` is ``root`` or one of its descendants."""
        node = self.node(handle)
        while node is not None:
            if node.handle == root:
                return True
            node = self._nodes[node.parent] if node.parent is not None else None
        return False

    def skin_on(self, handle: int) -> Optional[Skin]:
        for skin in self.skins:
            if skin.node == handle:
                return skin
        return None

    def skins_under(self, root: int) -> List[Skin]:
        """Skins whose node lies under ``root``, in traversal order of their nodes."""
        by_node = {s.node: s for s in self.skins}
        return [by_node[h] for h in self.iter_subtree(root) if h in by_node]

    def has_data(self, handle: int) -> bool:
        """Whether a node carries anything beyond the bare structural node."""
        return bool(self.node(handle).data) or self.skin_on(handle) is not None

    def validate(self) -> dict:
        """Check structural integrity.

        Checks:
        - parent/child links agree in both directions
        - no node is its own ancestor
        - every skin's node, root bone and bound slots still exist

        Returns a dict with ``valid``, ``errors`` and ``stale_references``
        (skin node name -> stale handles it still references).
        """
        errors = []
        stale = {}
        for h, node in self._nodes.items():
            if node.parent is not None:
                parent = self._nodes.get(node.parent)
                if parent is None or h not in parent.children:
                    errors.append(f"Node {h} ('{node.name}') has a broken parent link")
            for c in node.children:
                if c not in self._nodes or self._nodes[c].parent != h:
                    errors.append(f"Node {h} ('{node.name}') has a broken child link to {c}")
            seen = {h}
            current = node.parent
            while current is not None and current in self._nodes:
                if current in seen:
                    errors.append(f"Circular parent chain involving node {h} ('{node.name}')")
                    break
                seen.add(current)
                current = self._nodes[current].parent

        for skin in self.skins:
            if skin.node not in self._nodes:
                errors.append(f"Skin on deleted node {skin.node}")
                continue
            missing = [b for b in skin.referenced() if b not in self._nodes]
            if missing:
                stale[self._nodes[skin.node].name] = missing
                errors.append(f"Skin '{self._nodes[skin.node].name}' references {len(missing)} deleted bone(s)")

        return {"valid": not errors, "errors": errors, "stale_references": stale}

    # -- pose ---------------------------------------------------------------

    def world_matrix(self, handle: int) -> np.ndarray:
        node = self.node(handle)
        mat = node.local.copy()
        while node.parent is not None:
            node = self._nodes[node.parent]
            mat = node.local @ mat
        return mat

    def world_position(self, handle: int) -> np.ndarray:
        return self.world_matrix(handle)[:3, 3]

    # -- mutation -----------------------------------------------------------

    def rename(self, handle: int, name: str) -> None:
        self.node(handle).name = name

    def set_parent(self, handle: int, new_parent: Optional[int], keep_world: bool = True) -> None:
        """Move ``handle`` to the end of ``new_parent``'s children.

        With ``keep_world`` the world matrix is unchanged and only the local
        matrix is recomputed against the new parent.
        """
        node = self.node(handle)
        if new_parent is not None and self.is_under(new_parent, handle):
            raise CycleError(handle, new_parent)

        world = self.world_matrix(handle) if keep_world else None
        if node.parent is not None:
            self._nodes[node.parent].children.remove(handle)
        node.parent = new_parent
        if new_parent is not None:
            self._nodes[new_parent].children.append(handle)

        if keep_world:
            if new_parent is None:
                node.local = world
            else:
                node.local = np.linalg.inv(self.world_matrix(new_parent)) @ world

    def delete(self, handle: int) -> List[int]:
        """Remove ``handle`` and its whole subtree. Returns the removed handles.

        Skins living on removed nodes go with them. Bone references held by
        other skins are left as-is and become stale handles.
        """
        node = self.node(handle)
        removed = list(self.iter_subtree(handle))
        if node.parent is not None:
            self._nodes[node.parent].children.remove(handle)
        gone = set(removed)
        for h in removed:
            del self._nodes[h]
        self.skins = [s for s in self.skins if s.node not in gone]
        return removed
