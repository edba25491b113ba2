"""Headless analysis documents.

Request: bone topology by name for both hierarchies plus the clothing skins
and suffix. Response: the MergeReport wire form. Requests can be turned back
into a SceneModel so the very same planner runs on them, and a live model can
be exported to a request for an offline analyzer.

Hosts that cannot write JSON nulls send ``""`` instead, so an empty
``parent_name`` or ``root_bone`` is read as "none".
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rigmerge.config import DEFAULT_SUFFIX
from rigmerge.errors import InvalidInput
from rigmerge.name_index import build_name_index
from rigmerge.report import MergeReport
from rigmerge.scene_graph import SceneModel


@dataclass
class BoneInfo:
    name: str
    parent_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "parent_name": self.parent_name}


@dataclass
class SmrInfo:
    name: str
    root_bone: Optional[str] = None
    bones: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"name": self.name, "root_bone": self.root_bone, "bones": list(self.bones)}


@dataclass
class MergeRequest:
    avatar_bones: list = field(default_factory=list)
    clothing_bones: list = field(default_factory=list)
    clothing_smrs: list = field(default_factory=list)
    suffix: str = ""

    def to_dict(self) -> dict:
        return {
            "avatar_bones": [b.to_dict() for b in self.avatar_bones],
            "clothing_bones": [b.to_dict() for b in self.clothing_bones],
            "clothing_smrs": [s.to_dict() for s in self.clothing_smrs],
            "suffix": self.suffix,
        }

    @classmethod
    def from_dict(cls, doc) -> "MergeRequest":
        if not isinstance(doc, dict):
            raise InvalidInput(f"Request document must be an object, got {type(doc).__name__}")
        suffix = doc.get("suffix") or DEFAULT_SUFFIX
        if not isinstance(suffix, str):
            raise InvalidInput("Request field 'suffix' must be a string")
        return cls(
            avatar_bones=_parse_bones(doc.get("avatar_bones"), "avatar_bones"),
            clothing_bones=_parse_bones(doc.get("clothing_bones"), "clothing_bones"),
            clothing_smrs=_parse_smrs(doc.get("clothing_smrs", []), "clothing_smrs"),
            suffix=suffix,
        )


@dataclass
class RequestScene:
    """A SceneModel rebuilt from a request, with the handles the planner needs."""
    model: SceneModel
    avatar_root: int
    clothing_root: int
    skins: list
    suffix: str


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def _optional_name(value, where: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{where} must be a string or null")
    return value


def _parse_bones(items, key: str) -> list:
    if not isinstance(items, list):
        raise InvalidInput(f"Request field '{key}' must be a list")
    bones = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidInput(f"{key}[{i}] must be an object with a string 'name'")
        bones.append(BoneInfo(item["name"], _optional_name(item.get("parent_name"), f"{key}[{i}].parent_name")))
    return bones


def _parse_smrs(items, key: str) -> list:
    if not isinstance(items, list):
        raise InvalidInput(f"Request field '{key}' must be a list")
    smrs = []
    for i, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise InvalidInput(f"{key}[{i}] must be an object with a string 'name'")
        bones = item.get("bones") or []
        if not isinstance(bones, list):
            raise InvalidInput(f"{key}[{i}].bones must be a list")
        names = [_optional_name(b, f"{key}[{i}].bones") for b in bones]
        smrs.append(SmrInfo(
            name=item["name"],
            root_bone=_optional_name(item.get("root_bone"), f"{key}[{i}].root_bone"),
            bones=[n for n in names if n is not None],
        ))
    return smrs


# ---------------------------------------------------------------------------
# Request -> SceneModel
# ---------------------------------------------------------------------------

def _ancestry(model, handle) -> list:
    chain = []
    while handle is not None:
        chain.append(handle)
        handle = model.parent(handle)
    return chain[::-1]


def _build_tree(model, bones, label: str) -> int:
    """Rebuild one hierarchy from a pre-order (name, parent_name) list.

    The first entry is the root whatever its parent_name says. Later entries
    attach to the nearest node of the current pre-order path with the parent
    name, falling back to the most recent node of that name.
    """
    if not bones:
        raise InvalidInput(f"{label} bone list is empty")

    root = model.add_node(bones[0].name)
    path = [root]
    latest = {bones[0].name: root}
    for info in bones[1:]:
        if info.parent_name is None:
            raise InvalidInput(f"{label} bone '{info.name}' has no parent but is not the first entry")
        parent = None
        for i in range(len(path) - 1, -1, -1):
            if model.name(path[i]) == info.parent_name:
                parent = path[i]
                del path[i + 1:]
                break
        if parent is None:
            parent = latest.get(info.parent_name)
            if parent is None:
                raise InvalidInput(
                    f"{label} bone '{info.name}' refers to unknown parent '{info.parent_name}'"
                )
            path = _ancestry(model, parent)
        h = model.add_node(info.name, parent)
        path.append(h)
        latest[info.name] = h
    return root


def build_scene(request: MergeRequest) -> RequestScene:
    """Rebuild avatar and clothing hierarchies plus clothing skins from a request.

    A skin bone name resolves to the first clothing node of that name, then
    the first avatar node, else it is an unbound slot. A skin lives on the
    first clothing node with its name that does not already carry a skin.
    """
    model = SceneModel()
    avatar_root = _build_tree(model, request.avatar_bones, "Avatar")
    clothing_root = _build_tree(model, request.clothing_bones, "Clothing")

    avatar_index = build_name_index(model, avatar_root)
    clothing_index = build_name_index(model, clothing_root)

    def resolve(name):
        if name is None:
            return None
        h = clothing_index.lookup(name)
        return h if h is not None else avatar_index.lookup(name)

    skins = []
    for smr in request.clothing_smrs:
        node = next(
            (h for h in model.iter_subtree(clothing_root)
             if model.name(h) == smr.name and model.skin_on(h) is None),
            None,
        )
        if node is None:
            raise InvalidInput(f"Skinned mesh '{smr.name}' has no free node in the clothing bone list")
        skins.append(model.add_skin(node, resolve(smr.root_bone), [resolve(b) for b in smr.bones]))

    return RequestScene(model, avatar_root, clothing_root, skins, request.suffix)


# ---------------------------------------------------------------------------
# SceneModel -> request
# ---------------------------------------------------------------------------

def _bone_infos(model, root) -> list:
    infos = []
    for h in model.iter_subtree(root):
        parent = model.parent(h)
        infos.append(BoneInfo(model.name(h), model.name(parent) if parent is not None else None))
    return infos


def request_from_model(model, avatar_root: int, clothing_root: int, suffix: str = "", skins=None) -> MergeRequest:
    """Export the topology an offline analyzer needs. Unbound and stale bone slots are dropped."""
    for label, h in (("Avatar root", avatar_root), ("Clothing root", clothing_root)):
        if h is None or not model.contains(h):
            raise InvalidInput(f"{label} ({h}) does not exist in the scene")
    if skins is None:
        skins = model.skins_under(clothing_root)

    def bone_name(h):
        return model.name(h) if h is not None and model.contains(h) else None

    smrs = []
    for skin in skins:
        smrs.append(SmrInfo(
            name=model.name(skin.node),
            root_bone=bone_name(skin.root_bone),
            bones=[n for n in (bone_name(b) for b in skin.bones) if n is not None],
        ))
    return MergeRequest(
        avatar_bones=_bone_infos(model, avatar_root),
        clothing_bones=_bone_infos(model, clothing_root),
        clothing_smrs=smrs,
        suffix=suffix or "",
    )


# ---------------------------------------------------------------------------
# File IO
# ---------------------------------------------------------------------------

def _read_json(path, what: str):
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidInput(f"Cannot read {what} file {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"Invalid {what} JSON in {path}: {exc}") from exc


def _write_json(path, doc) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise InvalidInput(f"Cannot write {path}: {exc}") from exc
    return path


def load_request(path) -> MergeRequest:
    return MergeRequest.from_dict(_read_json(path, "request"))


def save_request(path, request: MergeRequest) -> Path:
    return _write_json(path, request.to_dict())


def load_report(path) -> MergeReport:
    return MergeReport.from_wire(_read_json(path, "report"))


def save_report(path, report: MergeReport) -> Path:
    return _write_json(path, report.to_wire())
