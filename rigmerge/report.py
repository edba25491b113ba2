"""Merge report shared by dry-run planning and live execution."""

from dataclasses import dataclass, field

from rigmerge.errors import InvalidInput

WARN_DUPLICATE_AVATAR = (
    "Avatar hierarchy has duplicate bone names; the first occurrence is used for matching."
)
WARN_DUPLICATE_CLOTHING = (
    "Clothing hierarchy has duplicate bone names; move/rename results may be unstable."
)
WARN_NO_SKINS = "No clothing skinned meshes found; there is nothing to merge."
WARN_AVATAR_INSIDE_CLOTHING = "Avatar root lies inside the clothing root; skipped deleting the clothing root."


def deletion_skipped_warning(remaining: int) -> str:
    return (
        f"{remaining} referenced bone(s) would remain under the clothing root; "
        "skipped deleting it."
    )


COUNT_FIELDS = ("moved_bones", "moved_smrs", "renamed_bones", "renamed_smrs", "deleted_objects")

# wire key -> report attribute, for count fields
_WIRE_COUNTS = {f"estimated_{name}": name for name in COUNT_FIELDS}


@dataclass
class MergeReport:
    duplicate_avatar_bone_names: list = field(default_factory=list)
    duplicate_clothing_bone_names: list = field(default_factory=list)
    referenced_clothing_bones: int = 0
    moved_bones: int = 0
    moved_smrs: int = 0
    renamed_bones: int = 0
    renamed_smrs: int = 0
    deleted_objects: int = 0
    warnings: list = field(default_factory=list)

    def counts(self) -> dict:
        """Per-operation-kind counts, keyed by field name."""
        return {name: getattr(self, name) for name in COUNT_FIELDS}

    def is_noop(self) -> bool:
        return not any(self.counts().values())

    def to_wire(self) -> dict:
        """Response document for the headless analysis format."""
        doc = {
            "duplicate_avatar_bone_names": list(self.duplicate_avatar_bone_names),
            "duplicate_clothing_bone_names": list(self.duplicate_clothing_bone_names),
            "referenced_clothing_bones": self.referenced_clothing_bones,
        }
        for key, name in _WIRE_COUNTS.items():
            doc[key] = getattr(self, name)
        doc["warnings"] = list(self.warnings)
        return doc

    @classmethod
    def from_wire(cls, doc: dict) -> "MergeReport":
        if not isinstance(doc, dict):
            raise InvalidInput(f"Report document must be an object, got {type(doc).__name__}")
        kwargs = {}
        for name in ("duplicate_avatar_bone_names", "duplicate_clothing_bone_names", "warnings"):
            value = doc.get(name, [])
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise InvalidInput(f"Report field '{name}' must be a list of strings")
            kwargs[name] = list(value)
        int_fields = dict(_WIRE_COUNTS, referenced_clothing_bones="referenced_clothing_bones")
        for key, name in int_fields.items():
            value = doc.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInput(f"Report field '{key}' must be a non-negative integer")
            kwargs[name] = value
        return cls(**kwargs)

    def summary_lines(self) -> list:
        lines = [
            f"Duplicate names (avatar):   {len(self.duplicate_avatar_bone_names)}",
            f"Duplicate names (clothing): {len(self.duplicate_clothing_bone_names)}",
            f"Referenced clothing bones:  {self.referenced_clothing_bones}",
            f"Bones moved:    {self.moved_bones}",
            f"Bones renamed:  {self.renamed_bones}",
            f"Meshes moved:   {self.moved_smrs}",
            f"Meshes renamed: {self.renamed_smrs}",
            f"Deleted:        {self.deleted_objects}",
        ]
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return lines
