"""First-match-wins name lookup over a hierarchy, duplicate-name diagnostics, suffix rules."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class NameIndex:
    first: dict = field(default_factory=dict)  # name -> handle of first pre-order occurrence
    duplicates: set = field(default_factory=set)

    def lookup(self, name: str) -> Optional[int]:
        return self.first.get(name)

    def __contains__(self, name) -> bool:
        return name in self.first

    def __len__(self) -> int:
        return len(self.first)


def build_name_index(model, root: int) -> NameIndex:
    """Map each name under ``root`` to its first node in depth-first pre-order.

    Later nodes with an already-seen name are only recorded in ``duplicates``
    and are never returned by ``lookup``.
    """
    index = NameIndex()
    for h in model.iter_subtree(root):
        name = model.name(h)
        if name in index.first:
            index.duplicates.add(name)
        else:
            index.first[name] = h
    return index


def duplicate_names(model, root: int) -> list:
    """Sorted names occurring more than once under ``root``."""
    counts = Counter(model.name(h) for h in model.iter_subtree(root))
    return sorted(name for name, n in counts.items() if n > 1)


def normalize_suffix(raw) -> str:
    """Normalize a user-entered suffix.

    Surrounding whitespace and trailing underscores are trimmed; an empty
    result means "no suffix". Otherwise a leading underscore is ensured.
    Examples: ``"shirt"`` -> ``"_shirt"``, ``" _hat__ "`` -> ``"_hat"``,
    ``"___"`` -> ``""``.
    """
    if raw is None:
        return ""
    trimmed = raw.strip()
    # whitespace uncovered by the underscore trim goes too, keeps this idempotent
    while trimmed.endswith("_"):
        trimmed = trimmed.rstrip("_").rstrip()
    if not trimmed:
        return ""
    if not trimmed.startswith("_"):
        trimmed = "_" + trimmed
    return trimmed


def needs_suffix(name: str, suffix: str) -> bool:
    """Ordinal, case-sensitive check; an inert suffix never applies."""
    return bool(suffix) and not name.endswith(suffix)
