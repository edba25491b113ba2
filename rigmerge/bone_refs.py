"""Collect the clothing bones actually used as skin deformers."""


def collect_referenced_bones(model, skins, clothing_root: int) -> tuple:
    """Distinct nodes referenced by ``skins`` that lie under ``clothing_root``.

    Root bones and bone slots both count; unbound slots and handles that no
    longer exist are ignored. References outside the clothing subtree belong to
    a shared or foreign skeleton and are dropped. Order is first reference
    (skin order, root bone before the bone list).
    """
    seen = {}
    for skin in skins:
        for b in skin.referenced():
            if b in seen or not model.contains(b):
                continue
            seen[b] = None
    return tuple(b for b in seen if model.is_under(b, clothing_root))
