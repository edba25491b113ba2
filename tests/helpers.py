from types import SimpleNamespace

import numpy as np

from rigmerge.scene_graph import SceneModel

# 30 degrees around Z, xyzw
ROT_Z30 = (0.0, 0.0, float(np.sin(np.pi / 12)), float(np.cos(np.pi / 12)))


def build_shirt_scene(model=None, cloth_parent=None):
    """Avatar Root->Hips->Spine->Chest, clothing ClothRoot->Hips->Chest->Sleeve plus a Shirt mesh node.

    The Shirt skin uses the clothing Hips as root bone and [Hips, Chest, Sleeve]
    as bones. ``cloth_parent`` places ClothRoot under an existing node.
    """
    model = model or SceneModel()
    root = model.add_node("Root")
    hips = model.add_node("Hips", root, translation=(0.0, 1.0, 0.0))
    spine = model.add_node("Spine", hips, translation=(0.0, 0.2, 0.0))
    chest = model.add_node("Chest", spine, translation=(0.0, 0.2, 0.0))

    cloth_root = model.add_node("ClothRoot", cloth_parent, translation=(0.5, 0.0, 0.1), rotation=ROT_Z30)
    c_hips = model.add_node("Hips", cloth_root, translation=(-0.4, 1.1, 0.0), scale=(1.0, 1.0, 1.0))
    c_chest = model.add_node("Chest", c_hips, translation=(0.0, 0.4, 0.05))
    sleeve = model.add_node("Sleeve", c_chest, translation=(0.3, 0.0, 0.0), scale=(1.0, 2.0, 1.0))
    shirt = model.add_node("Shirt", cloth_root, translation=(0.0, 0.1, 0.0))
    skin = model.add_skin(shirt, root_bone=c_hips, bones=[c_hips, c_chest, sleeve])

    return SimpleNamespace(
        model=model, root=root, hips=hips, spine=spine, chest=chest,
        cloth_root=cloth_root, c_hips=c_hips, c_chest=c_chest, sleeve=sleeve,
        shirt=shirt, skin=skin,
    )


def build_skirt_scene():
    """Clothing whose Ribbon bone has no avatar match and stays under the clothing root.

    Avatar Root->Hips->Spine; clothing Outfit->Armature->{Hips, Ribbon} plus a Skirt mesh.
    """
    model = SceneModel()
    root = model.add_node("Root")
    hips = model.add_node("Hips", root, translation=(0.0, 1.0, 0.0))
    spine = model.add_node("Spine", hips, translation=(0.0, 0.2, 0.0))

    outfit = model.add_node("Outfit")
    armature = model.add_node("Armature", outfit)
    c_hips = model.add_node("Hips", armature, translation=(0.0, 1.0, 0.0))
    ribbon = model.add_node("Ribbon", armature, translation=(0.0, 0.9, -0.1))
    skirt = model.add_node("Skirt", outfit)
    skin = model.add_skin(skirt, root_bone=c_hips, bones=[c_hips, ribbon, None])

    return SimpleNamespace(
        model=model, root=root, hips=hips, spine=spine, outfit=outfit,
        armature=armature, c_hips=c_hips, ribbon=ribbon, skirt=skirt, skin=skin,
    )


def world_matrices(model, handles):
    return {h: model.world_matrix(h) for h in handles}
