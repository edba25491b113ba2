"""Build a trimesh.Scene stick figure of one or more hierarchies and export it as GLB."""

from pathlib import Path

import numpy as np
import trimesh

from rigmerge.config import BONE_RADIUS_RATIO, CYLINDER_SECTIONS, SPHERE_RADIUS, role_color
from rigmerge.scene_graph import trs_to_matrix


def _bone_transform(start, end):
    """Pose for a unit Z-cylinder spanning start to end, or None when they coincide."""
    direction = end - start
    length = float(np.linalg.norm(direction))
    if length < 1e-10:
        return None

    d = direction / length
    # shortest arc taking +Z onto d
    w = 1.0 + d[2]
    if w < 1e-8:
        q = (1.0, 0.0, 0.0, 0.0)
    else:
        q = np.append(np.cross([0.0, 0.0, 1.0], d), w)
        q = q / np.linalg.norm(q)
    return trs_to_matrix((start + end) / 2.0, q, (1.0, 1.0, length))


def build_preview_scene(model, roots, sphere_radius=SPHERE_RADIUS):
    """
    Build a trimesh.Scene with a sphere per node and a cylinder per parent→child link.

    ``roots`` maps a role name (see ``color_map`` in config.yaml) to a root
    handle, or is a list of handles coloured as "other". Nodes carrying a skin
    use the "mesh" colour.
    """
    if not isinstance(roots, dict):
        roots = {f"other_{i}": h for i, h in enumerate(roots)}

    scene = trimesh.Scene()
    bone_radius = sphere_radius * BONE_RADIUS_RATIO
    drawn = set()

    for role, root in roots.items():
        color = role_color(role.split("_")[0])
        for h in model.iter_subtree(root):
            if h in drawn:
                continue
            drawn.add(h)
            pos = model.world_position(h)
            sphere = trimesh.creation.icosphere(subdivisions=1, radius=sphere_radius)
            sphere.visual.face_colors = role_color("mesh") if model.skin_on(h) is not None else color
            transform = np.eye(4)
            transform[:3, 3] = pos
            scene.add_geometry(
                sphere,
                node_name=f"joint_{h}",
                geom_name=f"joint_{h}_geom",
                transform=transform,
            )

            parent = model.parent(h)
            if parent is None:
                continue
            mat = _bone_transform(model.world_position(parent), pos)
            if mat is None:
                continue
            cyl = trimesh.creation.cylinder(radius=bone_radius, height=1.0, sections=CYLINDER_SECTIONS)
            cyl.visual.face_colors = color
            name = f"bone_{parent}_{h}"
            scene.add_geometry(
                cyl,
                node_name=name,
                geom_name=f"{name}_geom",
                transform=mat,
            )

    return scene


def export_skeleton_preview(model, roots, output_path, sphere_radius=SPHERE_RADIUS):
    """Write the preview scene of ``roots`` to ``output_path`` as .glb."""
    scene = build_preview_scene(model, roots, sphere_radius=sphere_radius)
    glb_bytes = scene.export(file_type="glb")
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Path(output_path).write_bytes(glb_bytes)
    return output_path
