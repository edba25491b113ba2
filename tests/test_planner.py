import unittest

from rigmerge.errors import InvalidInput
from rigmerge.planner import BONE, SMR, Delete, Rename, Reparent, plan_merge
from rigmerge.report import (
    WARN_AVATAR_INSIDE_CLOTHING,
    WARN_DUPLICATE_AVATAR,
    WARN_DUPLICATE_CLOTHING,
    WARN_NO_SKINS,
    deletion_skipped_warning,
)
from rigmerge.scene_graph import SceneModel

from .helpers import build_shirt_scene, build_skirt_scene


class ShirtScenarioPlanTests(unittest.TestCase):
    def setUp(self) -> None:
        self.s = build_shirt_scene()
        self.plan = plan_merge(self.s.model, self.s.root, self.s.cloth_root, suffix="shirt")

    def test_operations_in_order(self) -> None:
        s = self.s
        self.assertEqual(self.plan.operations, (
            Reparent(s.c_hips, s.hips, BONE),
            Reparent(s.c_chest, s.chest, BONE),
            Rename(s.c_hips, "Hips_shirt", BONE),
            Rename(s.c_chest, "Chest_shirt", BONE),
            Rename(s.sleeve, "Sleeve_shirt", BONE),
            Reparent(s.shirt, s.root, SMR),
            Rename(s.shirt, "Shirt_shirt", SMR),
            Delete(s.cloth_root),
        ))

    def test_counts(self) -> None:
        self.assertEqual(self.plan.report.counts(), {
            "moved_bones": 2,
            "moved_smrs": 1,
            "renamed_bones": 3,
            "renamed_smrs": 1,
            "deleted_objects": 1,
        })
        self.assertEqual(self.plan.report.referenced_clothing_bones, 3)
        self.assertEqual(self.plan.report.warnings, [])
        self.assertEqual(self.plan.suffix, "_shirt")

    def test_sleeve_without_match_is_not_moved(self) -> None:
        moved = [op.node for op in self.plan if isinstance(op, Reparent)]
        self.assertNotIn(self.s.sleeve, moved)

    def test_duplicate_names_reported_per_hierarchy(self) -> None:
        self.assertEqual(self.plan.report.duplicate_avatar_bone_names, [])
        self.assertEqual(self.plan.report.duplicate_clothing_bone_names, [])

    def test_planning_does_not_mutate(self) -> None:
        s = self.s
        self.assertEqual(s.model.parent(s.c_hips), s.cloth_root)
        self.assertEqual(s.model.name(s.c_hips), "Hips")
        self.assertTrue(s.model.contains(s.cloth_root))
        again = plan_merge(s.model, s.root, s.cloth_root, suffix="shirt")
        self.assertEqual(again.operations, self.plan.operations)


class PlannerRuleTests(unittest.TestCase):
    def test_identical_roots_rejected(self) -> None:
        s = build_shirt_scene()
        with self.assertRaises(InvalidInput):
            plan_merge(s.model, s.root, s.root)

    def test_missing_roots_rejected(self) -> None:
        s = build_shirt_scene()
        with self.assertRaises(InvalidInput):
            plan_merge(s.model, None, s.cloth_root)
        with self.assertRaises(InvalidInput):
            plan_merge(s.model, s.root, 9999)

    def test_inert_suffix_plans_no_renames(self) -> None:
        s = build_shirt_scene()
        for suffix in ("", "  ", "___"):
            plan = plan_merge(s.model, s.root, s.cloth_root, suffix=suffix)
            self.assertFalse(any(isinstance(op, Rename) for op in plan), suffix)
            self.assertEqual(plan.report.moved_bones, 2)

    def test_names_already_suffixed_are_not_renamed(self) -> None:
        s = build_shirt_scene()
        s.model.rename(s.sleeve, "Sleeve_shirt")
        s.model.rename(s.shirt, "Shirt_shirt")
        plan = plan_merge(s.model, s.root, s.cloth_root, suffix="_shirt_")
        self.assertEqual(plan.report.renamed_bones, 2)
        self.assertEqual(plan.report.renamed_smrs, 0)

    def test_bones_outside_clothing_root_are_not_referenced(self) -> None:
        s = build_shirt_scene()
        s.model.set_parent(s.c_hips, s.hips)
        plan = plan_merge(s.model, s.root, s.cloth_root)
        self.assertEqual(plan.referenced, ())
        self.assertEqual(plan.report.moved_bones, 0)
        self.assertEqual(plan.report.moved_smrs, 1)
        self.assertEqual(plan.operations[-1], Delete(s.cloth_root))

    def test_skin_node_already_under_avatar_root_is_not_moved(self) -> None:
        s = build_shirt_scene()
        s.model.set_parent(s.shirt, s.root)
        plan = plan_merge(s.model, s.root, s.cloth_root, skins=[s.skin], suffix="x")
        self.assertEqual(plan.report.moved_smrs, 0)
        self.assertEqual(plan.report.renamed_smrs, 1)

    def test_skin_node_that_is_also_a_bone_is_renamed_once(self) -> None:
        s = build_shirt_scene()
        s.skin.bones.append(s.shirt)
        plan = plan_merge(s.model, s.root, s.cloth_root, suffix="shirt")
        renames = [op for op in plan if isinstance(op, Rename) and op.node == s.shirt]
        self.assertEqual(renames, [Rename(s.shirt, "Shirt_shirt", BONE)])
        self.assertEqual(plan.report.renamed_smrs, 0)
        self.assertEqual(plan.report.renamed_bones, 4)

    def test_unsafe_deletion_is_skipped_with_warning(self) -> None:
        k = build_skirt_scene()
        plan = plan_merge(k.model, k.root, k.outfit, suffix="skirt")
        self.assertFalse(any(isinstance(op, Delete) for op in plan))
        self.assertEqual(plan.report.warnings, [deletion_skipped_warning(1)])
        self.assertEqual(plan.report.counts(), {
            "moved_bones": 1,
            "moved_smrs": 1,
            "renamed_bones": 2,
            "renamed_smrs": 1,
            "deleted_objects": 0,
        })

    def test_bones_of_other_surviving_skins_block_deletion(self) -> None:
        s = build_shirt_scene()
        extra = s.model.add_node("Tassel", s.cloth_root)
        body = s.model.add_node("Body", s.root)
        s.model.add_skin(body, bones=[s.hips, extra])
        plan = plan_merge(s.model, s.root, s.cloth_root)
        self.assertFalse(any(isinstance(op, Delete) for op in plan))
        self.assertEqual(plan.report.warnings, [deletion_skipped_warning(1)])

    def test_empty_ancestors_predicted_in_delete_count(self) -> None:
        model = SceneModel()
        scene_root = model.add_node("Scene")
        outfits = model.add_node("Outfits", scene_root)
        s = build_shirt_scene(model, cloth_parent=outfits)
        plan = plan_merge(model, s.root, s.cloth_root)
        self.assertEqual(plan.report.deleted_objects, 3)

    def test_prune_prediction_stops_at_data(self) -> None:
        model = SceneModel()
        outfits = model.add_node("Outfits", data={"layer": "clothes"})
        s = build_shirt_scene(model, cloth_parent=outfits)
        plan = plan_merge(model, s.root, s.cloth_root)
        self.assertEqual(plan.report.deleted_objects, 1)

    def test_no_skins_warning(self) -> None:
        model = SceneModel()
        avatar = model.add_node("Root")
        cloth = model.add_node("Cloth")
        model.add_node("Hips", cloth)
        plan = plan_merge(model, avatar, cloth, suffix="x")
        self.assertEqual(plan.report.warnings, [WARN_NO_SKINS])
        self.assertEqual(plan.operations, (Delete(cloth),))

    def test_duplicate_names_are_warnings_and_first_match_wins(self) -> None:
        s = build_shirt_scene()
        second_hips = s.model.add_node("Hips", s.spine)
        dup_sleeve = s.model.add_node("Sleeve", s.c_hips)
        plan = plan_merge(s.model, s.root, s.cloth_root)
        self.assertIn(Reparent(s.c_hips, s.hips, BONE), plan.operations)
        self.assertNotIn(second_hips, [op.new_parent for op in plan if isinstance(op, Reparent)])
        self.assertEqual(plan.report.duplicate_avatar_bone_names, ["Hips"])
        self.assertEqual(plan.report.duplicate_clothing_bone_names, ["Sleeve"])
        self.assertEqual(plan.report.warnings[:2], [WARN_DUPLICATE_AVATAR, WARN_DUPLICATE_CLOTHING])
        self.assertTrue(s.model.contains(dup_sleeve))

    def test_clothing_inside_avatar_skips_self_match(self) -> None:
        model = SceneModel()
        root = model.add_node("Root")
        cloth = model.add_node("Outfit", root)
        c_spine = model.add_node("Spine", cloth)
        hips = model.add_node("Hips", root)
        model.add_node("Spine", hips)
        mesh = model.add_node("Mesh", cloth)
        model.add_skin(mesh, bones=[c_spine])
        plan = plan_merge(model, root, cloth)
        # the first "Spine" in the avatar traversal is the clothing bone itself
        self.assertFalse(any(isinstance(op, Reparent) and op.role == BONE for op in plan))
        self.assertEqual(plan.report.warnings[0], WARN_DUPLICATE_AVATAR)

    def test_match_inside_bone_is_skipped(self) -> None:
        model = SceneModel()
        cloth = model.add_node("Cloth")
        c_hips = model.add_node("Hips", cloth)
        avatar = model.add_node("Avatar", c_hips)
        model.add_node("Hips", avatar)
        mesh = model.add_node("Mesh", cloth)
        model.add_skin(mesh, root_bone=c_hips)
        plan = plan_merge(model, avatar, cloth)
        self.assertFalse(any(isinstance(op, Reparent) and op.role == BONE for op in plan))
        self.assertFalse(any(isinstance(op, Delete) for op in plan))
        self.assertIn(WARN_AVATAR_INSIDE_CLOTHING, plan.report.warnings)

    def test_explicit_skin_list_limits_planning(self) -> None:
        s = build_shirt_scene()
        hat = s.model.add_node("Hat", s.cloth_root)
        s.model.add_skin(hat, root_bone=s.c_chest)
        plan = plan_merge(s.model, s.root, s.cloth_root, skins=[s.skin])
        self.assertNotIn(Reparent(hat, s.root, SMR), plan.operations)
        self.assertEqual(plan.report.moved_smrs, 1)

    def test_stale_skin_node_rejected(self) -> None:
        s = build_shirt_scene()
        skin = s.skin
        s.model.delete(s.shirt)
        with self.assertRaises(InvalidInput):
            plan_merge(s.model, s.root, s.cloth_root, skins=[skin])


if __name__ == "__main__":
    unittest.main()
