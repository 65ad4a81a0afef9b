import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from workspace_store import EntityHandle, SelectionState, WorkspaceStore


def _asset(asset_id: str, **extra) -> dict:
    asset = {"id": asset_id, "type": "sofa", "x": 0.0, "y": 0.0, "width": 100.0, "height": 100.0}
    asset.update(extra)
    return asset


class TestWorkspaceStore(unittest.TestCase):
    def setUp(self) -> None:
        self.store = WorkspaceStore()

    def test_append_and_resolve(self) -> None:
        self.assertIsNone(self.store.append_asset(_asset("a1")))
        self.store.append_shape({"id": "s1", "type": "rect"})
        self.store.append_wall({"id": "w1", "start": {"x": 0, "y": 0}, "end": {"x": 1, "y": 0}, "thickness": 100})
        self.assertEqual(self.store.resolve("a1"), EntityHandle("asset", "a1"))
        self.assertEqual(self.store.resolve("s1").kind, "shape")
        self.assertEqual(self.store.resolve("w1").kind, "wall")
        self.assertIsNone(self.store.resolve("missing"))

    def test_duplicate_id_rejected_across_tables(self) -> None:
        self.store.append_asset(_asset("x1"))
        with self.assertRaises(ValueError):
            self.store.append_shape({"id": "x1", "type": "rect"})

    def test_update_returns_prior_and_ignores_id(self) -> None:
        self.store.append_asset(_asset("a1"))
        prior = self.store.update_asset("a1", {"x": 50.0, "id": "other"})
        self.assertEqual(prior["x"], 0.0)
        self.assertEqual(self.store.get("a1")["x"], 50.0)
        self.assertEqual(self.store.get("a1")["id"], "a1")

    def test_update_missing_raises(self) -> None:
        with self.assertRaises(KeyError):
            self.store.update_asset("nope", {"x": 1})

    def test_returned_values_are_copies(self) -> None:
        self.store.append_asset(_asset("a1"))
        self.store.get("a1")["x"] = 999
        self.store.list_current()["assets"][0]["x"] = 999
        self.assertEqual(self.store.get("a1")["x"], 0.0)

    def test_group_and_ungroup(self) -> None:
        self.store.append_asset(_asset("a1"))
        self.store.append_shape({"id": "s1", "type": "rect"})
        self.store.group({"id": "g1", "type": "group"}, ["a1", "s1"])
        self.assertEqual(self.store.resolve("g1").kind, "group")
        self.assertEqual(self.store.get("a1")["groupId"], "g1")
        self.assertEqual(self.store.get("s1")["groupId"], "g1")

        prior = self.store.ungroup("g1")
        self.assertEqual(prior["memberIds"], ["a1", "s1"])
        self.assertIsNone(self.store.resolve("g1"))
        self.assertNotIn("groupId", self.store.get("a1"))

    def test_regroup_moves_member(self) -> None:
        for asset_id in ("a1", "a2", "a3"):
            self.store.append_asset(_asset(asset_id))
        self.store.group({"id": "g1"}, ["a1", "a2"])
        self.store.group({"id": "g2"}, ["a2", "a3"])
        self.assertEqual(self.store.get("g1")["memberIds"], ["a1"])
        self.assertEqual(self.store.get("a2")["groupId"], "g2")

    def test_group_rejects_walls(self) -> None:
        self.store.append_asset(_asset("a1"))
        self.store.append_wall({"id": "w1", "start": {"x": 0, "y": 0}, "end": {"x": 1, "y": 0}, "thickness": 100})
        with self.assertRaises(ValueError):
            self.store.group({"id": "g1"}, ["a1", "w1"])
        self.assertIsNone(self.store.resolve("g1"))

    def test_remove_member_detaches_from_group(self) -> None:
        self.store.append_asset(_asset("a1"))
        self.store.append_asset(_asset("a2"))
        self.store.group({"id": "g1"}, ["a1", "a2"])
        prior = self.store.remove_by_id("a1")
        self.assertEqual(prior["id"], "a1")
        self.assertEqual(self.store.get("g1")["memberIds"], ["a2"])
        self.assertIsNone(self.store.remove_by_id("a1"))

    def test_clear_returns_snapshot_and_journal_records(self) -> None:
        self.store.append_asset(_asset("a1"))
        prior = self.store.clear()
        self.assertEqual(len(prior["assets"]), 1)
        self.assertEqual(self.store.list_current(), {"assets": [], "shapes": [], "walls": []})
        actions = [entry["action"] for entry in self.store.journal()]
        self.assertEqual(actions, ["append", "clear"])


class TestSelectionState(unittest.TestCase):
    def test_set_and_clear(self) -> None:
        selection = SelectionState()
        self.assertEqual(selection.set_selection(["a", "b", "a", "", 3]), [])
        self.assertEqual(selection.current_selection(), ["a", "b"])
        self.assertEqual(selection.clear_selection(), ["a", "b"])
        self.assertEqual(selection.current_selection(), [])

    def test_discard(self) -> None:
        selection = SelectionState()
        selection.set_selection(["a", "b", "c"])
        selection.discard(["b"])
        self.assertEqual(selection.current_selection(), ["a", "c"])


if __name__ == "__main__":
    unittest.main()
