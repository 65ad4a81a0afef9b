import itertools
import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from entity_materialize import (
    materialize_furniture,
    materialize_shapes,
    materialize_walls,
    tile_positions,
)
from plan_settings import PlanSettings
from workspace_store import WorkspaceContext


def _counter_ids():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


def _room(width, height, cx, cy):
    return {"kind": "room", "widthMm": width, "heightMm": height, "centerX": cx, "centerY": cy, "thickness": 100.0, "type": "partition-100"}


def _furniture(asset_type="sofa", **extra):
    item = {"assetType": asset_type, "xMm": None, "yMm": None, "widthMm": None, "heightMm": None, "rotation": 0.0}
    item.update(extra)
    return item


class TestMaterializeWalls(unittest.TestCase):
    def test_room_expands_to_four_segments(self) -> None:
        ctx = WorkspaceContext(id_factory=_counter_ids())
        result = materialize_walls(ctx, [_room(10000, 8000, 5000, 4000)], PlanSettings())
        self.assertEqual(result["created"], ["wall-1", "wall-2", "wall-3", "wall-4"])
        walls = ctx.store.list_current()["walls"]
        self.assertEqual(walls[0]["start"], {"x": 0.0, "y": 0.0})
        self.assertEqual(walls[0]["end"], {"x": 10000.0, "y": 0.0})
        self.assertEqual(walls[2]["start"], {"x": 10000.0, "y": 8000.0})
        self.assertTrue(all(w["thickness"] == 100.0 for w in walls))

    def test_room_defaults_to_canvas_centre(self) -> None:
        ctx = WorkspaceContext(id_factory=_counter_ids())
        room = _room(2000, 2000, None, None)
        materialize_walls(ctx, [room], PlanSettings())
        self.assertEqual(ctx.store.get("wall-1")["start"], {"x": 4000.0, "y": 4000.0})

    def test_segment_kept_as_is(self) -> None:
        ctx = WorkspaceContext(id_factory=_counter_ids())
        wall = {"kind": "segment", "start": {"x": 0.0, "y": 0.0}, "end": {"x": 500.0, "y": 0.0}, "thickness": 75.0, "type": "partition-75", "fillColor": "#999999", "strokeColor": None}
        materialize_walls(ctx, [wall], PlanSettings())
        stored = ctx.store.get("wall-1")
        self.assertEqual(stored["thickness"], 75.0)
        self.assertEqual(stored["fillColor"], "#999999")
        self.assertNotIn("strokeColor", stored)


class TestMaterializeFurniture(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = WorkspaceContext(id_factory=_counter_ids())
        self.settings = PlanSettings()

    def test_grid_end_to_end_positions(self) -> None:
        materialize_walls(self.ctx, [_room(10000, 8000, 5000, 4000)], self.settings)
        items = [_furniture("round-table", widthMm=700.0, heightMm=700.0) for _ in range(12)]
        result = materialize_furniture(self.ctx, items, {"columns": 3, "rows": 4}, self.settings)
        self.assertEqual(len(result["created"]), 12)
        assets = self.ctx.store.list_current()["assets"]
        self.assertAlmostEqual(assets[0]["x"], 2325.0)
        self.assertAlmostEqual(assets[0]["y"], 1390.0)
        self.assertAlmostEqual(assets[3]["x"], 2325.0)
        self.assertAlmostEqual(assets[3]["y"], 3130.0)
        self.assertEqual(result["warnings"], [])

    def test_grid_positions_not_clamped(self) -> None:
        materialize_walls(self.ctx, [_room(1000, 1000, 500, 500)], self.settings)
        items = [_furniture(widthMm=700.0, heightMm=700.0) for _ in range(2)]
        materialize_furniture(self.ctx, items, {"columns": 2, "rows": 1}, self.settings)
        first = self.ctx.store.list_current()["assets"][0]
        # a clamp would push this to 400
        self.assertAlmostEqual(first["x"], 350 - 400 / 3)

    def test_explicit_coordinates_clamped_to_walls(self) -> None:
        materialize_walls(self.ctx, [_room(1000, 1000, 500, 500)], self.settings)
        items = [_furniture(xMm=10.0, yMm=990.0, widthMm=200.0, heightMm=100.0)]
        materialize_furniture(self.ctx, items, None, self.settings)
        asset = self.ctx.store.list_current()["assets"][0]
        self.assertEqual((asset["x"], asset["y"]), (150.0, 900.0))

    def test_explicit_coordinates_unclamped_without_walls(self) -> None:
        items = [_furniture(xMm=-20.0, yMm=30.0)]
        materialize_furniture(self.ctx, items, None, self.settings)
        asset = self.ctx.store.list_current()["assets"][0]
        self.assertEqual((asset["x"], asset["y"]), (-20.0, 30.0))

    def test_half_explicit_is_auto(self) -> None:
        items = [_furniture("normal-chair", xMm=100.0)]
        materialize_furniture(self.ctx, items, None, self.settings)
        asset = self.ctx.store.list_current()["assets"][0]
        self.assertEqual((asset["x"], asset["y"]), (5000.0, 5000.0))

    def test_catalogue_size_and_defaults(self) -> None:
        materialize_furniture(self.ctx, [_furniture("cocktail-table-700mm"), _furniture("mystery")], None, self.settings)
        first, second = self.ctx.store.list_current()["assets"]
        self.assertEqual((first["width"], first["height"]), (700.0, 700.0))
        self.assertEqual((second["width"], second["height"]), (500.0, 500.0))
        self.assertEqual(first["scale"], 1.0)
        self.assertEqual(first["zIndex"], 1)
        self.assertEqual(first["baseWidth"], 700.0)
        self.assertEqual(first["id"], "asset-1")

    def test_grid_overflow_warns_and_tiles(self) -> None:
        materialize_walls(self.ctx, [_room(10000, 8000, 5000, 4000)], self.settings)
        items = [_furniture(widthMm=500.0, heightMm=500.0) for _ in range(3)]
        with self.assertLogs("roomplan.materialize", level="WARNING"):
            result = materialize_furniture(self.ctx, items, {"columns": 1, "rows": 2}, self.settings)
        self.assertEqual(result["warnings"][0]["code"], "GRID_CAPACITY_EXCEEDED")
        self.assertEqual(len(result["created"]), 3)
        overflow = self.ctx.store.list_current()["assets"][2]
        self.assertEqual((overflow["x"], overflow["y"]), (5000.0, 4000.0))

    def test_grid_without_walls_warns(self) -> None:
        items = [_furniture(widthMm=500.0, heightMm=500.0) for _ in range(2)]
        result = materialize_furniture(self.ctx, items, {"columns": 2, "rows": 1}, self.settings)
        self.assertEqual(result["warnings"][0]["code"], "GRID_NO_WALL_BOUNDS")
        xs = [a["x"] for a in self.ctx.store.list_current()["assets"]]
        self.assertEqual(xs, [4650.0, 5350.0])

    def test_reapplying_duplicates(self) -> None:
        items = [_furniture(xMm=100.0, yMm=100.0)]
        materialize_furniture(self.ctx, items, None, self.settings)
        materialize_furniture(self.ctx, items, None, self.settings)
        self.assertEqual(len(self.ctx.store.list_current()["assets"]), 2)


class TestMaterializeShapes(unittest.TestCase):
    def _shape(self, **extra):
        shape = {
            "type": "rect",
            "xMm": None,
            "yMm": None,
            "widthMm": 100.0,
            "heightMm": 100.0,
            "radiusMm": 50.0,
            "rotation": 0.0,
            "fillColor": "#cccccc",
            "strokeColor": "#000000",
            "strokeWidth": 1.0,
            "zIndex": 1,
        }
        shape.update(extra)
        return shape

    def test_shapes_tiled_and_clamped(self) -> None:
        ctx = WorkspaceContext(id_factory=_counter_ids())
        settings = PlanSettings()
        materialize_walls(ctx, [_room(1000, 1000, 500, 500)], settings)
        result = materialize_shapes(ctx, [self._shape(), self._shape(xMm=0.0, yMm=0.0)], settings)
        self.assertEqual(result["created"], ["shape-5", "shape-6"])
        tiled, clamped = ctx.store.list_current()["shapes"]
        self.assertEqual((tiled["x"], tiled["y"]), (500.0, 500.0))
        self.assertEqual((clamped["x"], clamped["y"]), (100.0, 100.0))
        self.assertEqual(clamped["radius"], 50.0)
        self.assertEqual(clamped["baseRadius"], 50.0)


class TestTilePositions(unittest.TestCase):
    def test_rows_of_three_around_centre(self) -> None:
        positions = tile_positions(4, 100, 100, (0.0, 0.0), 200)
        self.assertEqual([p["x"] for p in positions], [-300.0, 0.0, 300.0, 0.0])
        self.assertEqual([p["y"] for p in positions], [-150.0, -150.0, -150.0, 150.0])


if __name__ == "__main__":
    unittest.main()
