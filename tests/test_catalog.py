import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from catalog import asset_default_size, find_wall_type, resolve_asset_type, wall_type_for_thickness


class TestAssetCatalog(unittest.TestCase):
    def test_aliases(self) -> None:
        self.assertEqual(resolve_asset_type("Round Table"), "round-table")
        self.assertEqual(resolve_asset_type("cocktail table"), "cocktail-table-700mm")

    def test_unknown_name_slugified(self) -> None:
        self.assertEqual(resolve_asset_type("  Bar   Stool "), "bar-stool")
        self.assertIsNone(resolve_asset_type("  "))
        self.assertIsNone(resolve_asset_type(5))

    def test_known_sizes(self) -> None:
        self.assertEqual(asset_default_size("rectangular-table"), (1800.0, 750.0))
        self.assertEqual(asset_default_size("round-table"), (1500.0, 1500.0))

    def test_sizes_encoded_in_ids(self) -> None:
        self.assertEqual(asset_default_size("cocktail-table-700mm"), (700.0, 700.0))
        self.assertEqual(asset_default_size("coffee-table-900x600mm"), (900.0, 600.0))
        self.assertEqual(asset_default_size("stage-1m-2m"), (1000.0, 2000.0))
        self.assertEqual(asset_default_size("dance-floor-4ft-8ft"), (1219, 2438))
        self.assertEqual(asset_default_size("window-1200mm"), (1200.0, 150.0))

    def test_fallback_size(self) -> None:
        self.assertEqual(asset_default_size("mystery"), (500.0, 500.0))
        self.assertEqual(asset_default_size(None), (500.0, 500.0))


class TestWallCatalog(unittest.TestCase):
    def test_lookup_by_id_label_alias_and_digits(self) -> None:
        self.assertEqual(find_wall_type("partition-75")["thickness"], 75.0)
        self.assertEqual(find_wall_type("Enclosure Wall (225mm)")["id"], "enclosure-225")
        self.assertEqual(find_wall_type("load bearing")["id"], "enclosure-225")
        self.assertEqual(find_wall_type("150 mm block")["id"], "enclosure-150")
        self.assertIsNone(find_wall_type("glass"))

    def test_type_for_thickness(self) -> None:
        self.assertEqual(wall_type_for_thickness(100.0), "partition-100")
        self.assertIsNone(wall_type_for_thickness(90.0))


if __name__ == "__main__":
    unittest.main()
