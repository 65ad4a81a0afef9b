import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from legacy_reconcile import reconcile_furniture


def _item(asset_type, **extra):
    item = {"assetType": asset_type, "xMm": None, "yMm": None, "widthMm": None, "heightMm": None}
    item.update(extra)
    return item


class TestLegacyReconcile(unittest.TestCase):
    def test_current_list_wins(self) -> None:
        plan = {"assets": [_item("sofa")], "tables": [_item("rectangular-table")]}
        with self.assertLogs("roomplan.plan_apply", level="WARNING") as logs:
            result = reconcile_furniture(plan)
        self.assertEqual(result["source"], "assets")
        self.assertEqual([i["assetType"] for i in result["furniture"]], ["sofa"])
        self.assertEqual(result["warnings"][0]["code"], "LEGACY_LIST_IGNORED")
        self.assertIn("legacy_list_ignored", logs.output[0])

    def test_rejected_current_entries_still_suppress_legacy(self) -> None:
        plan = {"assets": [], "assetsSupplied": True, "tables": [_item("rectangular-table")]}
        with self.assertLogs("roomplan.plan_apply", level="WARNING"):
            result = reconcile_furniture(plan)
        self.assertEqual(result["source"], "assets")
        self.assertEqual(result["furniture"], [])
        self.assertEqual([w["code"] for w in result["warnings"]], ["LEGACY_LIST_IGNORED"])

    def test_legacy_used_when_current_empty(self) -> None:
        result = reconcile_furniture({"assets": [], "tables": [_item("rectangular-table"), _item("round-table")]})
        self.assertEqual(result["source"], "tables")
        self.assertEqual(result["warnings"][0]["code"], "LEGACY_LIST_USED")
        first, second = result["furniture"]
        self.assertEqual((first["widthMm"], first["heightMm"]), (1800.0, 750.0))
        self.assertIsNone(second["widthMm"])

    def test_explicit_legacy_size_kept(self) -> None:
        result = reconcile_furniture({"tables": [_item("rectangular-table", widthMm=2400.0)]})
        self.assertEqual(result["furniture"][0]["widthMm"], 2400.0)
        self.assertEqual(result["furniture"][0]["heightMm"], 750.0)

    def test_nothing_to_place(self) -> None:
        result = reconcile_furniture({"assets": [], "tables": []})
        self.assertIsNone(result["source"])
        self.assertEqual(result["furniture"], [])
        self.assertEqual(result["warnings"], [])


if __name__ == "__main__":
    unittest.main()
