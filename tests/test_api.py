import os
import sys
import unittest
import uuid

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from fastapi.testclient import TestClient

import app.main as main
from app.workspaces import WorkspaceRegistry


class TestWorkspaceApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(main.app)
        self.workspace_id = f"ws-{uuid.uuid4().hex[:8]}"

    def _post_plan(self, plan):
        return self.client.post(f"/workspaces/{self.workspace_id}/plans", json={"plan": plan})

    def test_health(self) -> None:
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"ok": True})

    def test_unknown_workspace_404(self) -> None:
        res = self.client.get(f"/workspaces/{self.workspace_id}")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["errors"][0]["code"], "WORKSPACE_NOT_FOUND")

    def test_plan_body_must_be_object(self) -> None:
        res = self.client.post(f"/workspaces/{self.workspace_id}/plans", json={"plan": ["chair"]})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["errors"][0]["code"], "PLAN_INVALID")

    def test_apply_plan_then_read_workspace(self) -> None:
        res = self._post_plan(
            {
                "walls": [{"widthMm": 4000, "heightMm": 3000, "centerX": 2000, "centerY": 1500}],
                "assets": [{"assetType": "sofa", "xMm": 10, "yMm": 10}],
                "modifications": [{"assetId": "missing", "rotation": 10}],
            }
        )
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertTrue(body["ok"])
        self.assertTrue(body["plan_hash"].startswith("sha256:"))
        self.assertEqual(len(body["effects"]["created"]), 5)
        self.assertIn("ENTITY_NOT_FOUND", [w["code"] for w in body["warnings"]])
        self.assertTrue(any(item.startswith("Walls:") for item in body["summary"]))

        res = self.client.get(f"/workspaces/{self.workspace_id}")
        workspace = res.json()["workspace"]
        self.assertEqual(len(workspace["walls"]), 4)
        self.assertEqual(workspace["wall_bounds"], {"minX": 0.0, "minY": 0.0, "maxX": 4000.0, "maxY": 3000.0})
        sofa = workspace["assets"][0]
        # clamped inside the walls with the 50 mm margin
        self.assertEqual(sofa["x"], 1050.0)
        self.assertEqual(sofa["y"], 500.0)

    def test_selection_roundtrip(self) -> None:
        self._post_plan({"assets": [{"assetType": "sofa", "xMm": 100, "yMm": 100}]})
        asset_id = self.client.get(f"/workspaces/{self.workspace_id}").json()["workspace"]["assets"][0]["id"]

        res = self.client.put(f"/workspaces/{self.workspace_id}/selection", json={"ids": [asset_id, "ghost"]})
        body = res.json()
        self.assertEqual(body["selection"], [asset_id])
        self.assertEqual(body["warnings"][0]["code"], "ENTITY_NOT_FOUND")

        res = self._post_plan({"operations": [{"type": "delete", "deleteSelected": True}]})
        self.assertEqual(res.json()["effects"]["removed"], [asset_id])
        self.assertEqual(res.json()["selection"], [])

    def test_selection_body_validated(self) -> None:
        res = self.client.put(f"/workspaces/{self.workspace_id}/selection", json={"ids": "a1"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["errors"][0]["code"], "SELECTION_INVALID")

    def test_diagnostics(self) -> None:
        self._post_plan({"shapes": [{"type": "rect"}]})
        res = self.client.get(f"/workspaces/{self.workspace_id}/diagnostics")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["diagnostics"]["counts"]["shapes"], 1)


class TestWorkspaceRegistry(unittest.TestCase):
    def test_get_only_finds_created_workspaces(self) -> None:
        registry = WorkspaceRegistry()
        self.assertIsNone(registry.get("ws-1"))
        ctx = registry.get_or_create("ws-1")
        self.assertIs(registry.get_or_create("ws-1"), ctx)
        self.assertIs(registry.get("ws-1"), ctx)


if __name__ == "__main__":
    unittest.main()
