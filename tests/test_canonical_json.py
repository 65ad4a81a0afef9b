import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from roomplan.canonical_json import CanonicalJsonTypeError, canonical_dumps
from roomplan.plan_hash import plan_hash


class TestCanonicalJson(unittest.TestCase):
    def test_key_ordering_is_deterministic(self) -> None:
        a = {"xMm": 1, "assetType": "sofa"}
        b = {"assetType": "sofa", "xMm": 1}
        self.assertEqual(canonical_dumps(a), canonical_dumps(b))

    def test_nested_dict_ordering(self) -> None:
        obj = {"b": 1, "a": {"d": 4, "c": 3}}
        self.assertEqual(canonical_dumps(obj), '{"a":{"c":3,"d":4},"b":1}')

    def test_integral_floats_match_ints(self) -> None:
        self.assertEqual(canonical_dumps({"w": 700.0}), canonical_dumps({"w": 700}))

    def test_floats_rounded_to_micrometres(self) -> None:
        self.assertEqual(canonical_dumps({"x": 216.66666666}), '{"x":216.667}')

    def test_tuples_serialize_as_lists(self) -> None:
        self.assertEqual(canonical_dumps({"p": (1, 2)}), '{"p":[1,2]}')

    def test_unsupported_type_raises(self) -> None:
        with self.assertRaises(CanonicalJsonTypeError):
            canonical_dumps({"bad": {1, 2, 3}})

    def test_reject_nan(self) -> None:
        with self.assertRaises(ValueError):
            canonical_dumps({"bad": float("nan")})


class TestPlanHash(unittest.TestCase):
    def test_prefix_and_stability(self) -> None:
        plan = {"assets": [{"assetType": "sofa", "xMm": 100.0}], "operations": []}
        first = plan_hash(plan)
        self.assertTrue(first.startswith("sha256:"))
        self.assertEqual(first, plan_hash({"operations": [], "assets": [{"xMm": 100, "assetType": "sofa"}]}))

    def test_changes_with_content(self) -> None:
        self.assertNotEqual(plan_hash({"assets": []}), plan_hash({"assets": [{"assetType": "sofa"}]}))


if __name__ == "__main__":
    unittest.main()
