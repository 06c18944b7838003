"""
Unit tests for the field_diff module.
"""

import unittest
from avro_compare.field_diff import FieldDiff, detailed_diff


class TestDetailedDiff(unittest.TestCase):
    """Test cases for detailed_diff."""

    def test_identical_records(self):
        record = {"id": 1, "name": "Alice", "tags": ["a", "b"]}
        self.assertTrue(detailed_diff(record, dict(record)).is_empty())

    def test_field_order_ignored(self):
        self.assertTrue(detailed_diff({"a": 1, "b": 2}, {"b": 2, "a": 1}).is_empty())

    def test_updated_field_keeps_new_value(self):
        diff = detailed_diff({"id": 1, "v": "x"}, {"id": 1, "v": "y"})
        self.assertEqual(diff.to_dict(), {"added": {}, "deleted": {}, "updated": {"v": "y"}})

    def test_added_and_deleted_fields(self):
        diff = detailed_diff({"id": 1, "old": "gone"}, {"id": 1, "new": "here"})
        self.assertEqual(diff.added, {"new": "here"})
        self.assertEqual(diff.deleted, {"old": "gone"})
        self.assertEqual(diff.updated, {})
        self.assertFalse(diff.is_empty())

    def test_nested_mapping(self):
        old = {"id": 1, "address": {"city": "A", "zip": "1"}}
        new = {"id": 1, "address": {"city": "B", "street": "S"}}
        diff = detailed_diff(old, new)
        self.assertEqual(diff.added, {"address": {"street": "S"}})
        self.assertEqual(diff.deleted, {"address": {"zip": "1"}})
        self.assertEqual(diff.updated, {"address": {"city": "B"}})

    def test_sequences_by_index(self):
        diff = detailed_diff({"tags": ["a", "b"]}, {"tags": ["a", "c", "d"]})
        self.assertEqual(diff.added, {"tags": {2: "d"}})
        self.assertEqual(diff.deleted, {})
        self.assertEqual(diff.updated, {"tags": {1: "c"}})

    def test_shorter_sequence(self):
        diff = detailed_diff({"tags": ["a", "b"]}, {"tags": ["a"]})
        self.assertEqual(diff.deleted, {"tags": {1: "b"}})
        self.assertEqual(diff.added, {})
        self.assertEqual(diff.updated, {})

    def test_container_replaced_by_scalar(self):
        diff = detailed_diff({"x": {"a": 1}}, {"x": 5})
        self.assertEqual(diff.updated, {"x": 5})
        self.assertEqual(diff.added, {})
        self.assertEqual(diff.deleted, {})

    def test_null_to_value(self):
        diff = detailed_diff({"email": None}, {"email": "a@b.c"})
        self.assertEqual(diff.updated, {"email": "a@b.c"})

    def test_boolean_is_not_number(self):
        diff = detailed_diff({"flag": True}, {"flag": 1})
        self.assertEqual(diff.updated, {"flag": 1})

    def test_int_and_float_equal(self):
        self.assertTrue(detailed_diff({"score": 100}, {"score": 100.0}).is_empty())

    def test_nan_equals_nan(self):
        self.assertTrue(detailed_diff({"score": float("nan")}, {"score": float("nan")}).is_empty())
        self.assertEqual(detailed_diff({"score": float("nan")}, {"score": 1.5}).updated, {"score": 1.5})

    def test_mismatched_record_types(self):
        with self.assertRaises(TypeError):
            detailed_diff({"a": 1}, [1])


class TestFieldDiff(unittest.TestCase):
    """Test cases for the FieldDiff container."""

    def test_empty_by_default(self):
        self.assertTrue(FieldDiff().is_empty())

    def test_any_mapping_makes_it_non_empty(self):
        self.assertFalse(FieldDiff(added={"a": 1}).is_empty())
        self.assertFalse(FieldDiff(deleted={"a": 1}).is_empty())
        self.assertFalse(FieldDiff(updated={"a": 1}).is_empty())


if __name__ == '__main__':
    unittest.main()
