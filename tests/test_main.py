"""
End-to-end tests for the command line interface.
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

import fastavro

import main

SCHEMA = fastavro.parse_schema({
    "type": "record",
    "name": "Submission",
    "fields": [
        {"name": "studentId", "type": "long"},
        {"name": "assignmentId", "type": "long"},
        {"name": "score", "type": ["null", "double"], "default": None},
    ],
})


class TestMain(unittest.TestCase):
    """Test cases for the CLI entry point."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.old_file = self._write_avro("old.avro", [
            {"studentId": 1, "assignmentId": 1, "score": 80.0},
            {"studentId": 1, "assignmentId": 2, "score": 70.0},
            {"studentId": 2, "assignmentId": 1, "score": None},
        ])
        self.new_file = self._write_avro("new.avro", [
            {"studentId": 1, "assignmentId": 1, "score": 85.0},
            {"studentId": 2, "assignmentId": 1, "score": None},
            {"studentId": 3, "assignmentId": 1, "score": 90.0},
        ])

    def tearDown(self):
        """Clean up test fixtures."""
        for file in os.listdir(self.temp_dir):
            os.remove(os.path.join(self.temp_dir, file))
        os.rmdir(self.temp_dir)

    def _write_avro(self, filename: str, records: list) -> str:
        path = os.path.join(self.temp_dir, filename)
        with open(path, 'wb') as f:
            fastavro.writer(f, SCHEMA, records)
        return path

    def _run(self, argv: list) -> str:
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            main.main(argv)
        return stdout.getvalue()

    def test_key_diff(self):
        output = self._run(["key", self.old_file, self.new_file, "studentId,assignmentId", "--no-color"])

        self.assertIn("1 removed, 1 added", output)
        self.assertIn("1 changed, 1 unchanged", output)

    def test_key_diff_output_file(self):
        output_path = os.path.join(self.temp_dir, "diff.json")
        self._run(["key", self.old_file, self.new_file, "studentId, assignmentId",
                   "--no-color", "-o", output_path])

        with open(output_path, 'r', encoding='utf-8') as f:
            written = json.load(f)

        self.assertEqual(written["removed"][0]["id"], ["1", "2"])
        self.assertEqual(written["added"][0]["id"], ["3", "1"])
        self.assertEqual(written["changed"][0]["data"]["updated"], {"score": 85.0})

    def test_key_from_config(self):
        config_path = os.path.join(self.temp_dir, "config.json")
        with open(config_path, 'w') as f:
            json.dump({"key_fields": ["studentId", "assignmentId"], "ignore_fields": ["score"]}, f)

        output = self._run(["key", self.old_file, self.new_file, "-c", config_path, "--no-color"])

        self.assertIn("0 changed, 2 unchanged", output)

    def test_missing_key(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            self._run(["key", self.old_file, self.new_file])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("No key given", stderr.getvalue())

    def test_duplicate_keys(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            self._run(["key", self.old_file, self.new_file, "studentId", "--no-color"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Duplicate key ['1'] found in old dataset", stderr.getvalue())

    def test_allow_duplicate_keys(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            output = self._run(["key", self.old_file, self.new_file, "studentId",
                                "--no-color", "--allow-duplicate-keys", "--hide-unchanged"])

        self.assertIn("0 removed, 1 added", output)
        self.assertIn("'duplicates'", output)

    def test_key_field_not_in_file(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit):
            self._run(["key", self.old_file, self.new_file, "userId"])
        self.assertIn("Key fields missing from first file", stderr.getvalue())

    def test_venn_diff(self):
        output_path = os.path.join(self.temp_dir, "venn.json")
        output = self._run(["venn", self.old_file, self.new_file, "--no-color", "-o", output_path])

        self.assertIn("2 removed", output)
        self.assertIn("2 added", output)
        self.assertIn("1 in intersection", output)

        with open(output_path, 'r', encoding='utf-8') as f:
            written = json.load(f)
        self.assertEqual(list(written["intersection"].values()), [1])

    def test_missing_input_file(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            self._run(["venn", os.path.join(self.temp_dir, "missing.avro"), self.new_file])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Old Avro file not found", stderr.getvalue())

    def test_create_example_config(self):
        example_path = os.path.join(self.temp_dir, "example.json")
        with self.assertRaises(SystemExit) as context:
            self._run(["--create-example-config", example_path])
        self.assertEqual(context.exception.code, 0)
        self.assertTrue(os.path.exists(example_path))

    def test_no_command(self):
        with self.assertRaises(SystemExit) as context:
            self._run([])
        self.assertEqual(context.exception.code, 1)


if __name__ == '__main__':
    unittest.main()
