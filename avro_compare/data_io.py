"""
Data I/O module for the Avro comparison tool.

This module handles reading Avro files into records, filtering their schemas
and writing comparison results.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import fastavro
from fastavro.read import SchemaResolutionError
from fastavro.schema import SchemaParseException, expand_schema

from avro_compare.records import Record, normalize

logger = logging.getLogger(__name__)

NAMED_TYPES = ("record", "error", "enum", "fixed")


class SchemaFilter:
    """Restricts a record schema to a subset of its top-level fields."""

    @staticmethod
    def filter_schema(schema: Dict[str, Any], keep_fields: Optional[List[str]] = None,
                      ignore_fields: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Return a copy of schema with only the fields in keep_fields and not in ignore_fields.

        Pass None for keep_fields or ignore_fields to not filter by that argument.
        Named types are inlined before filtering, so a kept field still resolves
        a type whose definition sat in a dropped field.

        Raises:
            ValueError: If the schema can't be parsed
        """
        if not isinstance(schema, dict) or "fields" not in schema:
            return schema

        keep_set = None if keep_fields is None else set(keep_fields)
        ignore_set = None if ignore_fields is None else set(ignore_fields)

        def field_filter(field: Dict[str, Any]) -> bool:
            name = field["name"]
            return ((ignore_set is None or name not in ignore_set)
                    and (keep_set is None or name in keep_set))

        try:
            expanded = expand_schema(schema)
        except SchemaParseException as e:
            raise ValueError(f"Invalid Avro schema: {e}")

        filtered = copy.deepcopy(expanded)
        filtered["fields"] = [field for field in filtered["fields"] if field_filter(field)]
        return SchemaFilter._define_once(filtered, set())

    @staticmethod
    def _define_once(schema: Any, defined: set) -> Any:
        """Replace every repeated definition of a named type with a reference to its name."""
        if isinstance(schema, list):
            return [SchemaFilter._define_once(branch, defined) for branch in schema]
        if not isinstance(schema, dict):
            return schema

        if schema.get("type") in NAMED_TYPES:
            if schema["name"] in defined:
                return schema["name"]
            defined.add(schema["name"])

        result = dict(schema)
        if "fields" in result:
            result["fields"] = [
                dict(field, type=SchemaFilter._define_once(field["type"], defined))
                for field in result["fields"]
            ]
        for child in ("items", "values"):
            if child in result:
                result[child] = SchemaFilter._define_once(result[child], defined)
        return result


class AvroReader:
    """Handles reading Avro object container files into memory."""

    @staticmethod
    def read_schema(file_path: str, schema_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Get the schema records should be decoded with.

        Args:
            file_path: Path to the Avro file
            schema_path: Optional .avsc file that replaces the embedded schema

        Returns:
            Schema as a plain dictionary

        Raises:
            FileNotFoundError: If a file doesn't exist
            ValueError: If the file or schema can't be read
        """
        if schema_path is not None:
            schema_file = Path(schema_path)
            if not schema_file.exists():
                raise FileNotFoundError(f"Schema file not found: {schema_path}")
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in schema file {schema_path}: {e}")

        avro_file = AvroReader._existing(file_path)
        try:
            with open(avro_file, 'rb') as f:
                reader = fastavro.reader(f)
                return json.loads(reader.metadata["avro.schema"])
        except (ValueError, EOFError, KeyError) as e:
            raise ValueError(f"Error reading Avro header of {file_path}: {e}")

    @staticmethod
    def get_field_names(file_path: str, schema_path: Optional[str] = None) -> List[str]:
        """Get the top-level field names of an Avro file's record schema."""
        schema = AvroReader.read_schema(file_path, schema_path)
        if not isinstance(schema, dict):
            return []
        return [field["name"] for field in schema.get("fields", [])]

    @staticmethod
    def iter_records(file_path: str, keep_fields: Optional[List[str]] = None,
                     ignore_fields: Optional[List[str]] = None,
                     schema_path: Optional[str] = None) -> Iterator[Record]:
        """
        Lazily decode the records of an Avro file.

        Args:
            file_path: Path to the Avro file
            keep_fields: Only these top-level fields are decoded (None keeps all)
            ignore_fields: These top-level fields are dropped (None drops none)
            schema_path: Optional .avsc file that replaces the embedded schema

        Yields:
            Decoded records, in file order

        Raises:
            FileNotFoundError: If the Avro file doesn't exist
            ValueError: If the file can't be decoded
        """
        schema = AvroReader.read_schema(file_path, schema_path)
        reader_schema = SchemaFilter.filter_schema(schema, keep_fields, ignore_fields)
        avro_file = AvroReader._existing(file_path)

        try:
            with open(avro_file, 'rb') as f:
                for record in fastavro.reader(f, reader_schema=reader_schema):
                    yield record
        except (ValueError, EOFError, SchemaResolutionError) as e:
            raise ValueError(f"Error reading Avro file {file_path}: {e}")

    @staticmethod
    def read_records(file_path: str, keep_fields: Optional[List[str]] = None,
                     ignore_fields: Optional[List[str]] = None,
                     schema_path: Optional[str] = None) -> List[Record]:
        """Read all records of an Avro file into a list. See iter_records."""
        records = list(AvroReader.iter_records(file_path, keep_fields, ignore_fields, schema_path))
        logger.info("Read %d records from %s", len(records), file_path)
        return records

    @staticmethod
    def _existing(file_path: str) -> Path:
        avro_file = Path(file_path)
        if not avro_file.exists():
            raise FileNotFoundError(f"Avro file not found: {file_path}")
        return avro_file


class ResultWriter:
    """Handles writing comparison results to JSON files."""

    @staticmethod
    def write_result(result_data: Dict[str, Any], output_path: str) -> None:
        """
        Write a comparison result to a JSON file.

        Args:
            result_data: Result converted with its to_dict() method
            output_path: Path where to write the output JSON

        Raises:
            ValueError: If writing fails
        """
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(result_data, f, indent=2, ensure_ascii=False, default=normalize)
        except (IOError, TypeError) as e:
            raise ValueError(f"Error writing output file {output_path}: {e}")


class SchemaValidator:
    """Validates Avro file schemas and handles mismatches."""

    @staticmethod
    def validate_schemas(file1_path: str, file2_path: str,
                         key_fields: Optional[List[str]],
                         keep_fields: Optional[List[str]] = None,
                         ignore_fields: Optional[List[str]] = None,
                         schema_mismatch_behavior: str = "warn",
                         schema_path: Optional[str] = None) -> None:
        """
        Validate that both Avro files have compatible schemas after filtering.

        Args:
            file1_path: Path to first Avro file
            file2_path: Path to second Avro file
            key_fields: Key field names, or None when no key is used
            keep_fields: Fields kept by the schema filter
            ignore_fields: Fields dropped by the schema filter
            schema_mismatch_behavior: How to handle mismatches ("fail", "warn", "ignore")
            schema_path: Optional .avsc file that replaces the embedded schemas

        Raises:
            ValueError: If schemas are incompatible and behavior is "fail", or
                a key field is missing from either file
        """
        fields1 = SchemaValidator._filtered_fields(file1_path, keep_fields, ignore_fields, schema_path)
        fields2 = SchemaValidator._filtered_fields(file2_path, keep_fields, ignore_fields, schema_path)

        if schema_mismatch_behavior != "ignore":
            only_in_file1 = fields1 - fields2
            only_in_file2 = fields2 - fields1

            if only_in_file1 or only_in_file2:
                message_parts = []
                if only_in_file1:
                    message_parts.append(f"Fields only in first file: {sorted(only_in_file1)}")
                if only_in_file2:
                    message_parts.append(f"Fields only in second file: {sorted(only_in_file2)}")

                message = "Schema mismatch detected. " + ". ".join(message_parts)

                if schema_mismatch_behavior == "fail":
                    raise ValueError(message)
                logger.warning(message)

        if not key_fields:
            return

        missing_keys_file1 = set(key_fields) - fields1
        missing_keys_file2 = set(key_fields) - fields2

        if missing_keys_file1:
            raise ValueError(f"Key fields missing from first file: {sorted(missing_keys_file1)}")
        if missing_keys_file2:
            raise ValueError(f"Key fields missing from second file: {sorted(missing_keys_file2)}")

    @staticmethod
    def _filtered_fields(file_path: str, keep_fields: Optional[List[str]],
                         ignore_fields: Optional[List[str]],
                         schema_path: Optional[str]) -> set:
        schema = AvroReader.read_schema(file_path, schema_path)
        filtered = SchemaFilter.filter_schema(schema, keep_fields, ignore_fields)
        if not isinstance(filtered, dict):
            return set()
        return {field["name"] for field in filtered.get("fields", [])}
