"""
Configuration handling for the Avro comparison tool.

This module handles loading and validating JSON configuration files.
"""

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class ComparisonConfig:
    """Configuration settings for Avro comparison."""
    key_fields: Optional[List[str]] = None
    keep_fields: Optional[List[str]] = None
    ignore_fields: Optional[List[str]] = None
    schema: Optional[str] = None
    schema_mismatch_behavior: str = "warn"
    fail_on_duplicate_keys: bool = True

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if self.key_fields is not None:
            if not isinstance(self.key_fields, list):
                raise ValueError("key_fields must be a list")
            if not self.key_fields:
                raise ValueError("key_fields cannot be empty")

        for name in ("keep_fields", "ignore_fields"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, list):
                raise ValueError(f"{name} must be a list or null")

        if self.schema is not None and not isinstance(self.schema, str):
            raise ValueError("schema must be a path to an .avsc file or null")

        valid_behaviors = ["fail", "warn", "ignore"]
        if self.schema_mismatch_behavior not in valid_behaviors:
            raise ValueError(f"schema_mismatch_behavior must be one of {valid_behaviors}")

        if not isinstance(self.fail_on_duplicate_keys, bool):
            raise ValueError("fail_on_duplicate_keys must be a boolean")

    def with_overrides(self, **overrides: Any) -> "ComparisonConfig":
        """Return a validated copy with the given non-None values replaced."""
        changes = {name: value for name, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "key_fields": self.key_fields,
            "keep_fields": self.keep_fields,
            "ignore_fields": self.ignore_fields,
            "schema": self.schema,
            "schema_mismatch_behavior": self.schema_mismatch_behavior,
            "fail_on_duplicate_keys": self.fail_on_duplicate_keys
        }


class ConfigLoader:
    """Handles loading configuration from JSON files."""

    KNOWN_FIELDS = {
        "key_fields", "keep_fields", "ignore_fields", "schema",
        "schema_mismatch_behavior", "fail_on_duplicate_keys"
    }

    @staticmethod
    def load_config(config_path: str) -> ComparisonConfig:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the JSON configuration file

        Returns:
            ComparisonConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid or the JSON is malformed
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a JSON object")

        return ConfigLoader._parse_config(config_data)

    @staticmethod
    def _parse_config(config_data: Dict[str, Any]) -> ComparisonConfig:
        """
        Parse configuration data into ComparisonConfig object.

        Missing fields fall back to the ComparisonConfig defaults.
        """
        unknown_fields = set(config_data.keys()) - ConfigLoader.KNOWN_FIELDS
        if unknown_fields:
            raise ValueError(f"Unknown configuration fields: {unknown_fields}")

        config = ComparisonConfig(**config_data)

        # A relative schema path is resolved by the caller's working directory
        if config.schema is not None and not Path(config.schema).exists():
            raise ValueError(f"Schema file not found: {config.schema}")

        return config

    @staticmethod
    def create_example_config(output_path: str) -> None:
        """
        Create an example configuration file.

        Args:
            output_path: Path where to create the example config file
        """
        example_config = {
            "key_fields": ["id"],
            "keep_fields": ["id", "first_name", "last_name", "email"],
            "ignore_fields": None,
            "schema": None,
            "schema_mismatch_behavior": "warn",
            "fail_on_duplicate_keys": True
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(example_config, f, indent=2)
