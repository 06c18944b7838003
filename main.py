#!/usr/bin/env python3
"""
Main CLI orchestrator for the Avro comparison tool.

This module coordinates the workflow: loads settings, parses CLI arguments,
reads both Avro files and invokes the key diff or venn diff.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from avro_compare import __version__
from avro_compare.comparison import DiffResult, VennResult, key_diff, venn_diff
from avro_compare.config import ComparisonConfig, ConfigLoader
from avro_compare.data_io import AvroReader, ResultWriter, SchemaValidator
from avro_compare.display import print_key_diff, print_venn_diff
from avro_compare.records import Record


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="avro-compare",
        description="Compare two Avro files on a key or as multisets of records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s key old.avro new.avro id
  %(prog)s key old.avro new.avro studentId,assignmentId -c config.json -o diff.json
  %(prog)s venn old.avro new.avro --no-color
        """
    )

    parser.add_argument(
        "--create-example-config",
        metavar="PATH",
        help="Create an example configuration file at the specified path and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Avro Comparison Tool {__version__}"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("old_file", help="Path to the old Avro file")
    common.add_argument("new_file", help="Path to the new Avro file")
    common.add_argument(
        "-c", "--config",
        help="Path to the JSON configuration file"
    )
    common.add_argument(
        "-o", "--output",
        help="Path for a JSON file with the comparison result"
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        help="Print results without ANSI colors"
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress information"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="{key,venn}")

    key_parser = subparsers.add_parser(
        "key", parents=[common],
        help="Classify records as added, removed, changed or unchanged by a key"
    )
    key_parser.add_argument(
        "key",
        nargs="?",
        help="Comma-separated key field names (default: key_fields from the config)"
    )
    key_parser.add_argument(
        "--hide-unchanged",
        action="store_true",
        help="Do not print unchanged records"
    )
    key_parser.add_argument(
        "--allow-duplicate-keys",
        action="store_true",
        help="Keep the first record of a repeated key instead of failing"
    )

    subparsers.add_parser(
        "venn", parents=[common],
        help="Count records only in the old file, only in the new file and in both"
    )

    return parser


def validate_file_paths(old_file: str, new_file: str, output: Optional[str]) -> None:
    """
    Validate input and output file paths.

    Raises:
        SystemExit: If validation fails
    """
    for filepath, name in [(old_file, "Old Avro file"), (new_file, "New Avro file")]:
        if not Path(filepath).exists():
            print(f"Error: {name} not found: {filepath}", file=sys.stderr)
            sys.exit(1)

    if output is None:
        return

    output_path = Path(output)
    if not output_path.parent.exists():
        print(f"Error: Output directory does not exist: {output_path.parent}", file=sys.stderr)
        sys.exit(1)

    if output_path.exists():
        logging.warning("Output file already exists and will be overwritten: %s", output)


def load_configuration(config_path: Optional[str]) -> ComparisonConfig:
    """
    Load and validate configuration, or return the defaults when no path is given.

    Raises:
        SystemExit: If configuration loading fails
    """
    if config_path is None:
        return ComparisonConfig()
    try:
        return ConfigLoader.load_config(config_path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: Invalid configuration - {e}", file=sys.stderr)
        sys.exit(1)


def parse_key(key: Optional[str], config: ComparisonConfig) -> ComparisonConfig:
    """
    Apply the command line key to the configuration.

    Raises:
        SystemExit: If neither the command line nor the config names a key
    """
    key_fields = [part.strip() for part in key.split(",")] if key else None
    try:
        config = config.with_overrides(key_fields=key_fields)
    except ValueError as e:
        print(f"Error: Invalid key - {e}", file=sys.stderr)
        sys.exit(1)
    if not config.key_fields:
        print("Error: No key given on the command line or in the configuration", file=sys.stderr)
        sys.exit(1)
    return config


def load_avro_data(old_file: str, new_file: str, config: ComparisonConfig,
                   key_fields: Optional[List[str]]) -> Tuple[List[Record], List[Record]]:
    """
    Load records from both files.

    Raises:
        SystemExit: If data loading fails
    """
    try:
        SchemaValidator.validate_schemas(
            old_file, new_file,
            key_fields,
            config.keep_fields,
            config.ignore_fields,
            config.schema_mismatch_behavior,
            config.schema
        )

        old_data = AvroReader.read_records(old_file, config.keep_fields, config.ignore_fields, config.schema)
        new_data = AvroReader.read_records(new_file, config.keep_fields, config.ignore_fields, config.schema)

        return old_data, new_data

    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading Avro data: {e}", file=sys.stderr)
        sys.exit(1)


def perform_key_diff(old_data: List[Record], new_data: List[Record],
                     config: ComparisonConfig) -> DiffResult:
    """
    Perform the key diff.

    Raises:
        SystemExit: If the key is invalid or duplicate keys are not allowed
    """
    try:
        return key_diff(old_data, new_data, config.key_fields, config.fail_on_duplicate_keys)
    except ValueError as e:
        print(f"Error during comparison: {e}", file=sys.stderr)
        sys.exit(1)


def write_results(result, output_path: Optional[str]) -> None:
    """
    Write a DiffResult or VennResult to the output file, if one was requested.

    Raises:
        SystemExit: If writing fails
    """
    if output_path is None:
        return
    try:
        ResultWriter.write_result(result.to_dict(), output_path)
        print(f"Results written to: {output_path}")
    except ValueError as e:
        print(f"Error writing results: {e}", file=sys.stderr)
        sys.exit(1)


def run_key(args: argparse.Namespace) -> None:
    config = load_configuration(args.config)
    config = parse_key(args.key, config)
    if args.allow_duplicate_keys:
        config = config.with_overrides(fail_on_duplicate_keys=False)

    old_data, new_data = load_avro_data(args.old_file, args.new_file, config, config.key_fields)
    result = perform_key_diff(old_data, new_data, config)

    print_key_diff(result, color=not args.no_color, show_unchanged=not args.hide_unchanged)
    write_results(result, args.output)


def run_venn(args: argparse.Namespace) -> None:
    config = load_configuration(args.config)
    # whole records are compared, so a configured key is not validated
    old_data, new_data = load_avro_data(args.old_file, args.new_file, config, None)
    result: VennResult = venn_diff(old_data, new_data)

    print_venn_diff(result, color=not args.no_color)
    write_results(result, args.output)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI application."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    # Handle create example config option
    if args.create_example_config:
        try:
            ConfigLoader.create_example_config(args.create_example_config)
            print(f"Example configuration created: {args.create_example_config}")
            sys.exit(0)
        except IOError as e:
            print(f"Error creating example config: {e}", file=sys.stderr)
            sys.exit(1)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s"
    )

    validate_file_paths(args.old_file, args.new_file, args.output)

    if args.command == "key":
        run_key(args)
    else:
        run_venn(args)


if __name__ == "__main__":
    main()
