"""
Console output for comparison results.
"""

import sys
from pprint import pformat
from typing import Any, TextIO

from avro_compare.comparison import DiffResult, VennResult

COLORS = {
    "added": "\033[32m",         # green
    "removed": "\033[31m",       # red
    "changed": "\033[33m",       # yellow
    "intersection": "\033[33m",  # yellow
    "unchanged": "\033[37m",     # white
    "duplicates": "\033[35m",    # magenta
}
RESET = "\033[0m"


def _section(name: str, value: Any, stream: TextIO, color: bool) -> None:
    text = pformat({name: value}, sort_dicts=False)
    if color:
        text = f"{COLORS[name]}{text}{RESET}"
    print(text, file=stream)


def print_key_diff(result: DiffResult, stream: TextIO = None, color: bool = True,
                   show_unchanged: bool = True) -> None:
    """Print a key diff section by section, followed by summary counts."""
    stream = stream or sys.stdout
    data = result.to_dict()

    _section("added", data["added"], stream, color)
    _section("removed", data["removed"], stream, color)
    _section("changed", data["changed"], stream, color)
    if show_unchanged:
        _section("unchanged", data["unchanged"], stream, color)
    if data["duplicates"]["old"] or data["duplicates"]["new"]:
        _section("duplicates", data["duplicates"], stream, color)

    if color:
        print("color code: green for added, red for removed, yellow for changed, "
              "white for unchanged", file=stream)
    print(f"{len(result.removed)} removed, {len(result.added)} added", file=stream)
    print(f"{len(result.changed)} changed, {len(result.unchanged)} unchanged", file=stream)


def print_venn_diff(result: VennResult, stream: TextIO = None, color: bool = True) -> None:
    """Print a venn diff section by section, followed by summary counts."""
    stream = stream or sys.stdout

    _section("added", result.added, stream, color)
    _section("removed", result.removed, stream, color)
    _section("intersection", result.intersection, stream, color)

    if color:
        print("color code: green for added, red for removed, yellow for intersection",
              file=stream)
    # counts are of distinct records, not occurrences
    print(f"{len(result.removed)} removed", file=stream)
    print(f"{len(result.added)} added", file=stream)
    print(f"{len(result.intersection)} in intersection", file=stream)
