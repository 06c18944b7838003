"""
Record primitives for the Avro comparison tool.

Decoded Avro rows are plain Python values (dicts, lists and scalars). This
module builds composite keys from them, orders those keys, and renders a
deterministic canonical string used as multiset identity.
"""

import base64
import datetime
import decimal
import json
import math
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

Record = Union[None, bool, int, float, str, List["Record"], Dict[str, "Record"]]
CompositeKey = List[str]

# String form of a missing field or a null value inside a composite key
MISSING_FIELD = "null"

# Prefix of the single key of a tagged non-JSON leaf in canonical form
TAG_PREFIX = "$"


def key_string(value: Any) -> str:
    """Render a single field value as one element of a composite key."""
    if value is None:
        return MISSING_FIELD
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return canonical(value)
    return str(value)


def construct_key(record: Optional[Dict[str, Any]], fields: Sequence[str]) -> Optional[CompositeKey]:
    """
    Build the composite key of a record with respect to the key fields.

    Args:
        record: Decoded row, or None for the end-of-sequence sentinel
        fields: Ordered key field names

    Returns:
        List with one string per key field, or None if record is None
    """
    if record is None:
        return None
    return [key_string(record.get(field)) for field in fields]


def compare_keys(key1: Optional[Sequence[str]], key2: Optional[Sequence[str]]) -> int:
    """
    Lexicographic order over composite keys.

    None sorts after every key, which lets the merge walk treat an exhausted
    side as infinitely large.

    Returns:
        Negative if key1 < key2, positive if key1 > key2, 0 otherwise
    """
    if key1 is None and key2 is None:
        return 0
    if key1 is None:
        return 1
    if key2 is None:
        return -1
    for part1, part2 in zip(key1, key2):
        if part1 < part2:
            return -1
        if part1 > part2:
            return 1
    # one key is a prefix of the other
    return len(key1) - len(key2)


def normalize(value: Any) -> Any:
    """
    Convert a record into JSON-native values with a stable representation.

    Non-JSON leaves become one-key mappings such as {"$bytes": ...}. Mapping
    keys that already start with "$" get a second "$", so a real map value
    never looks like a tagged leaf.
    """
    if isinstance(value, dict):
        return {_escape_key(str(k)): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, bool) or value is None or isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, (bytes, bytearray)):
        return {"$bytes": base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, decimal.Decimal):
        return {"$decimal": str(value)}
    if isinstance(value, datetime.datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, datetime.date):
        return {"$date": value.isoformat()}
    if isinstance(value, datetime.time):
        return {"$time": value.isoformat()}
    if isinstance(value, uuid.UUID):
        return {"$uuid": str(value)}
    return {TAG_PREFIX + type(value).__name__: str(value)}


def canonical(record: Any) -> str:
    """
    Deterministic string form of a record.

    Keys are sorted at every nesting level, so two structurally equal records
    serialize identically regardless of field insertion order.
    """
    return json.dumps(normalize(record), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def values_equal(old: Any, new: Any) -> bool:
    """Deep structural equality that does not treat booleans as numbers."""
    if isinstance(old, dict) and isinstance(new, dict):
        if old.keys() != new.keys():
            return False
        return all(values_equal(old[k], new[k]) for k in old)
    if isinstance(old, (list, tuple)) and isinstance(new, (list, tuple)):
        if len(old) != len(new):
            return False
        return all(values_equal(a, b) for a, b in zip(old, new))
    if isinstance(old, bool) or isinstance(new, bool):
        return isinstance(old, bool) and isinstance(new, bool) and old == new
    if is_container(old) or is_container(new):
        return False
    if type(old) is not type(new) and not _both_numbers(old, new):
        return False
    if _both_nan(old, new):
        return True
    return old == new


def is_container(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple))


def _escape_key(key: str) -> str:
    return TAG_PREFIX + key if key.startswith(TAG_PREFIX) else key


def _both_nan(old: Any, new: Any) -> bool:
    return (isinstance(old, float) and isinstance(new, float)
            and math.isnan(old) and math.isnan(new))


def _both_numbers(old: Any, new: Any) -> bool:
    return isinstance(old, (int, float)) and isinstance(new, (int, float))
