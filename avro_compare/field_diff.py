"""
Structural diff of two records that share a composite key.

Nested mappings and sequences are walked recursively; sequence elements are
addressed by integer index. Differences are reported in three mappings that
mirror the nesting of the records themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from avro_compare.records import values_equal


@dataclass
class FieldDiff:
    """
    Per-field differences between an old and a new record.

    Updated fields carry only the new value; the old value can be read from
    the old record if needed.
    """
    added: Dict[Any, Any] = field(default_factory=dict)
    deleted: Dict[Any, Any] = field(default_factory=dict)
    updated: Dict[Any, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.added and not self.deleted and not self.updated

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain Python dictionary for serialization."""
        return {
            "added": self.added,
            "deleted": self.deleted,
            "updated": self.updated,
        }


def detailed_diff(old: Any, new: Any) -> FieldDiff:
    """
    Compute the fields added, deleted and updated between two records.

    Args:
        old: Record from the old dataset
        new: Record with the same key from the new dataset

    Returns:
        FieldDiff describing how new differs from old

    Raises:
        TypeError: If the records are not both mappings or both sequences
    """
    if not _same_kind(old, new):
        raise TypeError(
            f"Cannot diff {type(old).__name__} against {type(new).__name__}; "
            "records must both be mappings or both be sequences"
        )
    return FieldDiff(
        added=_added_fields(old, new),
        deleted=_deleted_fields(old, new),
        updated=_updated_fields(old, new),
    )


def _same_kind(old: Any, new: Any) -> bool:
    if isinstance(old, dict) and isinstance(new, dict):
        return True
    return isinstance(old, (list, tuple)) and isinstance(new, (list, tuple))


def _fields(value: Any) -> Dict[Any, Any]:
    if isinstance(value, dict):
        return value
    return dict(enumerate(value))


def _added_fields(old: Any, new: Any) -> Dict[Any, Any]:
    old_fields = _fields(old)
    result = {}
    for name, new_value in _fields(new).items():
        if name not in old_fields:
            result[name] = new_value
        elif _same_kind(old_fields[name], new_value):
            nested = _added_fields(old_fields[name], new_value)
            if nested:
                result[name] = nested
    return result


def _deleted_fields(old: Any, new: Any) -> Dict[Any, Any]:
    new_fields = _fields(new)
    result = {}
    for name, old_value in _fields(old).items():
        if name not in new_fields:
            result[name] = old_value
        elif _same_kind(old_value, new_fields[name]):
            nested = _deleted_fields(old_value, new_fields[name])
            if nested:
                result[name] = nested
    return result


def _updated_fields(old: Any, new: Any) -> Dict[Any, Any]:
    old_fields = _fields(old)
    result = {}
    for name, new_value in _fields(new).items():
        if name not in old_fields:
            continue
        old_value = old_fields[name]
        if _same_kind(old_value, new_value):
            nested = _updated_fields(old_value, new_value)
            if nested:
                result[name] = nested
        elif not values_equal(old_value, new_value):
            result[name] = new_value
    return result
