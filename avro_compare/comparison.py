"""
Core comparison logic for the Avro comparison tool.

This module compares in-memory record sequences, independent of file I/O:
a key-based merge-join diff and a multiset (venn) diff over whole records.
"""

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from avro_compare.field_diff import FieldDiff, detailed_diff
from avro_compare.records import CompositeKey, Record, canonical, compare_keys, construct_key

logger = logging.getLogger(__name__)


class InvalidKeySpecificationError(ValueError):
    """The key field list given to a key diff is empty or malformed."""


class DuplicateKeyError(ValueError):
    """A composite key occurs more than once within one dataset."""


@dataclass
class DiffEntry:
    """One classified record of a key diff."""
    id: CompositeKey
    data: Any  # the record itself, or a FieldDiff for changed records

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain Python dictionary for serialization."""
        data = self.data.to_dict() if isinstance(self.data, FieldDiff) else self.data
        return {"id": self.id, "data": data}


@dataclass
class DiffResult:
    """Result of a key diff, each list in ascending key order."""
    added: List[DiffEntry] = field(default_factory=list)
    removed: List[DiffEntry] = field(default_factory=list)
    changed: List[DiffEntry] = field(default_factory=list)
    unchanged: List[DiffEntry] = field(default_factory=list)
    # later occurrences of a duplicate key, shadowed by the first one
    duplicates: Dict[str, List[DiffEntry]] = field(default_factory=lambda: {"old": [], "new": []})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain Python dictionary for serialization."""
        return {
            "added": [entry.to_dict() for entry in self.added],
            "removed": [entry.to_dict() for entry in self.removed],
            "changed": [entry.to_dict() for entry in self.changed],
            "unchanged": [entry.to_dict() for entry in self.unchanged],
            "duplicates": {
                side: [entry.to_dict() for entry in entries]
                for side, entries in self.duplicates.items()
            },
        }


@dataclass
class VennResult:
    """Multiset comparison counts keyed by canonical record string."""
    removed: Dict[str, int] = field(default_factory=dict)
    added: Dict[str, int] = field(default_factory=dict)
    intersection: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain Python dictionary for serialization."""
        return {
            "removed": dict(self.removed),
            "added": dict(self.added),
            "intersection": dict(self.intersection),
        }


class KeyDiffer:
    """Classifies records of two datasets by a composite key."""

    def __init__(self, key_fields: Sequence[str], fail_on_duplicate_keys: bool = True):
        """
        Initialize the differ.

        Args:
            key_fields: Ordered field names that make up the composite key
            fail_on_duplicate_keys: Raise DuplicateKeyError on a repeated key
                instead of keeping the first occurrence

        Raises:
            InvalidKeySpecificationError: If key_fields is empty or not a list of strings
        """
        self._validate_key_fields(key_fields)
        self.key_fields: List[str] = list(key_fields)
        self.fail_on_duplicate_keys = fail_on_duplicate_keys

    @staticmethod
    def _validate_key_fields(key_fields: Sequence[str]) -> None:
        if isinstance(key_fields, str) or not isinstance(key_fields, (list, tuple)):
            raise InvalidKeySpecificationError("key fields must be a list of field names")
        if not key_fields:
            raise InvalidKeySpecificationError("key fields cannot be empty")
        invalid = [name for name in key_fields if not isinstance(name, str) or not name]
        if invalid:
            raise InvalidKeySpecificationError(f"Invalid key field names: {invalid}")

    def compare(self, old_records: Iterable[Record], new_records: Iterable[Record]) -> DiffResult:
        """
        Compare two datasets with a sort-then-merge walk.

        Args:
            old_records: Records of the old dataset
            new_records: Records of the new dataset

        Returns:
            DiffResult with added, removed, changed and unchanged entries
        """
        result = DiffResult()
        old_rows = self._sorted_unique(old_records, "old", result.duplicates["old"])
        new_rows = self._sorted_unique(new_records, "new", result.duplicates["new"])
        logger.debug("Merging %d old and %d new records on %s",
                     len(old_rows), len(new_rows), self.key_fields)

        i = j = 0
        while True:
            key_old, row_old = old_rows[i] if i < len(old_rows) else (None, None)
            key_new, row_new = new_rows[j] if j < len(new_rows) else (None, None)
            order = compare_keys(key_old, key_new)

            if order < 0:
                result.removed.append(DiffEntry(id=key_old, data=row_old))
                i += 1
            elif order > 0:
                result.added.append(DiffEntry(id=key_new, data=row_new))
                j += 1
            elif key_old is None:
                # both sides exhausted
                break
            else:
                diff = detailed_diff(row_old, row_new)
                if diff.is_empty():
                    result.unchanged.append(DiffEntry(id=key_new, data=row_new))
                else:
                    result.changed.append(DiffEntry(id=key_new, data=diff))
                i += 1
                j += 1

        logger.debug("%d removed, %d added, %d changed, %d unchanged",
                     len(result.removed), len(result.added),
                     len(result.changed), len(result.unchanged))
        return result

    def _sorted_unique(self, records: Iterable[Record], side: str,
                       duplicates: List[DiffEntry]) -> List[Tuple[CompositeKey, Record]]:
        """
        Sort records by composite key and drop repeated keys.

        Python's sort is stable, so among records sharing a key the first in
        input order is kept and the later ones are appended to duplicates.

        Raises:
            ValueError: If a record is not a mapping
            DuplicateKeyError: If a key repeats and fail_on_duplicate_keys is True
        """
        keyed = []
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise ValueError(f"Record {position} of {side} dataset is not a mapping: {record!r}")
            keyed.append((construct_key(record, self.key_fields), record))
        keyed = sorted(keyed, key=cmp_to_key(lambda a, b: compare_keys(a[0], b[0])))

        unique: List[Tuple[CompositeKey, Record]] = []
        for key, record in keyed:
            if unique and compare_keys(unique[-1][0], key) == 0:
                if self.fail_on_duplicate_keys:
                    raise DuplicateKeyError(f"Duplicate key {key} found in {side} dataset")
                logger.warning("Duplicate key %s in %s dataset; keeping first occurrence", key, side)
                duplicates.append(DiffEntry(id=key, data=record))
                continue
            unique.append((key, record))
        return unique


class VennAccumulator:
    """
    Single-pass multiset comparison.

    Every old record must be added before the first new record, since a new
    record only counts towards the intersection if a matching old record is
    still outstanding.
    """

    def __init__(self):
        self.result = VennResult()
        self._reading_new = False

    def add_old(self, record: Record) -> None:
        if self._reading_new:
            raise RuntimeError("old records cannot be added after new records")
        removed = self.result.removed
        identity = canonical(record)
        removed[identity] = removed.get(identity, 0) + 1

    def add_new(self, record: Record) -> None:
        self._reading_new = True
        identity = canonical(record)
        removed = self.result.removed
        if removed.get(identity, 0) > 0:
            if removed[identity] == 1:
                del removed[identity]
            else:
                removed[identity] -= 1
            target = self.result.intersection
        else:
            target = self.result.added
        target[identity] = target.get(identity, 0) + 1


def key_diff(old_records: Iterable[Record], new_records: Iterable[Record],
             key_fields: Sequence[str], fail_on_duplicate_keys: bool = True) -> DiffResult:
    """
    Classify records into added, removed, changed and unchanged by composite key.

    Raises:
        InvalidKeySpecificationError: If key_fields is empty
        DuplicateKeyError: If a key repeats within one dataset and
            fail_on_duplicate_keys is True
        ValueError: If a record is not a mapping
    """
    return KeyDiffer(key_fields, fail_on_duplicate_keys).compare(old_records, new_records)


def venn_diff(old_records: Iterable[Record], new_records: Iterable[Record]) -> VennResult:
    """Compare two datasets as bags of whole records."""
    accumulator = VennAccumulator()
    for record in old_records:
        accumulator.add_old(record)
    for record in new_records:
        accumulator.add_new(record)
    result = accumulator.result
    logger.debug("%d removed, %d added, %d in intersection",
                 len(result.removed), len(result.added), len(result.intersection))
    return result
