"""
Compare the records of two Avro files on a composite key or as multisets.
"""

from avro_compare.comparison import (
    DiffEntry,
    DiffResult,
    DuplicateKeyError,
    InvalidKeySpecificationError,
    KeyDiffer,
    VennAccumulator,
    VennResult,
    key_diff,
    venn_diff,
)
from avro_compare.field_diff import FieldDiff, detailed_diff
from avro_compare.records import canonical, compare_keys, construct_key

__version__ = "1.0.0"
