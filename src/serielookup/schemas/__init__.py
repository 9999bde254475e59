"""
Schema definitions using Pandera for data validation.

Rows are validated at the boundary between parsing and indexing.
"""

from serielookup.schemas.records import KEY_FIELD, ROW_FIELD, IndexedRecordSchema

__all__ = [
    "KEY_FIELD",
    "ROW_FIELD",
    "IndexedRecordSchema",
]
