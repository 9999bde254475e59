"""
Index construction for parsed datasets.

Turns parsed rows into read-only lookup maps keyed by sanitized serial.
"""

from serielookup.indexing.core import (
    IncidentIndex,
    IndexMode,
    RawRecord,
    RegistryIndex,
    build_index,
)

__all__ = [
    "IncidentIndex",
    "IndexMode",
    "RawRecord",
    "RegistryIndex",
    "build_index",
]
