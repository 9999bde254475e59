"""
Serial lookup: cross-reference, aggregation and the owning service.
"""

from serielookup.lookup.aggregate import (
    UNCLASSIFIED,
    LookupResult,
    count_by_class,
    lookup,
)
from serielookup.lookup.reporter import ConsoleReporter
from serielookup.lookup.service import (
    DatasetLoadResult,
    IndexSnapshot,
    LoadReport,
    LoadStatus,
    LookupService,
)

__all__ = [
    "UNCLASSIFIED",
    "ConsoleReporter",
    "DatasetLoadResult",
    "IndexSnapshot",
    "LoadReport",
    "LoadStatus",
    "LookupResult",
    "LookupService",
    "count_by_class",
    "lookup",
]
