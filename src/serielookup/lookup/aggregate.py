"""
Cross-reference of registry and incident indexes.

A lookup sanitizes the query, fetches the registry record and groups the
matching incidents by their classification label.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd

from serielookup.indexing.core import IncidentIndex, RawRecord, RegistryIndex
from serielookup.normalization.keys import sanitize_key

UNCLASSIFIED = "UNCLASSIFIED"


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of one serial lookup.

    A missing registry record is a normal result (``record is None``), not
    an error.

    Attributes:
        key: Sanitized query key.
        record: Registry record, or None when the serial is unknown.
        incidents: Incident records for the key, in source order.
        counts_by_class: Label -> count, ordered by count descending with
            ties in order of first appearance.
        incidents_available: False when the incident log was not loaded.
    """

    key: str
    record: RawRecord | None
    incidents: tuple[RawRecord, ...] = ()
    counts_by_class: dict[str, int] = field(default_factory=dict)
    incidents_available: bool = True

    @property
    def found(self) -> bool:
        return self.record is not None

    @property
    def total_count(self) -> int:
        return len(self.incidents)


def classify(value: object, unclassified_label: str = UNCLASSIFIED) -> str:
    """Normalize a classification cell into a grouping label."""
    if not isinstance(value, str) or not value.strip():
        return unclassified_label
    return value.strip().upper()


def count_by_class(
    records: Iterable[RawRecord],
    class_column: str | None,
    unclassified_label: str = UNCLASSIFIED,
) -> dict[str, int]:
    """
    Count incident records per classification label.

    Args:
        records: Incident records.
        class_column: Header holding the classification. When None every
            record counts as unclassified.
        unclassified_label: Label for blank or missing values.

    Returns:
        Label -> count, sorted by count descending. Equal counts keep the
        order in which their labels first appear.
    """
    labels = [
        classify(record.get(class_column) if class_column else None, unclassified_label)
        for record in records
    ]
    if not labels:
        return {}

    series = pd.Series(labels, dtype=object)
    counts = series.groupby(series, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable")
    return {str(label): int(count) for label, count in counts.items()}


def lookup(
    key: str,
    registry: RegistryIndex,
    incidents: IncidentIndex,
    class_column: str | None = None,
    *,
    unclassified_label: str = UNCLASSIFIED,
    incidents_available: bool = True,
) -> LookupResult:
    """
    Look up a serial in both indexes.

    Args:
        key: Raw or sanitized serial.
        registry: Registry index.
        incidents: Incident index.
        class_column: Classification header. Defaults to the one recorded
            on the incident index.
        unclassified_label: Label for incidents with a blank classification.
        incidents_available: Whether the incident index came from a
            successful load.

    Returns:
        LookupResult for the sanitized key.
    """
    sanitized = sanitize_key(key)
    column = class_column if class_column is not None else incidents.class_column

    record = registry.get(sanitized) if sanitized else None
    matched = incidents.get(sanitized) if sanitized else ()

    return LookupResult(
        key=sanitized,
        record=record,
        incidents=matched,
        counts_by_class=count_by_class(matched, column, unclassified_label),
        incidents_available=incidents_available,
    )
