"""
Registry and incident indexes.

Both indexes are built once per load and never mutated afterwards. Records
are exposed as read-only mappings from lower-cased header to cell value.
"""

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, overload

import pandas as pd

from serielookup.normalization.columns import resolve_column
from serielookup.normalization.keys import sanitize_key
from serielookup.schemas.records import KEY_FIELD, ROW_FIELD, IndexedRecordSchema
from serielookup.utils.logging import get_logger

log = get_logger(__name__)

IndexMode = Literal["single", "multi"]
RawRecord = Mapping[str, str]


@dataclass(frozen=True)
class RegistryIndex:
    """
    One record per sanitized serial.

    Duplicate serials in the source are resolved last-write-wins: the row
    that appears last in the file is the one kept.

    Attributes:
        records: Sanitized key -> record.
        key_column: Header the key was read from.
        dataset: Dataset name, for diagnostics.
        rows_indexed: Source rows with a usable key (duplicates included).
        rows_skipped: Source rows dropped because their key sanitized to "".
    """

    records: Mapping[str, RawRecord] = field(default_factory=lambda: MappingProxyType({}))
    key_column: str | None = None
    dataset: str | None = None
    rows_indexed: int = 0
    rows_skipped: int = 0

    @classmethod
    def empty(cls, dataset: str | None = None) -> "RegistryIndex":
        """Index with no records, used when a load fails."""
        return cls(dataset=dataset)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def get(self, key: str) -> RawRecord | None:
        """Return the record for a sanitized key, or None."""
        return self.records.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)


@dataclass(frozen=True)
class IncidentIndex:
    """
    Zero or more incident records per sanitized serial, in source order.

    Attributes:
        records: Sanitized key -> records in file order.
        key_column: Header the key was read from.
        class_column: Header holding the classification used for counts.
        dataset: Dataset name, for diagnostics.
        rows_indexed: Source rows with a usable key.
        rows_skipped: Source rows dropped because their key sanitized to "".
    """

    records: Mapping[str, tuple[RawRecord, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    key_column: str | None = None
    class_column: str | None = None
    dataset: str | None = None
    rows_indexed: int = 0
    rows_skipped: int = 0

    @classmethod
    def empty(cls, dataset: str | None = None) -> "IncidentIndex":
        """Index with no records, used when a load fails."""
        return cls(dataset=dataset)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def get(self, key: str) -> tuple[RawRecord, ...]:
        """Return the records for a sanitized key, empty when unknown."""
        return self.records.get(key, ())

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)


def _to_frame(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> pd.DataFrame:
    """Build a string DataFrame, keeping the last of any duplicated header."""
    frame = pd.DataFrame(list(rows), columns=list(headers), dtype=object)
    if frame.columns.duplicated().any():
        log.warning(
            "Duplicate headers, keeping last occurrence",
            duplicated=sorted(set(frame.columns[frame.columns.duplicated()])),
        )
        frame = frame.loc[:, ~frame.columns.duplicated(keep="last")].copy()
    return frame


@overload
def build_index(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    key_column: str,
    mode: Literal["single"] = ...,
    *,
    class_column: str | None = ...,
    aliases: Sequence[str] | None = ...,
    fuzzy: Sequence[str] = ...,
    dataset: str | None = ...,
) -> RegistryIndex: ...


@overload
def build_index(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    key_column: str,
    mode: Literal["multi"],
    *,
    class_column: str | None = ...,
    aliases: Sequence[str] | None = ...,
    fuzzy: Sequence[str] = ...,
    dataset: str | None = ...,
) -> IncidentIndex: ...


def build_index(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    key_column: str,
    mode: IndexMode = "single",
    *,
    class_column: str | None = None,
    aliases: Sequence[str] | None = None,
    fuzzy: Sequence[str] = (),
    dataset: str | None = None,
) -> RegistryIndex | IncidentIndex:
    """
    Index parsed rows by sanitized serial.

    In ``single`` mode later rows overwrite earlier rows that share a key
    (last-write-wins). In ``multi`` mode rows sharing a key accumulate in
    source order. Rows whose key sanitizes to an empty string are skipped.

    Args:
        headers: Normalized header names.
        rows: Field values aligned with ``headers``.
        key_column: Expected name of the serial column.
        mode: ``"single"`` for the registry, ``"multi"`` for incidents.
        class_column: Classification column, resolved and stored in multi mode.
        aliases: Alternative names for ``key_column``.
        fuzzy: Fragments for a last-resort contains match on ``key_column``.
        dataset: Dataset name for logs and errors.

    Returns:
        RegistryIndex in single mode, IncidentIndex in multi mode.

    Raises:
        MissingColumnError: If the key (or classification) column is absent.
        ValueError: If mode is unknown.
    """
    if mode not in ("single", "multi"):
        msg = f"Unknown index mode: {mode!r}"
        raise ValueError(msg)

    key_header = resolve_column(
        headers, key_column, aliases=aliases, fuzzy=fuzzy, dataset=dataset
    )
    class_header = None
    if mode == "multi" and class_column is not None:
        class_header = resolve_column(headers, class_column, dataset=dataset)

    frame = _to_frame(headers, rows)
    value_columns = list(frame.columns)

    frame[KEY_FIELD] = frame[key_header].map(sanitize_key).astype(object)
    frame[ROW_FIELD] = range(len(frame))

    usable = frame[frame[KEY_FIELD] != ""].copy()
    skipped = len(frame) - len(usable)
    usable = IndexedRecordSchema.validate(usable)

    if mode == "single":
        deduped = usable.drop_duplicates(subset=KEY_FIELD, keep="last")
        records = {
            key: MappingProxyType(record)
            for key, record in zip(
                deduped[KEY_FIELD],
                deduped[value_columns].to_dict(orient="records"),
                strict=True,
            )
        }
        log.info(
            "Built registry index",
            dataset=dataset,
            key_column=key_header,
            rows=len(usable),
            keys=len(records),
            duplicates=len(usable) - len(deduped),
            skipped=skipped,
        )
        return RegistryIndex(
            records=MappingProxyType(records),
            key_column=key_header,
            dataset=dataset,
            rows_indexed=len(usable),
            rows_skipped=skipped,
        )

    grouped: dict[str, tuple[RawRecord, ...]] = {}
    for key, group in usable.groupby(KEY_FIELD, sort=False):
        ordered = group.sort_values(ROW_FIELD, kind="stable")
        grouped[str(key)] = tuple(
            MappingProxyType(record)
            for record in ordered[value_columns].to_dict(orient="records")
        )

    log.info(
        "Built incident index",
        dataset=dataset,
        key_column=key_header,
        class_column=class_header,
        rows=len(usable),
        keys=len(grouped),
        skipped=skipped,
    )
    return IncidentIndex(
        records=MappingProxyType(grouped),
        key_column=key_header,
        class_column=class_header,
        dataset=dataset,
        rows_indexed=len(usable),
        rows_skipped=skipped,
    )
