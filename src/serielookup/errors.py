"""
Exception hierarchy for the lookup tool.

Every error a user can act on derives from SerieLookupError so the CLI can
report it without a traceback. A missing record is not an error and has no
exception type.
"""

from enum import Enum


class SerieLookupError(Exception):
    """Base class for all serielookup errors."""


class ValidationError(SerieLookupError):
    """Query input rejected before any dataset access."""

    def __init__(self, raw: str, min_length: int) -> None:
        self.raw = raw
        self.min_length = min_length
        super().__init__(
            f"Serial {raw!r} is too short: enter at least {min_length} characters"
        )


class RetrievalErrorKind(str, Enum):
    """Failure category reported by a retrieval gateway."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    EMPTY_PAYLOAD = "empty_payload"
    CANCELLED = "cancelled"


class RetrievalError(SerieLookupError):
    """Raw text for a dataset could not be retrieved."""

    def __init__(
        self,
        kind: RetrievalErrorKind,
        source_id: str,
        detail: str = "",
        *,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.source_id = source_id
        self.detail = detail
        self.status_code = status_code

        if kind is RetrievalErrorKind.HTTP_STATUS:
            msg = f"HTTP {status_code} while retrieving {source_id!r}"
        elif kind is RetrievalErrorKind.TIMEOUT:
            msg = f"Timed out retrieving {source_id!r}"
        elif kind is RetrievalErrorKind.EMPTY_PAYLOAD:
            msg = f"Dataset {source_id!r} is empty or contains no usable data"
        elif kind is RetrievalErrorKind.CANCELLED:
            msg = f"Retrieval of {source_id!r} was cancelled"
        else:
            msg = f"Could not reach {source_id!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class MissingColumnError(SerieLookupError):
    """An expected join or classification column is absent."""

    def __init__(
        self,
        column: str,
        dataset: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        self.column = column
        self.dataset = dataset
        self.available = list(available or [])

        where = f" in dataset {dataset!r}" if dataset else ""
        msg = f"Column {column!r} not found{where}"
        if self.available:
            msg = f"{msg} (headers: {', '.join(self.available)})"
        super().__init__(msg)


class EmptyDatasetError(SerieLookupError):
    """Dataset was retrieved but yielded no usable rows."""

    def __init__(self, dataset: str, detail: str = "") -> None:
        self.dataset = dataset
        msg = f"Dataset {dataset!r} produced no usable rows"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class NotReadyError(SerieLookupError):
    """A query was issued before the indexes were built."""

    def __init__(self, waited: float | None = None) -> None:
        self.waited = waited
        msg = "Datasets are not loaded yet"
        if waited:
            msg = f"{msg} (waited {waited:g}s)"
        super().__init__(msg)


class DatasetUnavailableError(SerieLookupError):
    """The dataset a query depends on failed to load."""

    def __init__(self, dataset: str, cause: str | None = None) -> None:
        self.dataset = dataset
        self.cause = cause
        msg = f"Dataset {dataset!r} is not loaded; retry the load"
        if cause:
            msg = f"{msg} ({cause})"
        super().__init__(msg)
