"""
Base classes and utilities for dataset ingestion.

A loader retrieves raw text through a gateway, parses it and builds the
dataset's index. Parse and index failures are raised to the caller, which
decides whether the other dataset can still be served.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from serielookup.config.settings import DatasetConfig, LookupConfig
from serielookup.errors import EmptyDatasetError, MissingColumnError
from serielookup.indexing.core import IncidentIndex, RegistryIndex
from serielookup.ingestion.retrieval import RetrievalGateway
from serielookup.normalization.csv_text import (
    DELIMITER_CANDIDATES,
    ParsedTable,
    parse_csv,
)
from serielookup.utils.logging import get_logger, log_context

log = get_logger(__name__)

IndexT = TypeVar("IndexT", RegistryIndex, IncidentIndex)


class DatasetLoader(ABC, Generic[IndexT]):
    """
    Abstract base class for dataset loaders.

    Subclasses only decide how a parsed table becomes an index.
    """

    role: str

    def __init__(self, config: LookupConfig, gateway: RetrievalGateway) -> None:
        """
        Initialize dataset loader.

        Args:
            config: Lookup configuration.
            gateway: Retrieval gateway for raw text.
        """
        self.config = config
        self.gateway = gateway
        self.parsed: ParsedTable | None = None

    @property
    def dataset(self) -> DatasetConfig:
        """Configuration of the dataset this loader handles."""
        return self.config.datasets[self.role]

    @abstractmethod
    def _index(self, table: ParsedTable) -> IndexT:
        """Build the index for a parsed table. Implemented by subclasses."""
        ...

    def load(self) -> IndexT:
        """
        Retrieve, parse and index the dataset.

        Returns:
            The dataset index.

        Raises:
            RetrievalError: If the raw text could not be retrieved.
            MissingColumnError: If the key or classification column is absent.
            EmptyDatasetError: If no usable rows remain.
        """
        with log_context(dataset=self.dataset.name):
            log.info("Loading dataset", loader=self.__class__.__name__)
            text = self.gateway.fetch_text(self.role)
            return self.load_text(text)

    def load_text(self, text: str) -> IndexT:
        """
        Parse and index already retrieved text.

        The delimiter is detected from the header. If the key column cannot
        be found, or no usable row remains, the other candidate delimiter is
        tried once before the first failure is raised.
        """
        parsing = self.config.parsing
        first = parse_csv(
            text,
            delimiter=parsing.delimiter,
            recover_short_rows=parsing.recover_short_rows,
        )
        if not first.headers:
            raise EmptyDatasetError(self.dataset.name, "fewer than two non-blank lines")

        try:
            return self._accept(first)
        except (MissingColumnError, EmptyDatasetError) as first_error:
            if parsing.delimiter is not None or not parsing.retry_other_delimiter:
                raise

            for delimiter in DELIMITER_CANDIDATES:
                if delimiter == first.delimiter:
                    continue
                retry = parse_csv(
                    text,
                    delimiter=delimiter,
                    recover_short_rows=parsing.recover_short_rows,
                )
                # A single column means the delimiter does not occur in the header
                if len(retry.headers) < 2:
                    continue
                log.info(
                    "Retrying with other delimiter",
                    detected=first.delimiter,
                    delimiter=delimiter,
                )
                try:
                    return self._accept(retry)
                except (MissingColumnError, EmptyDatasetError):
                    continue
            raise first_error

    def _accept(self, table: ParsedTable) -> IndexT:
        """Index a table and reject it when nothing usable remains."""
        index = self._index(table)
        if index.is_empty:
            raise EmptyDatasetError(
                self.dataset.name,
                f"{len(table)} parsed rows, {table.discarded} discarded, "
                f"{index.rows_skipped} without a serial",
            )

        self.parsed = table
        log.info(
            "Dataset loaded",
            useful_records=index.rows_indexed,
            unique_keys=len(index),
            discarded=table.discarded,
            recovered=table.recovered,
            delimiter=table.delimiter,
        )
        return index
