"""
Lookup service owning the loaded indexes.

The service loads both datasets independently, publishes them as one
immutable snapshot and answers queries against that snapshot. A failed
dataset is replaced by an empty index so queries degrade instead of
crashing.
"""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum

from serielookup.config.settings import LookupConfig
from serielookup.errors import (
    DatasetUnavailableError,
    NotReadyError,
    SerieLookupError,
    ValidationError,
)
from serielookup.indexing.core import IncidentIndex, RegistryIndex
from serielookup.ingestion.base import DatasetLoader
from serielookup.ingestion.datasets import IncidentLoader, RegistryLoader
from serielookup.ingestion.retrieval import RetrievalGateway, SourceGateway
from serielookup.lookup.aggregate import LookupResult, lookup
from serielookup.utils.logging import get_logger

log = get_logger(__name__)


class LoadStatus(str, Enum):
    """Overall outcome of loading both datasets."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class DatasetLoadResult:
    """Outcome of loading a single dataset."""

    role: str
    name: str
    ok: bool
    unique_keys: int = 0
    rows_indexed: int = 0
    rows_discarded: int = 0
    rows_recovered: int = 0
    delimiter: str | None = None
    seconds: float = 0.0
    error: SerieLookupError | None = None

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error is not None else None


@dataclass(frozen=True)
class LoadReport:
    """Per-dataset load results."""

    results: dict[str, DatasetLoadResult] = field(default_factory=dict)

    @property
    def status(self) -> LoadStatus:
        """COMPLETE if every dataset loaded, FAILED if none did."""
        loaded = [r.ok for r in self.results.values()]
        if loaded and all(loaded):
            return LoadStatus.COMPLETE
        if any(loaded):
            return LoadStatus.PARTIAL
        return LoadStatus.FAILED

    def __getitem__(self, role: str) -> DatasetLoadResult:
        return self.results[role]


@dataclass(frozen=True)
class IndexSnapshot:
    """Indexes from one load cycle, published as a unit."""

    registry: RegistryIndex
    incidents: IncidentIndex
    report: LoadReport


class LookupService:
    """
    Loads the registry and incident datasets and serves lookups.

    The indexes are replaced as a whole by a single attribute assignment,
    so a query sees either the previous snapshot or the new one and never
    a partially built index.
    """

    def __init__(
        self,
        config: LookupConfig,
        gateway: RetrievalGateway | None = None,
    ) -> None:
        """
        Initialize lookup service.

        Args:
            config: Lookup configuration.
            gateway: Retrieval gateway. Built from config when omitted.
        """
        self.config = config
        self.gateway = gateway or SourceGateway.from_config(config)
        self._snapshot: IndexSnapshot | None = None
        self._ready = threading.Event()
        self._loading = threading.Event()
        self._load_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    @property
    def snapshot(self) -> IndexSnapshot | None:
        """Current snapshot, None before the first load completes."""
        return self._snapshot

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    def load(self) -> LoadReport:
        """
        Load both datasets in parallel and publish the result.

        Failures are confined to the dataset they occur in and recorded
        in the returned report.

        Returns:
            LoadReport describing each dataset.
        """
        with self._load_lock:
            self._loading.set()
            try:
                return self._load()
            finally:
                self._loading.clear()

    def _load(self) -> LoadReport:
        self.gateway.reset()

        loaders: dict[str, DatasetLoader] = {
            "registry": RegistryLoader(self.config, self.gateway),
            "incidents": IncidentLoader(self.config, self.gateway),
        }
        log.info("Loading datasets in parallel", datasets=list(loaders))

        indexes: dict[str, RegistryIndex | IncidentIndex] = {}
        results: dict[str, DatasetLoadResult] = {}

        with ThreadPoolExecutor(max_workers=len(loaders)) as executor:
            futures = {
                executor.submit(self._run_loader, loader): role
                for role, loader in loaders.items()
            }
            for future in as_completed(futures):
                role = futures[future]
                index, result = future.result()
                results[role] = result
                if index is not None:
                    indexes[role] = index

        registry = indexes.get("registry")
        incidents = indexes.get("incidents")
        report = LoadReport(
            results={role: results[role] for role in loaders},
        )
        snapshot = IndexSnapshot(
            registry=registry
            if isinstance(registry, RegistryIndex)
            else RegistryIndex.empty(self.config.registry.name),
            incidents=incidents
            if isinstance(incidents, IncidentIndex)
            else IncidentIndex.empty(self.config.incidents.name),
            report=report,
        )

        self._snapshot = snapshot
        self._ready.set()

        log.info(
            "Datasets loaded",
            status=report.status.value,
            registry_keys=len(snapshot.registry),
            incident_keys=len(snapshot.incidents),
        )
        return report

    def _run_loader(
        self, loader: DatasetLoader
    ) -> tuple[RegistryIndex | IncidentIndex | None, DatasetLoadResult]:
        """Run one loader, converting known failures into a result."""
        started = time.monotonic()
        name = loader.dataset.name
        try:
            index = loader.load()
        except SerieLookupError as e:
            log.error("Failed to load dataset", dataset=name, error=str(e))
            return None, DatasetLoadResult(
                role=loader.role,
                name=name,
                ok=False,
                seconds=round(time.monotonic() - started, 3),
                error=e,
            )

        parsed = loader.parsed
        return index, DatasetLoadResult(
            role=loader.role,
            name=name,
            ok=True,
            unique_keys=len(index),
            rows_indexed=index.rows_indexed,
            rows_discarded=parsed.discarded if parsed else 0,
            rows_recovered=parsed.recovered if parsed else 0,
            delimiter=parsed.delimiter if parsed else None,
            seconds=round(time.monotonic() - started, 3),
        )

    def start_background_load(self) -> "Future[LoadReport]":
        """
        Run load() on a worker thread.

        Queries issued meanwhile wait for the snapshot (see search()).

        Returns:
            Future resolving to the LoadReport.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="serielookup-load"
            )
        self._loading.set()
        return self._executor.submit(self.load)

    def cancel(self) -> None:
        """Cancel retrievals of a load in progress."""
        log.info("Cancelling dataset retrieval")
        self.gateway.cancel()

    def close(self) -> None:
        """Cancel pending work and stop the background worker."""
        if self._executor is not None:
            self.cancel()
            self._executor.shutdown(wait=True)
            self._executor = None

    def _wait_for_snapshot(self, timeout: float | None) -> IndexSnapshot:
        """Return the snapshot, waiting for an in-flight load if needed."""
        # Read the flag before the snapshot so a load finishing in between is seen
        loading = self._loading.is_set()
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        if not loading:
            raise NotReadyError()

        wait = self.config.query.ready_timeout_seconds if timeout is None else timeout
        if not self._ready.wait(wait):
            raise NotReadyError(wait)

        snapshot = self._snapshot
        if snapshot is None:
            raise NotReadyError(wait)
        return snapshot

    def search(self, raw_serial: str, *, timeout: float | None = None) -> LookupResult:
        """
        Look up a serial typed by a user.

        Args:
            raw_serial: Serial as entered. Whitespace around it is ignored.
            timeout: Seconds to wait for a load in progress. Defaults to
                ``query.ready_timeout_seconds``.

        Returns:
            LookupResult. ``record`` is None when the serial is unknown.

        Raises:
            ValidationError: If the input is shorter than ``query.min_length``.
            NotReadyError: If no snapshot is available in time.
            DatasetUnavailableError: If the registry failed to load.
        """
        min_length = self.config.query.min_length
        if not isinstance(raw_serial, str) or len(raw_serial.strip()) < min_length:
            raise ValidationError(str(raw_serial), min_length)

        snapshot = self._wait_for_snapshot(timeout)

        registry_result = snapshot.report["registry"]
        if not registry_result.ok:
            raise DatasetUnavailableError(
                registry_result.name, registry_result.error_message
            )

        result = lookup(
            raw_serial,
            snapshot.registry,
            snapshot.incidents,
            unclassified_label=self.config.query.unclassified_label,
            incidents_available=snapshot.report["incidents"].ok,
        )

        log.info(
            "Search completed",
            key=result.key,
            found=result.found,
            incidents=result.total_count,
        )
        return result
