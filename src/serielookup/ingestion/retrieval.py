"""
Retrieval of raw dataset text.

Sources are either published spreadsheet exports fetched over HTTP or
local files. Every failure surfaces as a RetrievalError whose kind tells
timeouts, transport problems, bad HTTP status and empty payloads apart.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

import requests
from urllib3.exceptions import ReadTimeoutError

from serielookup.config.settings import LookupConfig
from serielookup.errors import RetrievalError, RetrievalErrorKind
from serielookup.utils.logging import get_logger

log = get_logger(__name__)


def decode_payload(payload: bytes, source_id: str = "") -> str:
    """
    Decode raw bytes as UTF-8, falling back to cp1252.

    A leading byte order mark is dropped.
    """
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        log.warning("Payload is not valid UTF-8, decoding as cp1252", source=source_id)
        return payload.decode("cp1252", errors="replace")


def _is_read_timeout(error: requests.RequestException) -> bool:
    # requests re-raises a urllib3 read timeout hit while streaming as ConnectionError
    return any(isinstance(arg, ReadTimeoutError) for arg in error.args)


def _request_error(source_id: str, error: requests.RequestException) -> RetrievalError:
    """Map a requests failure to a timeout or transport RetrievalError."""
    if isinstance(error, requests.Timeout) or _is_read_timeout(error):
        kind = RetrievalErrorKind.TIMEOUT
    else:
        kind = RetrievalErrorKind.TRANSPORT
    return RetrievalError(kind, source_id, str(error))


class RetrievalGateway(ABC):
    """Fetches the raw text of a dataset."""

    @abstractmethod
    def fetch_text(self, source_id: str) -> str:
        """
        Retrieve the text for one source.

        Raises:
            RetrievalError: On timeout, transport failure, bad status or
                empty payload.
        """
        ...

    def cancel(self) -> None:
        """Abort in-flight retrievals. Optional for implementations."""

    def reset(self) -> None:
        """Clear a previous cancellation. Optional for implementations."""


class SourceGateway(RetrievalGateway):
    """
    Gateway for URL and file sources.

    ``http://`` and ``https://`` sources are streamed with requests under a
    connect/read timeout plus an overall deadline. Anything else is read
    as a local file.
    """

    def __init__(
        self,
        sources: Mapping[str, str],
        *,
        timeout: float = 10.0,
        min_payload_chars: int = 10,
        chunk_size: int = 8192,
        session: requests.Session | None = None,
    ) -> None:
        """
        Initialize gateway.

        Args:
            sources: Source id -> URL or file path.
            timeout: Deadline in seconds for one retrieval.
            min_payload_chars: Shorter payloads are rejected as empty.
            chunk_size: Bytes read per streamed chunk.
            session: Optional requests session (shared connection pool).
        """
        self.sources = dict(sources)
        self.timeout = timeout
        self.min_payload_chars = min_payload_chars
        self.chunk_size = chunk_size
        self._session = session or requests.Session()
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._active: set[requests.Response] = set()

    @classmethod
    def from_config(
        cls,
        config: LookupConfig,
        session: requests.Session | None = None,
    ) -> "SourceGateway":
        """Create a gateway for the registry and incident sources."""
        sources = {
            role: config.resolve_source(dataset)
            for role, dataset in config.datasets.items()
        }
        return cls(
            sources,
            timeout=config.retrieval.timeout_seconds,
            min_payload_chars=config.retrieval.min_payload_chars,
            chunk_size=config.retrieval.chunk_size,
            session=session,
        )

    def cancel(self) -> None:
        """Abort retrievals in progress; they fail with kind ``cancelled``."""
        self._cancelled.set()
        with self._lock:
            active = list(self._active)
        for response in active:
            response.close()

    def reset(self) -> None:
        """Clear a previous cancellation."""
        self._cancelled.clear()

    def fetch_text(self, source_id: str) -> str:
        """Retrieve the text for a configured source id."""
        location = self.sources.get(source_id)
        if location is None:
            raise RetrievalError(
                RetrievalErrorKind.TRANSPORT, source_id, "no source configured"
            )

        if self._cancelled.is_set():
            raise RetrievalError(RetrievalErrorKind.CANCELLED, source_id)

        started = time.monotonic()
        if location.lower().startswith(("http://", "https://")):
            payload = self._fetch_http(source_id, location)
        else:
            payload = self._fetch_file(source_id, Path(location))

        text = decode_payload(payload, source_id)
        if len(text.strip()) < self.min_payload_chars:
            raise RetrievalError(
                RetrievalErrorKind.EMPTY_PAYLOAD,
                source_id,
                f"{len(text.strip())} characters",
            )

        log.info(
            "Retrieved dataset",
            source=source_id,
            chars=len(text),
            seconds=round(time.monotonic() - started, 3),
        )
        return text

    def _interruption(self, source_id: str, expired: threading.Event) -> RetrievalError | None:
        """Error for a cancelled or expired retrieval, or None while it may continue."""
        if self._cancelled.is_set():
            return RetrievalError(RetrievalErrorKind.CANCELLED, source_id)
        if expired.is_set():
            return RetrievalError(
                RetrievalErrorKind.TIMEOUT, source_id, f"exceeded {self.timeout:g}s"
            )
        return None

    def _fetch_http(self, source_id: str, url: str) -> bytes:
        """
        Stream a URL under an overall deadline.

        A watchdog timer closes the response when the deadline passes, and
        ``cancel()`` closes every active response. Either one ends a read that
        is blocked on a stalled server.
        """
        deadline = time.monotonic() + self.timeout
        try:
            response = self._session.get(
                url, timeout=(self.timeout, self.timeout), stream=True
            )
        except requests.RequestException as e:
            raise _request_error(source_id, e) from e

        expired = threading.Event()

        def expire() -> None:
            expired.set()
            response.close()

        watchdog = threading.Timer(max(deadline - time.monotonic(), 0.0), expire)
        watchdog.daemon = True
        with self._lock:
            self._active.add(response)
        watchdog.start()

        try:
            interruption = self._interruption(source_id, expired)
            if interruption is not None:
                raise interruption
            if not response.ok:
                raise RetrievalError(
                    RetrievalErrorKind.HTTP_STATUS,
                    source_id,
                    status_code=response.status_code,
                )

            chunks: list[bytes] = []
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                interruption = self._interruption(source_id, expired)
                if interruption is not None:
                    raise interruption
                chunks.append(chunk)

            # A closed stream can end early without raising
            interruption = self._interruption(source_id, expired)
            if interruption is not None:
                raise interruption
            return b"".join(chunks)
        except RetrievalError:
            raise
        except Exception as e:
            interruption = self._interruption(source_id, expired)
            if interruption is not None:
                raise interruption from e
            if isinstance(e, requests.RequestException):
                raise _request_error(source_id, e) from e
            raise
        finally:
            watchdog.cancel()
            with self._lock:
                self._active.discard(response)
            response.close()

    def _fetch_file(self, source_id: str, path: Path) -> bytes:
        """Read a local file."""
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise RetrievalError(
                RetrievalErrorKind.TRANSPORT, source_id, f"file not found: {path}"
            ) from e
        except OSError as e:
            raise RetrievalError(RetrievalErrorKind.TRANSPORT, source_id, str(e)) from e
