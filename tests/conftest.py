"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import pytest
import structlog

from serielookup.config import LookupConfig, config_from_dict
from serielookup.errors import RetrievalError
from serielookup.ingestion.retrieval import RetrievalGateway

REGISTRY_CSV = (
    "Serie,Tipo,Modelo,Proyecto,Usuario Actual\n"
    "ABC-123,Notebook,Latitude 5420,Andes,María Pérez\n"
    "XYZ 999,Desktop,OptiPlex 7090,Pacífico,Juan Soto\n"
    'QWE.555,"Monitor, 24""",P2419H,Andes,\n'
)

INCIDENTS_CSV = (
    "Fecha;Serie Reportada;Nivel 1;Nivel 2\n"
    "2024-01-03;abc123;Soporte;Hardware\n"
    "2024-02-11;ABC-123;Soporte;hardware \n"
    "2024-03-20;ABC 123;Soporte;\n"
    "2024-04-02;XYZ999;Soporte;Software\n"
)


class StaticGateway(RetrievalGateway):
    """Gateway returning canned text (or raising canned errors) per source."""

    def __init__(
        self,
        texts: Mapping[str, str],
        errors: Mapping[str, Exception] | None = None,
    ) -> None:
        self.texts = dict(texts)
        self.errors = dict(errors or {})
        self.calls: list[str] = []
        self.cancelled = False

    def fetch_text(self, source_id: str) -> str:
        self.calls.append(source_id)
        if source_id in self.errors:
            raise self.errors[source_id]
        return self.texts[source_id]

    def cancel(self) -> None:
        self.cancelled = True


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore structlog defaults after tests that configure logging."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def registry_csv() -> str:
    """Registry export with a quoted cell and mixed serial formatting."""
    return REGISTRY_CSV


@pytest.fixture
def incidents_csv() -> str:
    """Semicolon-delimited incident log."""
    return INCIDENTS_CSV


@pytest.fixture
def base_config_dict(tmp_path: Path) -> dict[str, Any]:
    """Create a minimal configuration dictionary for testing."""
    return {
        "project": "test-equipos",
        "datasets": {
            "registry": {"name": "Hoja 1", "source": "registry.csv"},
            "incidents": {"name": "BBDD PM 4", "source": "incidents.csv"},
        },
        "retrieval": {"data_root": str(tmp_path), "timeout_seconds": 2},
        "query": {"ready_timeout_seconds": 2},
    }


@pytest.fixture
def lookup_config(base_config_dict: dict[str, Any]) -> LookupConfig:
    """Validated configuration pointing at tmp_path."""
    return config_from_dict(base_config_dict)


@pytest.fixture
def gateway(registry_csv: str, incidents_csv: str) -> StaticGateway:
    """Gateway serving both sample datasets."""
    return StaticGateway({"registry": registry_csv, "incidents": incidents_csv})


@pytest.fixture
def failing_registry_gateway(incidents_csv: str) -> StaticGateway:
    """Gateway whose registry retrieval times out."""
    from serielookup.errors import RetrievalErrorKind

    return StaticGateway(
        {"incidents": incidents_csv},
        errors={"registry": RetrievalError(RetrievalErrorKind.TIMEOUT, "registry")},
    )


@pytest.fixture
def make_gateway() -> type[StaticGateway]:
    """Factory for gateways serving ad hoc texts."""
    return StaticGateway
