"""
Data ingestion layer for retrieving and indexing raw datasets.

All dataset loading happens through this module so that parsing and
column checks are applied consistently at the system boundary.
"""

from serielookup.ingestion.datasets import (
    IncidentLoader,
    RegistryLoader,
    load_incidents,
    load_registry,
)
from serielookup.ingestion.retrieval import RetrievalGateway, SourceGateway

__all__ = [
    "IncidentLoader",
    "RegistryLoader",
    "RetrievalGateway",
    "SourceGateway",
    "load_incidents",
    "load_registry",
]
