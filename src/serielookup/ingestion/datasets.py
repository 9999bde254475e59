"""
Loaders for the asset registry and the incident log.
"""

from serielookup.config.settings import LookupConfig
from serielookup.indexing.core import IncidentIndex, RegistryIndex, build_index
from serielookup.ingestion.base import DatasetLoader
from serielookup.ingestion.retrieval import RetrievalGateway, SourceGateway
from serielookup.normalization.csv_text import ParsedTable


class RegistryLoader(DatasetLoader[RegistryIndex]):
    """Loader for the asset registry (one record per serial)."""

    role = "registry"

    def _index(self, table: ParsedTable) -> RegistryIndex:
        """Index registry rows, last row wins on duplicate serials."""
        dataset = self.dataset
        return build_index(
            table.headers,
            table.rows,
            dataset.key_column,
            "single",
            aliases=dataset.key_aliases,
            fuzzy=dataset.fuzzy_key_fragments,
            dataset=dataset.name,
        )


class IncidentLoader(DatasetLoader[IncidentIndex]):
    """Loader for the incident log (many records per serial)."""

    role = "incidents"

    def _index(self, table: ParsedTable) -> IncidentIndex:
        """Index incident rows in source order and resolve the class column."""
        dataset = self.dataset
        return build_index(
            table.headers,
            table.rows,
            dataset.key_column,
            "multi",
            class_column=dataset.class_column,
            aliases=dataset.key_aliases,
            fuzzy=dataset.fuzzy_key_fragments,
            dataset=dataset.name,
        )


def load_registry(
    config: LookupConfig, gateway: RetrievalGateway | None = None
) -> RegistryIndex:
    """
    Convenience function to load the asset registry.

    Args:
        config: Lookup configuration.
        gateway: Retrieval gateway. Built from config when omitted.

    Returns:
        Registry index.
    """
    loader = RegistryLoader(config, gateway or SourceGateway.from_config(config))
    return loader.load()


def load_incidents(
    config: LookupConfig, gateway: RetrievalGateway | None = None
) -> IncidentIndex:
    """
    Convenience function to load the incident log.

    Args:
        config: Lookup configuration.
        gateway: Retrieval gateway. Built from config when omitted.

    Returns:
        Incident index.
    """
    loader = IncidentLoader(config, gateway or SourceGateway.from_config(config))
    return loader.load()
