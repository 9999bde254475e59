"""
Configuration management with typed Pydantic models.

Provides dataset definitions, retrieval limits and query rules loaded
from YAML with environment variable interpolation.
"""

from serielookup.config.loader import config_from_dict, load_config
from serielookup.config.settings import (
    DatasetConfig,
    LoggingConfig,
    LookupConfig,
    ParsingConfig,
    QueryConfig,
    RetrievalConfig,
)

__all__ = [
    "DatasetConfig",
    "LoggingConfig",
    "LookupConfig",
    "ParsingConfig",
    "QueryConfig",
    "RetrievalConfig",
    "config_from_dict",
    "load_config",
]
