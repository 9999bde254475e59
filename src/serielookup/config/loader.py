"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: project, registry.source, incidents.source
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from serielookup.config.settings import (
    DatasetConfig,
    LoggingConfig,
    LookupConfig,
    ParsingConfig,
    QueryConfig,
    RetrievalConfig,
)

# Column defaults for the two known exports
DEFAULT_DATASETS: dict[str, dict[str, Any]] = {
    "registry": {
        "name": "registry",
        "key_column": "serie",
    },
    "incidents": {
        "name": "incidents",
        "key_column": "serie reportada",
        "class_column": "nivel 2",
    },
}


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def _build_dataset(role: str, data: dict[str, Any] | None) -> DatasetConfig:
    """Build one dataset config on top of the role defaults."""
    merged = _deep_merge(DEFAULT_DATASETS[role], data or {})
    if not merged.get("source"):
        msg = f"Config must specify 'datasets.{role}.source'"
        raise ValueError(msg)
    return DatasetConfig(**merged)


def config_from_dict(data: dict[str, Any]) -> LookupConfig:
    """
    Build a LookupConfig from an already merged dictionary.

    Args:
        data: Parsed configuration mapping.

    Returns:
        Fully validated LookupConfig instance.
    """
    project = data.get("project")
    if not project:
        msg = "Config must specify 'project' name"
        raise ValueError(msg)

    datasets = data.get("datasets") or {}
    registry = _build_dataset("registry", datasets.get("registry"))
    incidents = _build_dataset("incidents", datasets.get("incidents"))

    retrieval_data = data.get("retrieval") or {}
    retrieval = RetrievalConfig(
        data_root=Path(retrieval_data.get("data_root", "./data")),
        timeout_seconds=retrieval_data.get("timeout_seconds", 10.0),
        min_payload_chars=retrieval_data.get("min_payload_chars", 10),
        chunk_size=retrieval_data.get("chunk_size", 64 * 1024),
    )

    parsing = ParsingConfig(**(data.get("parsing") or {}))
    query = QueryConfig(**(data.get("query") or {}))
    logging = LoggingConfig(**(data.get("logging") or {}))

    return LookupConfig(
        project=project,
        registry=registry,
        incidents=incidents,
        retrieval=retrieval,
        parsing=parsing,
        query=query,
        logging=logging,
    )


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> LookupConfig:
    """
    Load lookup configuration from YAML file(s).

    Minimal config requires only:
        - project: str
        - datasets.registry.source: URL or path
        - datasets.incidents.source: URL or path

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated LookupConfig instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        is_self = potential_base.resolve() == config_path.resolve()
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and not is_self
            else {}
        )

    main_data = load_yaml(config_path)
    merged = _deep_merge(base_data, main_data)

    return config_from_dict(merged)
