"""Tests for configuration system."""

import os
from pathlib import Path
from typing import Any

import pytest

from serielookup.config import (
    DatasetConfig,
    ParsingConfig,
    QueryConfig,
    config_from_dict,
    load_config,
)


class TestDatasetConfig:
    """Tests for DatasetConfig."""

    def test_valid_config(self) -> None:
        """Test creating a dataset config."""
        config = DatasetConfig(name="Hoja 1", source="registry.csv", key_column="serie")
        assert config.name == "Hoja 1"
        assert config.fuzzy_key_fragments == ["serie", "serial"]
        assert config.class_column is None
        assert not config.is_remote

    def test_remote_source(self) -> None:
        """Test that http(s) sources are detected as remote."""
        config = DatasetConfig(
            name="Hoja 1",
            source="https://example.com/pub?output=csv",
            key_column="serie",
        )
        assert config.is_remote

    def test_blank_key_column(self) -> None:
        """Test that a blank key column is rejected."""
        with pytest.raises(ValueError, match="must not be blank"):
            DatasetConfig(name="Hoja 1", source="registry.csv", key_column="  ")


class TestParsingConfig:
    """Tests for ParsingConfig."""

    def test_defaults(self) -> None:
        """Test default parsing options."""
        config = ParsingConfig()
        assert config.delimiter is None
        assert config.recover_short_rows is False
        assert config.retry_other_delimiter is True

    def test_invalid_delimiter(self) -> None:
        """Test that multi-character delimiters are rejected."""
        with pytest.raises(ValueError, match="single character"):
            ParsingConfig(delimiter=";;")


class TestQueryConfig:
    """Tests for QueryConfig."""

    def test_defaults(self) -> None:
        """Test query defaults match the observed tool behaviour."""
        config = QueryConfig()
        assert config.min_length == 5
        assert config.unclassified_label == "UNCLASSIFIED"
        assert "usuario actual" in config.display_columns


class TestConfigFromDict:
    """Tests for building LookupConfig from a mapping."""

    def test_role_defaults_applied(self, base_config_dict: dict[str, Any]) -> None:
        """Test that column defaults are filled in per dataset role."""
        config = config_from_dict(base_config_dict)
        assert config.registry.key_column == "serie"
        assert config.incidents.key_column == "serie reportada"
        assert config.incidents.class_column == "nivel 2"

    def test_missing_project(self, base_config_dict: dict[str, Any]) -> None:
        """Test that a missing project raises."""
        del base_config_dict["project"]
        with pytest.raises(ValueError, match="project"):
            config_from_dict(base_config_dict)

    def test_missing_source(self, base_config_dict: dict[str, Any]) -> None:
        """Test that a dataset without a source raises."""
        del base_config_dict["datasets"]["incidents"]["source"]
        with pytest.raises(ValueError, match=r"datasets\.incidents\.source"):
            config_from_dict(base_config_dict)

    def test_incidents_need_class_column(self, base_config_dict: dict[str, Any]) -> None:
        """Test that blanking the classification column is rejected."""
        base_config_dict["datasets"]["incidents"]["class_column"] = ""
        with pytest.raises(ValueError, match="class_column"):
            config_from_dict(base_config_dict)

    def test_resolve_local_source(
        self, base_config_dict: dict[str, Any], tmp_path: Path
    ) -> None:
        """Test that relative sources resolve against data_root."""
        config = config_from_dict(base_config_dict)
        assert config.resolve_source(config.registry) == str(tmp_path / "registry.csv")

    def test_resolve_remote_source(self, base_config_dict: dict[str, Any]) -> None:
        """Test that URLs are returned unchanged."""
        url = "https://example.com/sheet?output=csv"
        base_config_dict["datasets"]["registry"]["source"] = url
        config = config_from_dict(base_config_dict)
        assert config.resolve_source(config.registry) == url


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_minimal_yaml(self, tmp_path: Path) -> None:
        """Test loading a minimal config file."""
        config_path = tmp_path / "project.yaml"
        config_path.write_text(
            "project: equipos\n"
            "datasets:\n"
            "  registry:\n"
            "    source: registry.csv\n"
            "  incidents:\n"
            "    source: incidents.csv\n",
            encoding="utf-8",
        )

        config = load_config(config_path)

        assert config.project == "equipos"
        assert config.retrieval.timeout_seconds == 10.0
        assert config.query.min_length == 5

    def test_base_yaml_inheritance(self, tmp_path: Path) -> None:
        """Test that base.yaml in the same directory is merged underneath."""
        (tmp_path / "base.yaml").write_text(
            "query:\n  min_length: 7\nretrieval:\n  timeout_seconds: 3\n",
            encoding="utf-8",
        )
        config_path = tmp_path / "project.yaml"
        config_path.write_text(
            "project: equipos\n"
            "retrieval:\n"
            "  timeout_seconds: 4\n"
            "datasets:\n"
            "  registry: {source: a.csv}\n"
            "  incidents: {source: b.csv}\n",
            encoding="utf-8",
        )

        config = load_config(config_path)

        assert config.query.min_length == 7
        assert config.retrieval.timeout_seconds == 4.0

    def test_env_var_interpolation(self, tmp_path: Path) -> None:
        """Test ${VAR} and ${VAR:default} expansion."""
        os.environ["SERIELOOKUP_TEST_SOURCE"] = "https://example.com/registry.csv"
        try:
            config_path = tmp_path / "project.yaml"
            config_path.write_text(
                "project: equipos\n"
                "datasets:\n"
                "  registry:\n"
                "    source: ${SERIELOOKUP_TEST_SOURCE}\n"
                "  incidents:\n"
                "    source: ${SERIELOOKUP_TEST_MISSING:incidents.csv}\n",
                encoding="utf-8",
            )
            config = load_config(config_path)
        finally:
            del os.environ["SERIELOOKUP_TEST_SOURCE"]

        assert config.registry.source == "https://example.com/registry.csv"
        assert config.incidents.source == "incidents.csv"

    def test_shipped_config_loads(self, project_root: Path) -> None:
        """Test that the example project config is valid."""
        config = load_config(project_root / "configs" / "equipos.yaml")
        assert config.registry.name == "Hoja 1"
        assert config.incidents.class_column == "nivel 2"
