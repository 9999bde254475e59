"""
Typed configuration models using Pydantic.

All configuration is defined here with explicit typing and validation.
Dataset names, column names and limits never appear hardcoded in
processing code.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from serielookup.normalization.columns import FUZZY_KEY_FRAGMENTS


class DatasetConfig(BaseModel):
    """Configuration for one source dataset."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Human-readable dataset name used in messages")
    source: str = Field(description="http(s) URL or path relative to data_root")
    key_column: str = Field(description="Header of the serial column (join key)")
    key_aliases: list[str] | None = Field(
        default=None,
        description="Alternative header names for the serial column",
    )
    fuzzy_key_fragments: list[str] = Field(
        default_factory=lambda: list(FUZZY_KEY_FRAGMENTS),
        description="Fragments for a last-resort 'contains' header match",
    )
    class_column: str | None = Field(
        default=None,
        description="Classification header used to group incidents",
    )

    @field_validator("source", "key_column")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank strings."""
        if not v.strip():
            msg = "must not be blank"
            raise ValueError(msg)
        return v.strip()

    @property
    def is_remote(self) -> bool:
        """True when the source is fetched over HTTP."""
        return self.source.lower().startswith(("http://", "https://"))


class RetrievalConfig(BaseModel):
    """Retrieval limits."""

    model_config = ConfigDict(frozen=True)

    data_root: Path = Field(
        default=Path("./data"), description="Root directory for local sources"
    )
    timeout_seconds: float = Field(
        default=10.0, gt=0, le=600, description="Per-dataset retrieval deadline"
    )
    min_payload_chars: int = Field(
        default=10,
        ge=0,
        description="Payloads shorter than this are treated as empty",
    )
    chunk_size: int = Field(default=8192, ge=512, description="Download chunk size in bytes")


class ParsingConfig(BaseModel):
    """CSV parsing options."""

    model_config = ConfigDict(frozen=True)

    delimiter: str | None = Field(
        default=None, description="Force a delimiter; detected from the header if unset"
    )
    recover_short_rows: bool = Field(
        default=False, description="Stitch short rows with following lines"
    )
    retry_other_delimiter: bool = Field(
        default=True,
        description="Retry with the other delimiter when the detected one fails",
    )

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str | None) -> str | None:
        """Ensure the delimiter is a single character."""
        if v is not None and len(v) != 1:
            msg = f"delimiter must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v


class QueryConfig(BaseModel):
    """Query validation and presentation."""

    model_config = ConfigDict(frozen=True)

    min_length: int = Field(default=5, ge=1, description="Minimum serial length")
    unclassified_label: str = Field(
        default="UNCLASSIFIED", description="Label for blank classifications"
    )
    ready_timeout_seconds: float = Field(
        default=30.0,
        ge=0,
        description="How long a query waits for a background load",
    )
    display_columns: list[str] = Field(
        default_factory=lambda: ["serie", "tipo", "modelo", "proyecto", "usuario actual"],
        description="Registry columns shown for a match",
    )


class LoggingConfig(BaseModel):
    """Logging output."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="WARNING")
    json_output: bool = Field(default=False)


class LookupConfig(BaseModel):
    """Complete lookup configuration."""

    model_config = ConfigDict(frozen=True)

    project: str = Field(description="Project identifier")
    registry: DatasetConfig
    incidents: DatasetConfig
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("incidents")
    @classmethod
    def validate_incidents(cls, v: DatasetConfig) -> DatasetConfig:
        """The incident log needs a classification column."""
        if not v.class_column:
            msg = "incidents dataset must set 'class_column'"
            raise ValueError(msg)
        return v

    @property
    def datasets(self) -> dict[str, DatasetConfig]:
        """Datasets by role."""
        return {"registry": self.registry, "incidents": self.incidents}

    def resolve_source(self, dataset: DatasetConfig) -> str:
        """Return the URL or absolute path for a dataset source."""
        if dataset.is_remote:
            return dataset.source
        path = Path(dataset.source)
        if path.is_absolute():
            return str(path)
        return str(self.retrieval.data_root / path)
