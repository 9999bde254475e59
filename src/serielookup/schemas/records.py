"""
Pandera schema for indexed dataset rows.

Every row that reaches an index carries its sanitized join key and its
position in the source file. Passthrough columns are free-form text and are
not constrained.
"""

import pandera.pandas as pa
from pandera.typing import Series

KEY_FIELD = "__key__"
ROW_FIELD = "__row__"


class IndexedRecordSchema(pa.DataFrameModel):
    """
    Schema for rows about to be indexed.

    The key column must hold a non-empty sanitized serial, so rows that
    cannot be joined are rejected before they pollute an index.
    """

    key: Series[str] = pa.Field(
        alias=KEY_FIELD,
        str_matches=r"^[A-Z0-9]+$",
        description="Sanitized serial key (upper-case alphanumerics)",
    )
    row: Series[int] = pa.Field(
        alias=ROW_FIELD,
        ge=0,
        unique=True,
        description="Zero-based data row position in the source file",
    )

    class Config:
        """Schema configuration."""

        name = "IndexedRecordSchema"
        strict = False
        coerce = True
