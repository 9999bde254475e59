"""
Column name normalization and resolution.

Exports are edited by hand, so header names drift ("Serie", "SERIE ",
"N° de serie"). Resolution goes from strict to loose: exact match, then
configured aliases, then the first header containing a fuzzy fragment.
"""

from collections.abc import Iterable, Sequence

from serielookup.errors import MissingColumnError
from serielookup.utils.logging import get_logger

log = get_logger(__name__)

# Known spellings per canonical column, used when a dataset config gives no aliases
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "serie": ("serial", "numero de serie", "número de serie", "n° serie", "nro serie"),
    "serie reportada": ("serie_reportada", "serial reportado", "serie reportado"),
    "nivel 2": ("nivel2", "nivel_2", "n2"),
}

# Fragments for the last-resort "contains" match on join columns
FUZZY_KEY_FRAGMENTS: tuple[str, ...] = ("serie", "serial")


def normalize_header(name: str) -> str:
    """Trim, lower-case and collapse internal whitespace of a header name."""
    return " ".join(name.strip().lower().split())


def normalize_headers(headers: Iterable[str]) -> list[str]:
    """Normalize a header row."""
    return [normalize_header(name) for name in headers]


def resolve_column(
    headers: Sequence[str],
    expected: str,
    *,
    aliases: Iterable[str] | None = None,
    fuzzy: Iterable[str] = (),
    dataset: str | None = None,
) -> str:
    """
    Find the header that holds an expected column.

    Resolution order:
        1. exact match on the normalized name
        2. exact match on an alias, in the order given
        3. first header (in header order) containing a fuzzy fragment

    Args:
        headers: Normalized header names.
        expected: Canonical column name.
        aliases: Alternative names. Defaults to COLUMN_ALIASES for ``expected``.
        fuzzy: Fragments for the contains match. Empty disables step 3.
        dataset: Dataset name for error messages.

    Returns:
        The matching header, exactly as it appears in ``headers``.

    Raises:
        MissingColumnError: If no header matches.
    """
    wanted = normalize_header(expected)
    normalized = {normalize_header(h): h for h in reversed(headers)}

    if wanted in normalized:
        return normalized[wanted]

    if aliases is None:
        aliases = COLUMN_ALIASES.get(wanted, ())
    for alias in aliases:
        key = normalize_header(alias)
        if key in normalized:
            log.debug("Resolved column by alias", expected=wanted, header=normalized[key])
            return normalized[key]

    fragments = [normalize_header(f) for f in fuzzy if f.strip()]
    for header in headers:
        if any(fragment in normalize_header(header) for fragment in fragments):
            log.info(
                "Resolved column by fuzzy match",
                expected=wanted,
                header=header,
                dataset=dataset,
            )
            return header

    raise MissingColumnError(wanted, dataset, list(headers))

