"""Tests for serial key sanitization."""

import pytest

from serielookup.normalization.keys import sanitize_key


class TestSanitizeKey:
    """Tests for sanitize_key."""

    @pytest.mark.parametrize(
        "raw",
        ["ABC-123", "abc 123", " abc123 ", "a.b.c/1_2_3", "Abc\t-\t123", "ABC123"],
    )
    def test_formatting_variants_collapse(self, raw: str) -> None:
        """Test that case, spacing and punctuation do not change the key."""
        assert sanitize_key(raw) == "ABC123"

    @pytest.mark.parametrize("raw", [None, 123, 4.5, ["ABC"], b"ABC123"])
    def test_non_string_yields_empty(self, raw: object) -> None:
        """Test that non-string input never raises."""
        assert sanitize_key(raw) == ""

    def test_only_punctuation_is_empty(self) -> None:
        """Test that a value without alphanumerics sanitizes to empty."""
        assert sanitize_key(" -- / -- ") == ""

    def test_non_ascii_letters_removed(self) -> None:
        """Test that only ASCII alphanumerics survive."""
        assert sanitize_key("Nº123-ñ") == "N123"

    @pytest.mark.parametrize("raw", ["abc-123", "  x y z ", "", "ÁÉÍ-9", "##"])
    def test_idempotent(self, raw: str) -> None:
        """Test sanitize(sanitize(x)) == sanitize(x)."""
        once = sanitize_key(raw)
        assert sanitize_key(once) == once
