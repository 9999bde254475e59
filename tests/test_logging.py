"""Tests for logging configuration."""

import io
import json
import sys

import pytest

from serielookup.utils.logging import configure_logging, get_logger, log_context


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_explicit_stream(self) -> None:
        """Test that log lines go to the given stream."""
        stream = io.StringIO()
        configure_logging(level="INFO", stream=stream)

        get_logger("tests").info("Dataset loaded", unique_keys=3)

        assert "Dataset loaded" in stream.getvalue()
        assert "unique_keys=3" in stream.getvalue()

    def test_level_filters(self) -> None:
        """Test that messages below the level are dropped."""
        stream = io.StringIO()
        configure_logging(level="WARNING", stream=stream)

        log = get_logger("tests")
        log.info("hidden")
        log.warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()

    def test_json_output_with_context(self) -> None:
        """Test JSON lines carrying bound context."""
        stream = io.StringIO()
        configure_logging(level="INFO", json_output=True, stream=stream)

        with log_context(dataset="Hoja 1"):
            get_logger("tests").info("Indexing rows")

        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["event"] == "Indexing rows"
        assert entry["dataset"] == "Hoja 1"

    def test_follows_replaced_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that logging survives the stderr it was configured under being closed."""
        first = io.StringIO()
        monkeypatch.setattr(sys, "stderr", first)
        configure_logging(level="INFO")
        first.close()

        second = io.StringIO()
        monkeypatch.setattr(sys, "stderr", second)
        get_logger("tests").warning("Still logging")

        assert "Still logging" in second.getvalue()
