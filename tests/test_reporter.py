"""Tests for console output of load reports and lookup results."""

import io

import pytest
from rich.console import Console

from serielookup.errors import MissingColumnError
from serielookup.lookup import (
    UNCLASSIFIED,
    ConsoleReporter,
    DatasetLoadResult,
    LoadReport,
    LookupResult,
)

DISPLAY_COLUMNS = ["serie", "tipo", "usuario actual"]


@pytest.fixture
def output() -> io.StringIO:
    """Buffer the reporter writes to."""
    return io.StringIO()


@pytest.fixture
def reporter(output: io.StringIO) -> ConsoleReporter:
    """Reporter on a wide, colorless console."""
    return ConsoleReporter(Console(file=output, width=160, color_system=None))


class TestPrintResult:
    """Tests for print_result."""

    def test_record_and_counts(self, reporter: ConsoleReporter, output: io.StringIO) -> None:
        """Test that record fields, missing values and counts are shown."""
        result = LookupResult(
            key="ABC123",
            record={"serie": "ABC-123", "tipo": "Notebook", "usuario actual": ""},
            incidents=({"nivel 2": "Hardware"}, {"nivel 2": ""}),
            counts_by_class={"HARDWARE": 1, UNCLASSIFIED: 1},
        )
        reporter.print_result("abc 123", result, DISPLAY_COLUMNS)

        text = output.getvalue()
        assert "Notebook" in text
        assert "N/A" in text
        assert "HARDWARE" in text
        assert UNCLASSIFIED in text

    def test_values_with_brackets_printed_literally(
        self, reporter: ConsoleReporter, output: io.StringIO
    ) -> None:
        """Test that cell values and labels that look like markup are not interpreted."""
        result = LookupResult(
            key="DOCK00001",
            record={"serie": "DOCK-00001", "tipo": "Dock [/usb]", "usuario actual": "[bold]x"},
            incidents=({"nivel 2": "Red [/lan]"},),
            counts_by_class={"RED [/LAN]": 1},
        )
        reporter.print_result("DOCK-00001", result, DISPLAY_COLUMNS)

        text = output.getvalue()
        assert "Dock [/usb]" in text
        assert "[bold]x" in text
        assert "RED [/LAN]" in text

    def test_not_found_echoes_input_literally(
        self, reporter: ConsoleReporter, output: io.StringIO
    ) -> None:
        """Test that a typed serial containing brackets is echoed as typed."""
        result = LookupResult(key="ZZBZZ", record=None)
        reporter.print_result("zz[/b]zz", result, DISPLAY_COLUMNS)

        assert "zz[/b]zz" in output.getvalue()
        assert "not found" in output.getvalue()

    def test_incidents_unavailable(
        self, reporter: ConsoleReporter, output: io.StringIO
    ) -> None:
        """Test the note shown when the incident log did not load."""
        result = LookupResult(
            key="A1",
            record={"serie": "A1"},
            incidents_available=False,
        )
        reporter.print_result("A1", result, DISPLAY_COLUMNS)

        assert "incident history unavailable" in output.getvalue()


class TestPrintLoadReport:
    """Tests for print_load_report."""

    def test_failure_details_printed_literally(
        self, reporter: ConsoleReporter, output: io.StringIO
    ) -> None:
        """Test that error text with brackets does not break the table."""
        error = MissingColumnError("serie", "Hoja [1]", ["[/tipo]", "modelo"])
        report = LoadReport(
            results={
                "registry": DatasetLoadResult(
                    role="registry", name="Hoja [1]", ok=False, error=error
                ),
                "incidents": DatasetLoadResult(
                    role="incidents", name="BBDD PM 4", ok=True, unique_keys=2, delimiter=";"
                ),
            }
        )
        reporter.print_load_report(report)

        text = output.getvalue()
        assert "Hoja [1]" in text
        assert "[/tipo]" in text
        assert "Partial load" in text
