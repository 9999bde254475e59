"""
Console reporter for load reports and lookup results.

Formats output using Rich for clear, colored tables.
"""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from serielookup.lookup.aggregate import LookupResult
from serielookup.lookup.service import DatasetLoadResult, LoadReport, LoadStatus

MISSING_VALUE = "N/A"


class ConsoleReporter:
    """Formats and displays load and lookup results to the console."""

    def __init__(self, console: Console) -> None:
        """
        Initialize console reporter.

        Args:
            console: Rich Console instance for output.
        """
        self.console = console

    def print_load_report(self, report: LoadReport) -> None:
        """
        Print per-dataset load results as a table, then a summary line.

        Args:
            report: Report returned by LookupService.load().
        """
        table = Table(title="Dataset Load Results", show_header=True)
        table.add_column("Dataset", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Serials", justify="right")
        table.add_column("Rows", justify="right")
        table.add_column("Discarded", justify="right")
        table.add_column("Delimiter", justify="center")
        table.add_column("Details", style="dim")

        for result in report.results.values():
            table.add_row(
                escape(result.name),
                self._format_status(result),
                str(result.unique_keys) if result.ok else "-",
                str(result.rows_indexed) if result.ok else "-",
                str(result.rows_discarded) if result.ok else "-",
                repr(result.delimiter) if result.delimiter else "-",
                self._format_details(result),
            )

        self.console.print(table)
        self._print_summary(report)

    def _format_status(self, result: DatasetLoadResult) -> str:
        if result.ok:
            return "[green]Loaded[/green]"
        return "[red]Failed[/red]"

    def _format_details(self, result: DatasetLoadResult) -> str:
        if not result.ok:
            return escape(result.error_message or "Unknown error")
        if result.rows_recovered:
            return f"OK ({result.rows_recovered} rows recovered)"
        return "OK"

    def _print_summary(self, report: LoadReport) -> None:
        status = report.status
        self.console.print()
        if status is LoadStatus.COMPLETE:
            self.console.print("[green]All datasets loaded. Enter a serial to search.[/green]")
        elif status is LoadStatus.PARTIAL:
            failed = ", ".join(
                escape(r.name) for r in report.results.values() if not r.ok
            )
            self.console.print(
                f"[yellow]Partial load: {failed} unavailable. "
                "Results will be incomplete.[/yellow]"
            )
        else:
            self.console.print(
                "[red]No data loaded. Check the sources and headers, then retry the load.[/red]"
            )

    def print_result(
        self,
        raw_serial: str,
        result: LookupResult,
        display_columns: Sequence[str],
    ) -> None:
        """
        Print the matched record and its incident breakdown.

        Args:
            raw_serial: Serial as typed by the user.
            result: Lookup result.
            display_columns: Registry columns to show for a match.
        """
        if result.record is None:
            self.console.print(
                f"[yellow]Serial {escape(repr(raw_serial))} not found in the registry. "
                "Check the serial and try another.[/yellow]"
            )
            return

        details = Table(title=f"Serial {result.key}", show_header=False)
        details.add_column("Field", style="cyan")
        details.add_column("Value")
        for column in display_columns:
            value = result.record.get(column) or MISSING_VALUE
            details.add_row(escape(column.title()), escape(value))
        details.add_row("[bold]Incidents[/bold]", f"[bold]{result.total_count}[/bold]")
        self.console.print(details)

        if not result.incidents_available:
            self.console.print(
                "[yellow]Incident log is not loaded; incident history unavailable.[/yellow]"
            )
            return

        if not result.counts_by_class:
            self.console.print("[dim]No incident history for this asset.[/dim]")
            return

        counts = Table(title="Incidents by Classification", show_header=True)
        counts.add_column("Classification", style="cyan")
        counts.add_column("Count", justify="right", style="green")
        for label, count in result.counts_by_class.items():
            counts.add_row(escape(label), str(count))
        self.console.print(counts)
