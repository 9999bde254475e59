"""Command-line interface for the serial lookup tool."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from serielookup.config.settings import LookupConfig
    from serielookup.lookup.service import LookupService

app = typer.Typer(
    name="serielookup",
    help="Look up assets by serial number across the registry and incident log.",
    no_args_is_help=True,
)

console = Console()

QUIT_WORDS = {"q", "quit", "exit"}

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]


def _load_config(config: Path) -> "LookupConfig":
    """Load configuration and set up logging from it."""
    from serielookup.config.loader import load_config
    from serielookup.utils.logging import configure_logging

    try:
        lookup_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(
        level=lookup_config.logging.level,
        json_output=lookup_config.logging.json_output,
    )
    return lookup_config


def _load_service(lookup_config: "LookupConfig") -> "LookupService":
    """Load both datasets and print the load report."""
    from serielookup.lookup import ConsoleReporter, LoadStatus, LookupService

    service = LookupService(lookup_config)
    with console.status("Loading registry and incident log..."):
        report = service.load()

    ConsoleReporter(console).print_load_report(report)
    if report.status is LoadStatus.FAILED:
        raise typer.Exit(code=1)
    return service


def _search_once(service: "LookupService", serial: str) -> bool:
    """Run one search and print it. Returns False when it failed."""
    from serielookup.errors import SerieLookupError, ValidationError
    from serielookup.lookup import ConsoleReporter

    try:
        result = service.search(serial)
    except ValidationError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        return False
    except SerieLookupError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return False

    ConsoleReporter(console).print_result(
        serial.strip(), result, service.config.query.display_columns
    )
    return True


@app.command()
def load(config: ConfigOption) -> None:
    """Load both datasets and report what was indexed."""
    lookup_config = _load_config(config)
    console.print(f"[blue]Project: {escape(lookup_config.project)}[/blue]")
    _load_service(lookup_config)


@app.command()
def search(
    serial: Annotated[str, typer.Argument(help="Serial number to look up.")],
    config: ConfigOption,
) -> None:
    """Look up one serial and show its record and incident breakdown."""
    from serielookup.errors import ValidationError

    lookup_config = _load_config(config)

    # Reject short input before touching any dataset
    min_length = lookup_config.query.min_length
    if len(serial.strip()) < min_length:
        error = ValidationError(serial, min_length)
        console.print(f"[yellow]{escape(str(error))}[/yellow]")
        raise typer.Exit(code=1)

    service = _load_service(lookup_config)
    console.print()
    if not _search_once(service, serial):
        raise typer.Exit(code=1)


@app.command()
def shell(config: ConfigOption) -> None:
    """Load once, then answer serial lookups until an empty line or 'quit'."""
    lookup_config = _load_config(config)
    service = _load_service(lookup_config)

    while True:
        console.print()
        serial = typer.prompt("Serial", default="", show_default=False)
        if not serial.strip() or serial.strip().lower() in QUIT_WORDS:
            break
        _search_once(service, serial)


@app.command()
def version() -> None:
    """Show version information."""
    from serielookup import __version__

    console.print(f"serielookup version {__version__}")


if __name__ == "__main__":
    app()
