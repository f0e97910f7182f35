import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click
import typer
from rich.console import Console
from rich.table import Table

from cblayout.config import ParserConfig, load_config
from cblayout.copybook.errors import CopybookError
from cblayout.copybook.model import ParseResult
from cblayout.copybook.parser import parse_file
from cblayout.export import flatten_positions, positions_to_arrow, positions_to_csv, write_json
from cblayout.log import configure_logging

PROG_NAME = "copybook-parser"
SUPPORTED_FORMATS = {"json": ".json", "csv": ".csv", "arrow": ".arrow"}

app = typer.Typer(
    help="Parse COBOL copybooks into fixed-length record layouts.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()
err_console = Console(stderr=True)


def _package_version() -> str:
    try:
        return version("cblayout")
    except PackageNotFoundError:
        return "unknown"


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{PROG_NAME} {_package_version()} (cblayout, fixed-length record layouts)")
        raise typer.Exit()


def _summary_table(result: ParseResult) -> Table:
    table = Table(title=f"Record layouts in {result.source_name}")
    table.add_column("Layout")
    table.add_column("Redefines")
    table.add_column("Start", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Type values")
    for layout in result.record_layouts:
        table.add_row(
            layout.name,
            layout.redefines or "",
            str(layout.start),
            str(layout.length),
            ", ".join(layout.record_type_values),
        )
    return table


@app.command()
def parse(
    input: Path = typer.Argument(..., help="Copybook file to parse."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output path (default: input with the format's extension)."
    ),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json | csv | arrow."),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML/JSON file with parser options."
    ),
    fixed_format: bool = typer.Option(
        False,
        "--fixed-format",
        help="Treat columns 1-6 as sequence area and ignore text after column 72.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output."),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", "-p", help="Pretty print JSON."),
    show_version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version information and exit.",
    ),
) -> None:
    """Resolve byte positions for every field of a copybook and write them out."""
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(
            f"Unsupported format '{format}'. Choose from {sorted(SUPPORTED_FORMATS)}."
        )
    configure_logging(verbose, console=err_console)

    cfg = load_config(config) if config else ParserConfig()
    if fixed_format:
        cfg.fixed_format = True
    target = output or input.with_suffix(SUPPORTED_FORMATS[fmt])

    if verbose:
        console.print(f"[bold]Input file:[/] {input}")
        console.print(f"[bold]Output file:[/] {target}")
        console.print("Excluding 88-level condition names from the layout.")

    result = parse_file(input, config=cfg)

    if fmt == "json":
        write_json(result, target, pretty=pretty)
    elif fmt == "csv":
        positions_to_csv(flatten_positions(result), target)
    else:
        positions_to_arrow(flatten_positions(result), target)

    if verbose:
        console.print(f"[bold green]Parsed[/] {result.source_name}")
        console.print(f"Total record length: {result.total_length} bytes")
        console.print(f"Number of data fields: {result.field_count()}")
        console.print(_summary_table(result))
        console.print(f"[bold green]Wrote {fmt} output[/] to {target}")
    else:
        console.print(f"Successfully parsed {input} -> {target}")


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and map every failure to exit code 1."""
    try:
        code = app(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except click.ClickException as exc:
        err_console.print(f"Error: {exc.format_message()}", markup=False, highlight=False)
        return 1
    except click.exceptions.Abort:
        return 1
    except (CopybookError, OSError) as exc:
        err_console.print(f"Error: {exc}", markup=False, highlight=False)
        return 1
    return code if isinstance(code, int) else 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
