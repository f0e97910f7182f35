"""Quick viewer for a copybook's resolved field positions.

Shows one row per elementary position (OCCURS expanded) in a Rich table.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.console import Console
from rich.table import Table

from cblayout.config import ParserConfig
from cblayout.copybook.parser import parse_file
from cblayout.export import flatten_positions


def main() -> None:
    parser = argparse.ArgumentParser(description="View copybook field positions.")
    parser.add_argument("copybook", type=Path, help="Copybook file.")
    parser.add_argument("--record", help="Only show this record layout.")
    parser.add_argument("--fixed-format", action="store_true", help="Fixed-format source.")
    args = parser.parse_args()

    console = Console()
    result = parse_file(args.copybook, config=ParserConfig(fixed_format=args.fixed_format))
    console.print(
        f"[bold]{result.source_name}[/] - total length {result.total_length} bytes, "
        f"{len(result.record_layouts)} layout(s)"
    )

    table = Table(title="Field Positions")
    for column, justify in (
        ("Record", "left"),
        ("Path", "left"),
        ("Start", "right"),
        ("End", "right"),
        ("Len", "right"),
        ("Picture", "left"),
        ("Usage", "left"),
        ("Occ", "right"),
    ):
        table.add_column(column, justify=justify)
    for row in flatten_positions(result):
        if args.record and row["record"] != args.record.upper():
            continue
        table.add_row(
            row["record"],
            row["path"],
            str(row["start"]),
            str(row["end"]),
            str(row["length"]),
            row["picture"] or "",
            row["usage"] or "",
            "" if row["occurrence"] is None else str(row["occurrence"]),
        )
    console.print(table)


if __name__ == "__main__":
    main()
