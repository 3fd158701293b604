"""Plain-text table rendering for CLI output."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console


def print_table(
    data: Sequence[dict[str, Any]],
    columns: list[str],
    column_widths: dict[str, int] | None = None,
    *,
    console: Console | None = None,
) -> None:
    """Print a fixed-width table.

    Args:
        data: Rows keyed by column name.
        columns: Column keys, in display order.
        column_widths: Optional mapping of column name to width.
        console: Console to print to; defaults to stdout.
    """
    if not data:
        return
    console = console or Console()

    widths = {}
    for col in columns:
        if column_widths and col in column_widths:
            widths[col] = column_widths[col]
        else:
            longest = max((len(str(row.get(col, ""))) for row in data), default=0)
            widths[col] = max(len(col), longest)

    format_str = " | ".join(f"{{:<{widths[col]}}}" for col in columns)
    header = format_str.format(*(col.upper() for col in columns))
    separator = "-" * len(header)

    console.print(separator, markup=False, highlight=False)
    console.print(header, markup=False, highlight=False)
    console.print(separator, markup=False, highlight=False)
    for row in data:
        line = format_str.format(*(str(row.get(col, "")) for col in columns))
        console.print(line.rstrip(), markup=False, highlight=False)
    console.print(separator, markup=False, highlight=False)
