"""Summary table printed before an upload is requested."""

from typing import Any, Mapping, Optional

from rich.console import Console
from rich.table import Table

from emerge_upload import __version__


def build_summary_table(payload: Mapping[str, Any]) -> Table:
    table = Table(title=f"Summary for Emerge {__version__}")
    table.add_column("Key", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in payload.items():
        table.add_row(key, str(value))
    return table


def print_summary(payload: Mapping[str, Any], console: Optional[Console] = None) -> None:
    (console or Console()).print(build_summary_table(payload))
