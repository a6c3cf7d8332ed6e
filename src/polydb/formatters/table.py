"""Rich table formatter."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from polydb.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from polydb.core.models import ResultSet

_NO_RESULTS = "No results"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40, no_header: bool = False) -> None:
        self.width = width
        self.no_header = no_header

    def format(self, result: ResultSet) -> Iterator[str]:
        if not result.rows:
            yield result.status_message or _NO_RESULTS
            return

        names = [col.name for col in result.columns]
        table = Table(show_edge=True, pad_edge=True, show_header=not self.no_header)
        for name in names:
            table.add_column(escape(name), no_wrap=True)

        for row in result.rows:
            # Redis replies span several lines; keep them intact.
            table.add_row(
                *(
                    escape(
                        "\n".join(
                            _truncate(line, self.width)
                            for line in row[name].display().split("\n")
                        )
                    )
                    for name in names
                )
            )

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
