"""CSV formatter (RFC 4180)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from polydb.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from polydb.core.models import ResultSet


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    csv.writer(buf).writerow(values)
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: ResultSet) -> Iterator[str]:
        names = [col.name for col in result.columns]
        if not self.no_header:
            yield _write_row(names)

        for row in result.rows:
            yield _write_row([row[name].display() for name in names])


registry.register("csv", CSVFormatter)
