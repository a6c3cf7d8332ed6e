"""JSON formatter: one object per row, cells as ``Value.to_json()``."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from polydb.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from polydb.core.models import ResultSet


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: ResultSet) -> Iterator[str]:
        rows = result.to_json()
        if self.compact:
            yield json.dumps(rows, ensure_ascii=False, separators=(",", ":"))
        else:
            yield json.dumps(rows, ensure_ascii=False, indent=2)


registry.register("json", JSONFormatter)
