"""Result and metadata models for polydb.

Pydantic models for normalized result sets and the metadata shapes the
workbench lists (tables, Redis keys).
"""

from __future__ import annotations

from pydantic import BaseModel

from polydb.core.values import TextValue, Value, row_to_json


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_tag: str


class ResultSet(BaseModel):
    """Normalized result of a query or script.

    Each row maps column name to ``Value`` in driver column order.
    """

    columns: list[ColumnMeta]
    rows: list[dict[str, Value]]
    row_count: int
    status_message: str = ""

    def to_json(self) -> list[dict[str, object]]:
        return [row_to_json(row) for row in self.rows]

    @classmethod
    def from_text_rows(
        cls, names: list[str], rows: list[tuple[str, ...]], status_message: str = ""
    ) -> ResultSet:
        """Build a text-only result set for listings."""
        return cls(
            columns=[ColumnMeta(name=n, type_tag="TEXT") for n in names],
            rows=[
                {n: TextValue(value=v) for n, v in zip(names, row, strict=True)}
                for row in rows
            ],
            row_count=len(rows),
            status_message=status_message or f"SELECT {len(rows)}",
        )


class TableInfo(BaseModel):
    """Table listing entry.

    Sizes and counts are ``int`` inside the int64 range and decimal ``str``
    above it, never wrapped.
    """

    name: str
    data_size: int | str | None = None
    index_size: int | str | None = None
    total_size: int | str | None = None
    row_count: int | str | None = None
    comment: str | None = None


class RedisKeyInfo(BaseModel):
    key: str
    key_type: str
    # -1 = no expiry, -2 = key does not exist
    ttl: int
    value: str
    length: int | None = None
