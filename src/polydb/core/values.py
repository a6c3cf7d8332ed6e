"""Uniform value model for normalized cell data.

Every native column value from every engine is expressed as exactly one
``Value`` variant. The variants are pydantic models discriminated by
``kind`` so a ``ResultSet`` serializes to plain JSON without custom
encoders.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Preview length for columns whose type is known to be binary.
BINARY_PREVIEW_BYTES = 32
# Shorter preview for bytes found behind an unrecognized type tag.
GENERIC_PREVIEW_BYTES = 16

NIL_MARKER = "(nil)"
EMPTY_ARRAY_MARKER = "(empty array)"


class Engine(StrEnum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    REDIS = "redis"


class TypeClass(StrEnum):
    """Conversion family a column type tag belongs to."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    BIT = "bit"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    YEAR = "year"
    JSON = "json"
    BINARY = "binary"
    OTHER = "other"


class _BaseValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    def to_json(self) -> Any:
        raise NotImplementedError

    def display(self) -> str:
        raise NotImplementedError


class NullValue(_BaseValue):
    kind: Literal["null"] = "null"

    def to_json(self) -> None:
        return None

    def display(self) -> str:
        return ""


class BoolValue(_BaseValue):
    kind: Literal["bool"] = "bool"
    value: bool

    def to_json(self) -> bool:
        return self.value

    def display(self) -> str:
        return "true" if self.value else "false"


class IntegerValue(_BaseValue):
    kind: Literal["integer"] = "integer"
    value: int = Field(ge=INT64_MIN, le=INT64_MAX)

    def to_json(self) -> int:
        return self.value

    def display(self) -> str:
        return str(self.value)


class FloatValue(_BaseValue):
    kind: Literal["float"] = "float"
    value: float

    def to_json(self) -> float:
        return self.value

    def display(self) -> str:
        return repr(self.value)


class TextValue(_BaseValue):
    kind: Literal["text"] = "text"
    value: str

    def to_json(self) -> str:
        return self.value

    def display(self) -> str:
        return self.value


class BinaryHexValue(_BaseValue):
    """Hex preview of a binary payload.

    ``hex`` holds at most the preview threshold worth of bytes; ``truncated``
    and ``byte_length`` tell the consumer how much was left out.
    ``unrecognized`` marks bytes that surfaced behind a type tag the
    normalizer does not know.
    """

    kind: Literal["binary"] = "binary"
    hex: str
    truncated: bool = False
    byte_length: int = Field(ge=0)
    unrecognized: bool = False

    def to_json(self) -> str:
        return self.display()

    def display(self) -> str:
        if self.unrecognized:
            suffix = "..." if self.truncated else ""
            return f"[BLOB: 0x{self.hex}{suffix}]"
        if self.truncated:
            return f"0x{self.hex}... ({self.byte_length} bytes)"
        return f"0x{self.hex}"


Value = Annotated[
    NullValue | BoolValue | IntegerValue | FloatValue | TextValue | BinaryHexValue,
    Field(discriminator="kind"),
]

NULL = NullValue()


def integer_or_text(number: int) -> IntegerValue | TextValue:
    """Keep ``number`` exact: Integer inside int64, decimal Text outside it."""
    if INT64_MIN <= number <= INT64_MAX:
        return IntegerValue(value=number)
    return TextValue(value=str(number))


def count_or_text(raw: Any) -> int | str | None:
    """Metadata counts follow the same rule as cells: no silent wrapping."""
    if raw is None:
        return None
    number = int(raw)
    return integer_or_text(number).value


def binary_preview(
    data: bytes | bytearray | memoryview,
    limit: int = BINARY_PREVIEW_BYTES,
    *,
    unrecognized: bool = False,
) -> BinaryHexValue:
    raw = bytes(data)
    return BinaryHexValue(
        hex=raw[:limit].hex().upper(),
        truncated=len(raw) > limit,
        byte_length=len(raw),
        unrecognized=unrecognized,
    )


def row_to_json(row: dict[str, Any]) -> dict[str, Any]:
    return {name: value.to_json() for name, value in row.items()}


# ---------------------------------------------------------------------------
# Key-value replies
# ---------------------------------------------------------------------------


def _render_scalar(reply: Any) -> str | None:
    if reply is None:
        return NIL_MARKER
    if isinstance(reply, bool):
        return "(true)" if reply else "(false)"
    if isinstance(reply, (bytes, bytearray, memoryview)):
        try:
            return bytes(reply).decode("utf-8")
        except UnicodeDecodeError:
            return repr(bytes(reply))
    if isinstance(reply, str):
        return reply
    if isinstance(reply, (int, float)):
        return str(reply)
    if isinstance(reply, Exception):
        return f"(error) {reply}"
    return None


def _render_lines(reply: Any, indent: int) -> list[str]:
    scalar = _render_scalar(reply)
    if scalar is not None:
        return [scalar]

    if isinstance(reply, dict):
        items: list[Any] = [_Pair(k, v) for k, v in reply.items()]
    elif isinstance(reply, (list, tuple, set, frozenset)):
        items = list(reply)
    else:
        return [repr(reply)]

    if not items:
        return [EMPTY_ARRAY_MARKER]

    pad = " " * indent
    lines: list[str] = []
    for number, item in enumerate(items, start=1):
        prefix = f"{number}) "
        if isinstance(item, _Pair):
            key = _render_lines(item.key, 0)[0]
            value_lines = _render_lines(item.value, indent + len(prefix))
            head = f"{key} => {value_lines[0]}"
            rest = value_lines[1:]
        else:
            sub = _render_lines(item, indent + len(prefix))
            head, rest = sub[0], sub[1:]
        lines.append(f"{pad if lines else ''}{prefix}{head}")
        lines.extend(rest)
    return lines


class _Pair:
    __slots__ = ("key", "value")

    def __init__(self, key: Any, value: Any) -> None:
        self.key = key
        self.value = value


def render_reply(reply: Any) -> str:
    """Render a raw key-value reply for display.

    Bulk and status replies decode to their text (``OK`` stays ``OK``),
    integers to decimal, nil to ``(nil)``. Arrays and maps render as
    numbered lines in redis-cli style; anything else falls back to repr().
    """
    return "\n".join(_render_lines(reply, 0))


def render_json_document(document: Any) -> str:
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))
