"""Native cell value normalization.

Each column type tag is classified into a ``TypeClass`` through a
per-engine rule table, and each ``TypeClass`` owns an ordered chain of
decode strategies (``FALLBACK_CHAINS``). A strategy either returns a
``Value`` or raises ``DecodeDegradation``; the first success wins. A cell
never fails its row: when every strategy gives up the cell becomes
``NullValue``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, NamedTuple

import structlog

from polydb.core.exceptions import DecodeDegradation
from polydb.core.values import (
    BINARY_PREVIEW_BYTES,
    GENERIC_PREVIEW_BYTES,
    NULL,
    BoolValue,
    FloatValue,
    TextValue,
    TypeClass,
    Value,
    binary_preview,
    integer_or_text,
    render_json_document,
)

Strategy = Callable[[Any], Value]

_BYTES_TYPES = (bytes, bytearray, memoryview)


class Match(StrEnum):
    EXACT = "exact"
    PREFIX = "prefix"
    CONTAINS = "contains"


class TypeRule(NamedTuple):
    pattern: str
    match: Match
    type_class: TypeClass


_MATCH_RANK = {Match.EXACT: 2, Match.PREFIX: 1, Match.CONTAINS: 0}


def classify(rules: tuple[TypeRule, ...], tag: str) -> TypeClass:
    """Pick the most specific rule matching ``tag``.

    Exact beats prefix beats substring; among equals the longer pattern
    wins, so ``DATETIME`` is never read as ``DATE``.
    """
    normalized = tag.strip().upper()
    best: tuple[int, int] | None = None
    result = TypeClass.OTHER
    for rule in rules:
        pattern = rule.pattern.upper()
        if rule.match is Match.EXACT:
            hit = normalized == pattern
        elif rule.match is Match.PREFIX:
            hit = normalized.startswith(pattern)
        else:
            hit = pattern in normalized
        if not hit:
            continue
        score = (_MATCH_RANK[rule.match], len(pattern))
        if best is None or score > best:
            best = score
            result = rule.type_class
    return result


# ---------------------------------------------------------------------------
# Decode strategies
# ---------------------------------------------------------------------------


def _text_of(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, _BYTES_TYPES):
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeDegradation(f"not utf-8: {e}") from e
    raise DecodeDegradation(f"not text: {type(raw).__name__}")


def decode_bool(raw: Any) -> Value:
    if isinstance(raw, bool):
        return BoolValue(value=raw)
    if isinstance(raw, int) and raw in (0, 1):
        return BoolValue(value=bool(raw))
    if isinstance(raw, _BYTES_TYPES) and bytes(raw) in (b"\x00", b"\x01"):
        return BoolValue(value=bytes(raw) == b"\x01")
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("t", "true", "1", "y", "yes", "on"):
            return BoolValue(value=True)
        if lowered in ("f", "false", "0", "n", "no", "off"):
            return BoolValue(value=False)
    raise DecodeDegradation(f"not a boolean: {raw!r}")


def decode_integer(raw: Any) -> Value:
    if isinstance(raw, bool):
        return integer_or_text(int(raw))
    if isinstance(raw, int):
        return integer_or_text(raw)
    if isinstance(raw, Decimal) and raw.is_finite() and raw == raw.to_integral_value():
        return integer_or_text(int(raw))
    if isinstance(raw, (str, *_BYTES_TYPES)):
        text = _text_of(raw).strip()
        try:
            return integer_or_text(int(text, 10))
        except ValueError as e:
            raise DecodeDegradation(f"not an integer: {text!r}") from e
    raise DecodeDegradation(f"not an integer: {type(raw).__name__}")


def decode_unsigned(raw: Any) -> Value:
    if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
        return integer_or_text(raw)
    # MySQL BIT(n) arrives as big-endian bytes, at most 8 of them
    if isinstance(raw, _BYTES_TYPES) and 0 < len(raw) <= 8:
        return integer_or_text(int.from_bytes(bytes(raw), "big"))
    raise DecodeDegradation(f"not an unsigned integer: {raw!r}")


def decode_float(raw: Any) -> Value:
    if isinstance(raw, bool):
        raise DecodeDegradation("boolean is not a float")
    if isinstance(raw, (float, int, Decimal)):
        number = float(raw)
    elif isinstance(raw, (str, *_BYTES_TYPES)):
        text = _text_of(raw).strip()
        try:
            number = float(Decimal(text))
        except InvalidOperation as e:
            raise DecodeDegradation(f"not a number: {text!r}") from e
    else:
        raise DecodeDegradation(f"not a number: {type(raw).__name__}")
    if not math.isfinite(number):
        return TextValue(value=str(number))
    return FloatValue(value=number)


def decode_bit_string(raw: Any) -> Value:
    """Render raw bits as ``0x`` + uppercase hex."""
    if isinstance(raw, _BYTES_TYPES):
        return TextValue(value="0x" + bytes(raw).hex().upper())
    if isinstance(raw, str) and raw and set(raw) <= {"0", "1"}:
        width = (len(raw) + 7) // 8
        return TextValue(value="0x" + int(raw, 2).to_bytes(width, "big").hex().upper())
    raise DecodeDegradation(f"not a bit string: {raw!r}")


def decode_datetime(raw: Any) -> Value:
    if isinstance(raw, datetime):
        return TextValue(value=raw.isoformat(sep=" "))
    raise DecodeDegradation(f"not a datetime: {type(raw).__name__}")


def decode_date(raw: Any) -> Value:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return TextValue(value=raw.isoformat())
    raise DecodeDegradation(f"not a date: {type(raw).__name__}")


def format_timedelta(delta: timedelta) -> str:
    """MySQL TIME style: ``[-]HH:MM:SS[.ffffff]`` with unbounded hours."""
    total_us = delta // timedelta(microseconds=1)
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    seconds, micros = divmod(total_us, 1_000_000)
    minutes, secs = divmod(seconds, 60)
    hours, mins = divmod(minutes, 60)
    text = f"{sign}{hours:02d}:{mins:02d}:{secs:02d}"
    if micros:
        text += f".{micros:06d}"
    return text


def decode_time(raw: Any) -> Value:
    if isinstance(raw, time):
        return TextValue(value=raw.isoformat())
    if isinstance(raw, timedelta):
        return TextValue(value=format_timedelta(raw))
    raise DecodeDegradation(f"not a time: {type(raw).__name__}")


def decode_structured(raw: Any) -> Value:
    if isinstance(raw, (dict, list, int, float, bool)):
        try:
            return TextValue(value=render_json_document(raw))
        except (TypeError, ValueError) as e:
            raise DecodeDegradation(f"not serializable: {e}") from e
    raise DecodeDegradation(f"not a structured document: {type(raw).__name__}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name}")


def decode_json_text(raw: Any) -> Value:
    """Re-render a JSON document that arrived as text in canonical form."""
    if not isinstance(raw, str):
        raise DecodeDegradation(f"not JSON text: {type(raw).__name__}")
    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        raise DecodeDegradation(f"not a JSON document: {e}") from e
    return TextValue(value=render_json_document(document))


def decode_binary(raw: Any) -> Value:
    if isinstance(raw, _BYTES_TYPES):
        return binary_preview(raw, BINARY_PREVIEW_BYTES)
    raise DecodeDegradation(f"not binary: {type(raw).__name__}")


def decode_text(raw: Any) -> Value:
    return TextValue(value=_text_of(raw))


def decode_display_text(raw: Any) -> Value:
    """Last text attempt for driver objects (UUID, Decimal, inet, ...)."""
    if isinstance(raw, _BYTES_TYPES):
        raise DecodeDegradation("bytes have no display text")
    return TextValue(value=str(raw))


def decode_generic_binary(raw: Any) -> Value:
    if isinstance(raw, _BYTES_TYPES):
        return binary_preview(raw, GENERIC_PREVIEW_BYTES, unrecognized=True)
    raise DecodeDegradation(f"not binary: {type(raw).__name__}")


FALLBACK_CHAINS: dict[TypeClass, tuple[Strategy, ...]] = {
    TypeClass.BOOLEAN: (decode_bool, decode_integer, decode_text),
    TypeClass.INTEGER: (decode_integer, decode_text),
    TypeClass.FLOAT: (decode_float, decode_text),
    TypeClass.BIT: (decode_unsigned, decode_bit_string, decode_text),
    TypeClass.DATETIME: (decode_datetime, decode_text),
    TypeClass.DATE: (decode_date, decode_datetime, decode_text),
    TypeClass.TIME: (decode_time, decode_text),
    TypeClass.YEAR: (decode_integer, decode_text),
    TypeClass.JSON: (decode_structured, decode_json_text, decode_text),
    TypeClass.BINARY: (decode_binary, decode_text),
    TypeClass.OTHER: (decode_text, decode_display_text, decode_generic_binary),
}


def normalize_cell(rules: tuple[TypeRule, ...], tag: str, raw: Any) -> Value:
    """Normalize one native cell through the chain for its tag's class."""
    if raw is None:
        return NULL
    type_class = classify(rules, tag)
    for strategy in FALLBACK_CHAINS[type_class]:
        try:
            return strategy(raw)
        except DecodeDegradation:
            continue
    structlog.get_logger().debug(
        "cell degraded to null",
        type_tag=tag,
        type_class=type_class.value,
        native_type=type(raw).__name__,
    )
    return NULL


def normalize(engine: str, tag: str, raw: Any) -> Value:
    """Normalize a native value using the rules of ``engine``'s dialect."""
    from polydb.dialects import get_dialect

    return get_dialect(engine).normalize(tag, raw)


