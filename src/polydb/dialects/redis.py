"""Redis dialect.

Redis has no schema: every alter operation is rejected, keys are listed
as tables and a key's type is its single column. Replies arrive in raw
RESP shape (bytes), see ``RedisSession``.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from polydb.core.exceptions import InputError, TranslationError
from polydb.core.models import RedisKeyInfo, TableInfo
from polydb.core.schema_ops import ColumnDef, IndexDef
from polydb.core.values import Engine
from polydb.dialects.base import RuleBasedNormalizer, registry

if TYPE_CHECKING:
    from polydb.core.ddl import DdlPlan
    from polydb.core.schema_ops import AlterOperation

DATABASE_COUNT = 16
SCAN_COUNT = 1000
# Collections are previewed, not dumped.
PREVIEW_ITEMS = 100

_DB_LABEL = re.compile(r"^(?:db)?(\d+)(?:\s*\(.*\))?$", re.IGNORECASE)


def parse_db_index(label: str | None) -> int:
    """Parse ``"db3 (15)"``, ``"db3"`` or ``"3"`` into 3; empty means 0."""
    if label is None or not label.strip():
        return 0
    match = _DB_LABEL.match(label.strip())
    if match is None:
        msg = f"Invalid Redis database: '{label}'. Expected 'dbN' or a number"
        raise InputError(msg)
    return int(match.group(1))


def _text(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)


class RedisDialect(RuleBasedNormalizer):
    engine = Engine.REDIS
    # Replies are rendered by the script executor, not classified.
    type_rules = ()

    def type_tag(self, type_code: Any) -> str:
        return "TEXT"

    def translate(self, table: str, op: AlterOperation) -> DdlPlan:
        msg = "Redis has no schema; alter operations are not supported"
        raise TranslationError(msg)

    # -- Introspection -------------------------------------------------------

    def list_databases(self, session: Any) -> list[str]:
        current = session.db
        labels: list[str] = []
        try:
            for index in range(DATABASE_COUNT):
                session.select(index)
                size = int(session.execute_command("DBSIZE"))
                labels.append(f"db{index} ({size})")
        finally:
            session.select(current)
        return labels

    def list_tables(self, session: Any, database: str | None = None) -> list[TableInfo]:
        if database:
            session.select(parse_db_index(database))
        keys: list[str] = []
        cursor: Any = 0
        while True:
            cursor, batch = session.execute_command("SCAN", cursor, "COUNT", SCAN_COUNT)
            keys.extend(_text(k) for k in batch)
            if int(cursor) == 0:
                break
        return [TableInfo(name=key) for key in sorted(set(keys))]

    def list_columns(
        self, session: Any, table: str, database: str | None = None
    ) -> list[ColumnDef]:
        if database:
            session.select(parse_db_index(database))
        key_type = _text(session.execute_command("TYPE", table))
        return [
            ColumnDef(
                name="value",
                type_name=key_type,
                nullable=False,
                comment=f"Redis key: {table}",
            )
        ]

    def list_indexes(self, session: Any, table: str) -> list[IndexDef]:
        return []

    def key_info(self, session: Any, key: str) -> RedisKeyInfo:
        """Type, TTL, a preview of the value and the collection length."""
        key_type = _text(session.execute_command("TYPE", key))
        ttl = int(session.execute_command("TTL", key))
        length: int | None = None
        value: Any

        match key_type:
            case "string":
                raw = session.execute_command("GET", key)
                value = None if raw is None else _text(raw)
            case "list":
                value = [
                    _text(v)
                    for v in session.execute_command("LRANGE", key, 0, PREVIEW_ITEMS - 1)
                ]
                length = int(session.execute_command("LLEN", key))
            case "set":
                value = sorted(_text(v) for v in session.execute_command("SMEMBERS", key))
                length = int(session.execute_command("SCARD", key))
            case "zset":
                flat = session.execute_command(
                    "ZRANGE", key, 0, PREVIEW_ITEMS - 1, "WITHSCORES"
                )
                value = [
                    {"member": _text(member), "score": float(score)}
                    for member, score in zip(flat[::2], flat[1::2], strict=True)
                ]
                length = int(session.execute_command("ZCARD", key))
            case "hash":
                flat = session.execute_command("HGETALL", key)
                if isinstance(flat, dict):
                    value = {_text(k): _text(v) for k, v in flat.items()}
                else:
                    value = {
                        _text(k): _text(v)
                        for k, v in zip(flat[::2], flat[1::2], strict=True)
                    }
                length = int(session.execute_command("HLEN", key))
            case "none":
                value = None
            case _:
                value = f"({key_type} values are not previewed)"

        rendered = value if isinstance(value, str) else json.dumps(
            value, ensure_ascii=False, indent=2
        )
        return RedisKeyInfo(
            key=key, key_type=key_type, ttl=ttl, value=rendered, length=length
        )


registry.register(RedisDialect())
