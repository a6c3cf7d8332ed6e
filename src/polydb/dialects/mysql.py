"""MySQL dialect: PyMySQL type codes, DDL with inline comments, introspection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pymysql.constants import FIELD_TYPE

from polydb.core.ddl import (
    DdlPlan,
    DdlStatement,
    default_literal,
    join_clauses,
    quote_identifier,
    quote_qualified,
    require_name,
    string_literal,
)
from polydb.core.exceptions import TranslationError
from polydb.core.models import TableInfo
from polydb.core.normalizer import Match, TypeRule
from polydb.core.schema_ops import (
    AddColumn,
    AddIndex,
    ColumnDef,
    DropColumn,
    DropIndex,
    IndexDef,
    ModifyColumn,
    RenameColumn,
)
from polydb.core.values import Engine, TypeClass, count_or_text
from polydb.dialects.base import RuleBasedNormalizer, registry

if TYPE_CHECKING:
    from polydb.core.schema_ops import AlterOperation

_TYPE_NAMES: dict[int, str] = {
    FIELD_TYPE.DECIMAL: "DECIMAL",
    FIELD_TYPE.TINY: "TINYINT",
    FIELD_TYPE.SHORT: "SMALLINT",
    FIELD_TYPE.LONG: "INT",
    FIELD_TYPE.FLOAT: "FLOAT",
    FIELD_TYPE.DOUBLE: "DOUBLE",
    FIELD_TYPE.NULL: "NULL",
    FIELD_TYPE.TIMESTAMP: "TIMESTAMP",
    FIELD_TYPE.LONGLONG: "BIGINT",
    FIELD_TYPE.INT24: "MEDIUMINT",
    FIELD_TYPE.DATE: "DATE",
    FIELD_TYPE.TIME: "TIME",
    FIELD_TYPE.DATETIME: "DATETIME",
    FIELD_TYPE.YEAR: "YEAR",
    FIELD_TYPE.NEWDATE: "DATE",
    FIELD_TYPE.VARCHAR: "VARCHAR",
    FIELD_TYPE.BIT: "BIT",
    FIELD_TYPE.JSON: "JSON",
    FIELD_TYPE.NEWDECIMAL: "DECIMAL",
    FIELD_TYPE.ENUM: "ENUM",
    FIELD_TYPE.SET: "SET",
    FIELD_TYPE.TINY_BLOB: "TINYBLOB",
    FIELD_TYPE.MEDIUM_BLOB: "MEDIUMBLOB",
    FIELD_TYPE.LONG_BLOB: "LONGBLOB",
    FIELD_TYPE.BLOB: "BLOB",
    FIELD_TYPE.VAR_STRING: "VARCHAR",
    FIELD_TYPE.STRING: "CHAR",
    FIELD_TYPE.GEOMETRY: "GEOMETRY",
}

# charsetnr of the "binary" pseudo charset
BINARY_CHARSET = 63

# The server reports BINARY/VARBINARY as string types and TEXT as blob types;
# the column charset tells them apart.
_BINARY_STRINGS = {"CHAR": "BINARY", "VARCHAR": "VARBINARY"}
_TEXT_BLOBS = {
    "TINYBLOB": "TINYTEXT",
    "BLOB": "TEXT",
    "MEDIUMBLOB": "MEDIUMTEXT",
    "LONGBLOB": "LONGTEXT",
}

_RULES: tuple[TypeRule, ...] = (
    TypeRule("BOOL", Match.EXACT, TypeClass.BOOLEAN),
    TypeRule("BOOLEAN", Match.EXACT, TypeClass.BOOLEAN),
    TypeRule("TINYINT", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("SMALLINT", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("MEDIUMINT", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("INT", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("INTEGER", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("BIGINT", Match.PREFIX, TypeClass.INTEGER),
    TypeRule("FLOAT", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("DOUBLE", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("REAL", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("DECIMAL", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("NUMERIC", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("BIT", Match.PREFIX, TypeClass.BIT),
    TypeRule("TIMESTAMP", Match.PREFIX, TypeClass.DATETIME),
    TypeRule("DATETIME", Match.PREFIX, TypeClass.DATETIME),
    TypeRule("DATE", Match.EXACT, TypeClass.DATE),
    TypeRule("TIME", Match.PREFIX, TypeClass.TIME),
    TypeRule("YEAR", Match.PREFIX, TypeClass.YEAR),
    TypeRule("JSON", Match.EXACT, TypeClass.JSON),
    TypeRule("BINARY", Match.CONTAINS, TypeClass.BINARY),
    TypeRule("BLOB", Match.CONTAINS, TypeClass.BINARY),
)

_QUOTE = "`"


def _ident(name: str) -> str:
    return quote_identifier(name, _QUOTE)


def _literal(text: str) -> str:
    return string_literal(text, backslash_escapes=True)


def _text(raw: Any) -> str | None:
    # information_schema columns come back as bytes on some server collations
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)


class MySqlDialect(RuleBasedNormalizer):
    engine = Engine.MYSQL
    type_rules = _RULES

    def type_tag(self, type_code: Any, charsetnr: int | None = None) -> str:
        if not isinstance(type_code, int):
            return str(type_code).upper()
        name = _TYPE_NAMES.get(type_code, "UNKNOWN")
        if charsetnr is None:
            return name
        if charsetnr == BINARY_CHARSET:
            return _BINARY_STRINGS.get(name, name)
        return _TEXT_BLOBS.get(name, name)

    # -- DDL -----------------------------------------------------------------

    def _column_clause(self, col: ColumnDef, *, with_pk: bool) -> str:
        return join_clauses(
            [
                _ident(require_name(col.name, "column name")),
                require_name(col.type_name, "column type"),
                "NOT NULL" if col.nullable is False else "NULL",
                (
                    f"DEFAULT {default_literal(col.default_value, backslash_escapes=True)}"
                    if col.default_value is not None
                    else None
                ),
                "PRIMARY KEY" if with_pk and col.is_pk else None,
                f"COMMENT {_literal(col.comment)}" if col.comment is not None else None,
            ]
        )

    def translate(self, table: str, op: AlterOperation) -> DdlPlan:
        target = quote_qualified(require_name(table, "table name"), _QUOTE)
        alter = f"ALTER TABLE {target}"
        notices: list[str] = []

        match op:
            case AddColumn(column=col):
                sql = f"{alter} ADD COLUMN {self._column_clause(col, with_pk=True)}"
            case ModifyColumn(column=col):
                sql = f"{alter} MODIFY COLUMN {self._column_clause(col, with_pk=False)}"
                if col.nullable is None:
                    notices.append(
                        f"Column {col.name} will allow NULL; MySQL MODIFY COLUMN "
                        "restates the whole definition, so pass nullable to keep NOT NULL"
                    )
            case DropColumn(name=name):
                sql = f"{alter} DROP COLUMN {_ident(require_name(name, 'column name'))}"
            case RenameColumn(old_name=old, new_name=new):
                old_q = _ident(require_name(old, "column name"))
                new_q = _ident(require_name(new, "new name"))
                sql = f"{alter} RENAME COLUMN {old_q} TO {new_q}"
            case AddIndex(index=idx):
                sql = self._create_index(target, idx)
            case DropIndex(name=name):
                require_name(name, "index name")
                if name.upper() == "PRIMARY":
                    sql = f"{alter} DROP PRIMARY KEY"
                else:
                    sql = f"DROP INDEX {_ident(name)} ON {target}"
            case _:
                msg = f"Unsupported operation for mysql: {type(op).__name__}"
                raise TranslationError(msg)

        return DdlPlan(statements=[DdlStatement(sql=sql)], notices=notices)

    def _create_index(self, target: str, idx: IndexDef) -> str:
        if not idx.columns:
            msg = "Index needs at least one column"
            raise TranslationError(msg)
        cols = ", ".join(_ident(require_name(c, "index column")) for c in idx.columns)
        if idx.is_pk:
            return f"ALTER TABLE {target} ADD PRIMARY KEY ({cols})"
        return join_clauses(
            [
                "CREATE",
                "UNIQUE" if idx.is_unique else None,
                "INDEX",
                _ident(require_name(idx.name, "index name")),
                f"ON {target} ({cols})",
                f"COMMENT {_literal(idx.comment)}" if idx.comment else None,
            ]
        )

    # -- Introspection -------------------------------------------------------

    def list_databases(self, session: Any) -> list[str]:
        _, rows = session.fetch_raw("SHOW DATABASES")
        return [_text(row[0]) or "" for row in rows]

    def list_tables(self, session: Any, database: str | None = None) -> list[TableInfo]:
        sql = """
            SELECT TABLE_NAME, DATA_LENGTH, INDEX_LENGTH, TABLE_ROWS, TABLE_COMMENT
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE())
            ORDER BY TABLE_NAME
        """
        _, rows = session.fetch_raw(sql, (database,))
        tables: list[TableInfo] = []
        for name, data_len, index_len, table_rows, comment in rows:
            total = (data_len or 0) + (index_len or 0)
            tables.append(
                TableInfo(
                    name=_text(name) or "",
                    data_size=count_or_text(data_len),
                    index_size=count_or_text(index_len),
                    total_size=count_or_text(total),
                    row_count=count_or_text(table_rows),
                    comment=_text(comment) or None,
                )
            )
        return tables

    def list_columns(
        self, session: Any, table: str, database: str | None = None
    ) -> list[ColumnDef]:
        sql = """
            SELECT COLUMN_NAME, COLUMN_TYPE, COLUMN_KEY, IS_NULLABLE,
                   COLUMN_DEFAULT, COLUMN_COMMENT
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE()) AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
        """
        _, rows = session.fetch_raw(sql, (database, table))
        columns: list[ColumnDef] = []
        for name, col_type, key, is_nullable, default, comment in rows:
            columns.append(
                ColumnDef(
                    name=_text(name) or "",
                    type_name=_text(col_type) or "",
                    is_pk=_text(key) == "PRI",
                    nullable=_text(is_nullable) == "YES",
                    default_value=_text(default),
                    comment=_text(comment) or None,
                )
            )
        return columns

    def list_indexes(self, session: Any, table: str) -> list[IndexDef]:
        sql = """
            SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_COMMENT
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """
        _, rows = session.fetch_raw(sql, (table,))
        indexes: list[IndexDef] = []
        for index_name, column_name, non_unique, comment in rows:
            name = _text(index_name) or ""
            column = _text(column_name) or ""
            if indexes and indexes[-1].name == name:
                indexes[-1].columns.append(column)
                continue
            indexes.append(
                IndexDef(
                    name=name,
                    columns=[column],
                    is_unique=int(non_unique) == 0,
                    is_pk=name == "PRIMARY",
                    comment=_text(comment) or None,
                )
            )
        return indexes


registry.register(MySqlDialect())
