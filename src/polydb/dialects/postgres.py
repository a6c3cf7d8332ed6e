"""PostgreSQL dialect.

Type tags come from the result column OID. DDL uses double-quoted
identifiers and standard-conforming string literals; comments are not
part of PostgreSQL's column or index syntax, so they become best-effort
``COMMENT ON`` follow-ups. Index names are schema-global.

A PostgreSQL connection is bound to one database, so the ``database``
argument of the table/column listings names a schema (default ``public``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

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

DEFAULT_SCHEMA = "public"

_TYPE_NAMES: dict[int, str] = {
    16: "BOOL",
    17: "BYTEA",
    18: "CHAR",
    19: "NAME",
    20: "INT8",
    21: "INT2",
    23: "INT4",
    25: "TEXT",
    26: "OID",
    114: "JSON",
    142: "XML",
    700: "FLOAT4",
    701: "FLOAT8",
    790: "MONEY",
    869: "INET",
    1042: "BPCHAR",
    1043: "VARCHAR",
    1082: "DATE",
    1083: "TIME",
    1114: "TIMESTAMP",
    1184: "TIMESTAMPTZ",
    1186: "INTERVAL",
    1266: "TIMETZ",
    1560: "BIT",
    1562: "VARBIT",
    1700: "NUMERIC",
    2950: "UUID",
    3802: "JSONB",
}

_RULES: tuple[TypeRule, ...] = (
    TypeRule("BOOL", Match.EXACT, TypeClass.BOOLEAN),
    TypeRule("BOOLEAN", Match.EXACT, TypeClass.BOOLEAN),
    TypeRule("INT2", Match.EXACT, TypeClass.INTEGER),
    TypeRule("INT4", Match.EXACT, TypeClass.INTEGER),
    TypeRule("INT8", Match.EXACT, TypeClass.INTEGER),
    TypeRule("OID", Match.EXACT, TypeClass.INTEGER),
    TypeRule("SMALLINT", Match.EXACT, TypeClass.INTEGER),
    TypeRule("INTEGER", Match.EXACT, TypeClass.INTEGER),
    TypeRule("BIGINT", Match.EXACT, TypeClass.INTEGER),
    TypeRule("FLOAT4", Match.EXACT, TypeClass.FLOAT),
    TypeRule("FLOAT8", Match.EXACT, TypeClass.FLOAT),
    TypeRule("REAL", Match.EXACT, TypeClass.FLOAT),
    TypeRule("DOUBLE PRECISION", Match.EXACT, TypeClass.FLOAT),
    TypeRule("NUMERIC", Match.PREFIX, TypeClass.FLOAT),
    TypeRule("MONEY", Match.EXACT, TypeClass.FLOAT),
    TypeRule("BIT", Match.PREFIX, TypeClass.BIT),
    TypeRule("VARBIT", Match.EXACT, TypeClass.BIT),
    TypeRule("TIMESTAMP", Match.PREFIX, TypeClass.DATETIME),
    TypeRule("TIMESTAMPTZ", Match.EXACT, TypeClass.DATETIME),
    TypeRule("DATE", Match.EXACT, TypeClass.DATE),
    TypeRule("TIME", Match.EXACT, TypeClass.TIME),
    TypeRule("TIMETZ", Match.EXACT, TypeClass.TIME),
    TypeRule("JSON", Match.EXACT, TypeClass.JSON),
    TypeRule("JSONB", Match.EXACT, TypeClass.JSON),
    TypeRule("BYTEA", Match.EXACT, TypeClass.BINARY),
    TypeRule("BINARY", Match.CONTAINS, TypeClass.BINARY),
    TypeRule("BLOB", Match.CONTAINS, TypeClass.BINARY),
)

_QUOTE = '"'


def _ident(name: str) -> str:
    return quote_identifier(name, _QUOTE)


def _literal(text: str) -> str:
    return string_literal(text, backslash_escapes=False)


def _split_table(table: str, schema: str | None) -> tuple[str, str]:
    if "." in table:
        prefix, _, name = table.partition(".")
        return prefix, name
    return schema or DEFAULT_SCHEMA, table


def _row_estimate(reltuples: Any) -> int | str | None:
    # reltuples is -1 for tables that were never analyzed
    if reltuples is None or reltuples < 0:
        return None
    return count_or_text(reltuples)


class PostgresDialect(RuleBasedNormalizer):
    engine = Engine.POSTGRESQL
    type_rules = _RULES

    def type_tag(self, type_code: Any) -> str:
        if isinstance(type_code, int):
            return _TYPE_NAMES.get(type_code, "UNKNOWN")
        return str(type_code).upper()

    # -- DDL -----------------------------------------------------------------

    def _add_column(self, alter: str, target: str, col: ColumnDef) -> DdlPlan:
        name = _ident(require_name(col.name, "column name"))
        clause = join_clauses(
            [
                name,
                require_name(col.type_name, "column type"),
                "NOT NULL" if col.nullable is False else None,
                (
                    f"DEFAULT {default_literal(col.default_value, backslash_escapes=False)}"
                    if col.default_value is not None
                    else None
                ),
                "PRIMARY KEY" if col.is_pk else None,
            ]
        )
        statements = [DdlStatement(sql=f"{alter} ADD COLUMN {clause}")]
        if col.comment is not None:
            statements.append(
                DdlStatement(
                    sql=f"COMMENT ON COLUMN {target}.{name} IS {_literal(col.comment)}",
                    best_effort=True,
                )
            )
        return DdlPlan(statements=statements)

    def _modify_column(self, alter: str, col: ColumnDef) -> DdlPlan:
        name = _ident(require_name(col.name, "column name"))
        actions = [f"ALTER COLUMN {name} TYPE {require_name(col.type_name, 'column type')}"]
        if col.nullable is True:
            actions.append(f"ALTER COLUMN {name} DROP NOT NULL")
        elif col.nullable is False:
            actions.append(f"ALTER COLUMN {name} SET NOT NULL")
        if col.default_value is not None:
            default = default_literal(col.default_value, backslash_escapes=False)
            actions.append(f"ALTER COLUMN {name} SET DEFAULT {default}")
        notices = []
        if col.comment is not None:
            notices.append(
                f"Comment on column {col.name} was not applied; "
                "PostgreSQL ignores comments when modifying a column"
            )
        return DdlPlan(
            statements=[DdlStatement(sql=f"{alter} {', '.join(actions)}")],
            notices=notices,
        )

    def _add_index(
        self, alter: str, target: str, schema: str | None, idx: IndexDef
    ) -> DdlPlan:
        if not idx.columns:
            msg = "Index needs at least one column"
            raise TranslationError(msg)
        name = _ident(require_name(idx.name, "index name"))
        cols = ", ".join(_ident(require_name(c, "index column")) for c in idx.columns)
        if idx.is_pk:
            return DdlPlan(
                statements=[
                    DdlStatement(sql=f"{alter} ADD CONSTRAINT {name} PRIMARY KEY ({cols})")
                ]
            )
        create = join_clauses(
            [
                "CREATE",
                "UNIQUE" if idx.is_unique else None,
                "INDEX",
                name,
                f"ON {target} ({cols})",
            ]
        )
        statements = [DdlStatement(sql=create)]
        if idx.comment:
            qualified = f"{quote_qualified(schema, _QUOTE)}.{name}" if schema else name
            statements.append(
                DdlStatement(
                    sql=f"COMMENT ON INDEX {qualified} IS {_literal(idx.comment)}",
                    best_effort=True,
                )
            )
        return DdlPlan(statements=statements)

    def translate(self, table: str, op: AlterOperation) -> DdlPlan:
        table = require_name(table, "table name")
        target = quote_qualified(table, _QUOTE)
        alter = f"ALTER TABLE {target}"
        # Index names live in the schema, not the table.
        schema = table.rpartition(".")[0] or None

        match op:
            case AddColumn(column=col):
                return self._add_column(alter, target, col)
            case ModifyColumn(column=col):
                return self._modify_column(alter, col)
            case DropColumn(name=name):
                sql = f"{alter} DROP COLUMN {_ident(require_name(name, 'column name'))}"
            case RenameColumn(old_name=old, new_name=new):
                old_q = _ident(require_name(old, "column name"))
                new_q = _ident(require_name(new, "new name"))
                sql = f"{alter} RENAME COLUMN {old_q} TO {new_q}"
            case AddIndex(index=idx):
                return self._add_index(alter, target, schema, idx)
            case DropIndex(name=name):
                name_q = _ident(require_name(name, "index name"))
                if schema:
                    name_q = f"{quote_qualified(schema, _QUOTE)}.{name_q}"
                sql = f"DROP INDEX {name_q}"
            case _:
                msg = f"Unsupported operation for postgresql: {type(op).__name__}"
                raise TranslationError(msg)

        return DdlPlan(statements=[DdlStatement(sql=sql)])

    # -- Introspection -------------------------------------------------------

    def list_databases(self, session: Any) -> list[str]:
        _, rows = session.fetch_raw(
            "SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname"
        )
        return [row[0] for row in rows]

    def list_tables(self, session: Any, database: str | None = None) -> list[TableInfo]:
        sql = """
            SELECT c.relname,
                   pg_relation_size(c.oid),
                   pg_indexes_size(c.oid),
                   pg_total_relation_size(c.oid),
                   c.reltuples::bigint,
                   obj_description(c.oid, 'pg_class')
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s AND c.relkind IN ('r', 'p')
            ORDER BY c.relname
        """
        _, rows = session.fetch_raw(sql, (database or DEFAULT_SCHEMA,))
        return [
            TableInfo(
                name=name,
                data_size=count_or_text(data_size),
                index_size=count_or_text(index_size),
                total_size=count_or_text(total_size),
                row_count=_row_estimate(row_count),
                comment=comment,
            )
            for name, data_size, index_size, total_size, row_count, comment in rows
        ]

    def list_columns(
        self, session: Any, table: str, database: str | None = None
    ) -> list[ColumnDef]:
        schema, name = _split_table(table, database)
        sql = """
            SELECT a.attname,
                   format_type(a.atttypid, a.atttypmod),
                   COALESCE(i.indisprimary, false),
                   NOT a.attnotnull,
                   pg_get_expr(d.adbin, d.adrelid),
                   col_description(a.attrelid, a.attnum)
            FROM pg_attribute a
            LEFT JOIN pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
            LEFT JOIN pg_index i
                ON i.indrelid = a.attrelid AND i.indisprimary AND a.attnum = ANY(i.indkey)
            WHERE a.attrelid = (quote_ident(%s) || '.' || quote_ident(%s))::regclass
              AND a.attnum > 0 AND NOT a.attisdropped
            ORDER BY a.attnum
        """
        _, rows = session.fetch_raw(sql, (schema, name))
        return [
            ColumnDef(
                name=col_name,
                type_name=type_name,
                is_pk=bool(is_pk),
                nullable=bool(nullable),
                default_value=default,
                comment=comment,
            )
            for col_name, type_name, is_pk, nullable, default, comment in rows
        ]

    def list_indexes(self, session: Any, table: str) -> list[IndexDef]:
        schema, name = _split_table(table, None)
        sql = """
            SELECT i.relname, a.attname, ix.indisunique, ix.indisprimary,
                   obj_description(i.oid, 'pg_class')
            FROM pg_index ix
            JOIN pg_class i ON i.oid = ix.indexrelid
            CROSS JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS k(attnum, position)
            JOIN pg_attribute a ON a.attrelid = ix.indrelid AND a.attnum = k.attnum
            WHERE ix.indrelid = (quote_ident(%s) || '.' || quote_ident(%s))::regclass
            ORDER BY i.relname, k.position
        """
        _, rows = session.fetch_raw(sql, (schema, name))
        indexes: list[IndexDef] = []
        for index_name, column, is_unique, is_primary, comment in rows:
            if indexes and indexes[-1].name == index_name:
                indexes[-1].columns.append(column)
                continue
            indexes.append(
                IndexDef(
                    name=index_name,
                    columns=[column],
                    is_unique=bool(is_unique),
                    is_pk=bool(is_primary),
                    comment=comment,
                )
            )
        return indexes


registry.register(PostgresDialect())
