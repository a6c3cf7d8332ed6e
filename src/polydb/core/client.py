"""Session providers for MySQL, PostgreSQL and Redis.

Each session wraps one synchronous driver connection (psycopg v3,
PyMySQL, redis-py), resolves its dialect once at construction and maps
driver exceptions onto the PolyDbError hierarchy.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import psycopg
import psycopg.errors
import pymysql
import pymysql.err
import redis
import redis.exceptions
import sentry_sdk
import structlog
from psycopg.types.datetime import DateLoader, TimestampLoader, TimestamptzLoader
from psycopg.types.string import TextLoader
from redis.backoff import NoBackoff
from redis.retry import Retry

from polydb.core.ddl import PlanOutcome, execute_plan
from polydb.core.exceptions import (
    CommandExecutionError,
    NetworkError,
    PolyDbError,
    QueryError,
    TimeoutError,
)
from polydb.core.kv_executor import execute_script, results_to_result_set
from polydb.core.kv_script import tokenize
from polydb.core.models import ColumnMeta, ResultSet
from polydb.core.values import Engine
from polydb.dialects import get_dialect
from polydb.dialects.redis import parse_db_index

if TYPE_CHECKING:
    from polydb.core.config import ResolvedConfig
    from polydb.core.ddl import DdlPlan
    from polydb.core.schema_ops import AlterOperation
    from polydb.core.values import Value
    from polydb.dialects.base import Dialect

# MySQL client error codes for a lost or refused connection.
_MYSQL_CONNECTION_ERRORS = {2003, 2006, 2013, 2055}
# ER_QUERY_TIMEOUT: MAX_EXECUTION_TIME exceeded
_MYSQL_QUERY_TIMEOUT = 3024


class _TextOnOverflow:
    """Return the server's text when the value has no Python date/datetime.

    Covers 'infinity', '-infinity', BC dates and years past 9999; the
    normalizer then keeps the text as is.
    """

    def load(self, data: Any) -> Any:
        try:
            return super().load(data)  # type: ignore[misc]
        except psycopg.DataError:
            return bytes(data).decode("utf-8")


class _DateLoader(_TextOnOverflow, DateLoader):
    pass


class _TimestampLoader(_TextOnOverflow, TimestampLoader):
    pass


class _TimestamptzLoader(_TextOnOverflow, TimestamptzLoader):
    pass


_PG_LOADERS: dict[str, type[Any]] = {
    "date": _DateLoader,
    "timestamp": _TimestampLoader,
    "timestamptz": _TimestamptzLoader,
    # JSON stays text so string scalars keep their quotes
    "json": TextLoader,
    "jsonb": TextLoader,
}


class SqlSession:
    """Common query plumbing for the relational engines.

    Subclasses supply the driver connection, the per-query timeout
    statement and the exception mapping.
    """

    engine: Engine

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self.dialect: Dialect = get_dialect(self.engine)
        self._connection: Any = None
        self._last_status = ""

    def __enter__(self) -> SqlSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _open(self) -> Any:
        raise NotImplementedError

    def _is_open(self) -> bool:
        return self._connection is not None

    def _connect(self) -> Any:
        if self._is_open():
            return self._connection
        self._connection = self._open()
        structlog.get_logger().debug(
            "connected",
            engine=self.engine.value,
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
        )
        return self._connection

    def _timeout_statement(self) -> str | None:
        return None

    def _map_error(self, error: Exception, span: Any) -> PolyDbError | None:
        raise NotImplementedError

    def fetch_raw(
        self, sql: str, params: Any = None
    ) -> tuple[list[Any] | None, list[tuple[Any, ...]]]:
        """Execute SQL and return the driver's description and raw rows."""
        log = structlog.get_logger()
        conn = self._connect()

        sql_normalized = " ".join(sql.split())
        span_description = sql_normalized[:100]
        log.debug("executing query", sql=sql_normalized)
        with sentry_sdk.start_span(op="db.query", description=span_description) as span:
            start_time = time.monotonic()
            try:
                with conn.cursor() as cur:
                    timeout_sql = self._timeout_statement()
                    if timeout_sql:
                        cur.execute(timeout_sql)
                    cur.execute(sql, params)
                    description = self._describe(cur) if cur.description else None
                    rows = list(cur.fetchall()) if description else []
                    self._last_status = self._status_of(cur, len(rows))
            except Exception as e:
                mapped = self._map_error(e, span)
                if mapped is None:
                    raise
                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                log.error(
                    "query failed",
                    sql=sql_normalized,
                    duration_ms=f"{duration_ms:.1f}",
                    error=str(e),
                )
                raise mapped from e

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("row_count", len(rows))
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "query complete",
                duration_ms=f"{duration_ms:.1f}",
                row_count=len(rows),
            )
        return description, rows

    def _describe(self, cur: Any) -> list[Any]:
        return list(cur.description)

    def _status_of(self, cur: Any, row_count: int) -> str:
        return f"{row_count} rows"

    def execute_query(self, sql: str, params: Any = None) -> ResultSet:
        """Execute SQL and return a normalized ResultSet."""
        description, raw_rows = self.fetch_raw(sql, params)
        if not description:
            return ResultSet(
                columns=[], rows=[], row_count=0, status_message=self._last_status
            )

        columns = [
            ColumnMeta(name=desc[0], type_tag=self.dialect.type_tag(desc[1]))
            for desc in description
        ]
        rows: list[dict[str, Value]] = []
        for raw in raw_rows:
            row: dict[str, Value] = {}
            for col, cell in zip(columns, raw, strict=True):
                row[col.name] = self.dialect.normalize(col.type_tag, cell)
            rows.append(row)
        return ResultSet(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            status_message=self._last_status,
        )

    def execute(self, sql: str) -> ResultSet:
        return self.execute_query(sql)

    def run(self, text: str) -> ResultSet:
        return self.execute_query(text)

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class PgSession(SqlSession):
    """PostgreSQL session using psycopg v3 in autocommit mode."""

    engine = Engine.POSTGRESQL

    def _is_open(self) -> bool:
        return self._connection is not None and not self._connection.closed

    def _open(self) -> psycopg.Connection[Any]:
        try:
            conn = psycopg.connect(
                host=self.config.host,
                port=self.config.port,
                dbname=self.config.database,
                user=self.config.user,
                password=self.config.password,
                connect_timeout=self.config.connect_timeout,
                application_name="polydb",
                autocommit=True,
            )
        except psycopg.OperationalError as e:
            msg = (
                f"Connection failed to {self.config.host}:{self.config.port} "
                f"database '{self.config.database}': {e}"
            )
            raise NetworkError(msg) from e
        for type_name, loader in _PG_LOADERS.items():
            conn.adapters.register_loader(type_name, loader)
        return conn

    def _timeout_statement(self) -> str:
        return f"SET statement_timeout = {int(self.config.default_timeout * 1000)}"

    def _status_of(self, cur: Any, row_count: int) -> str:
        return cur.statusmessage or ""

    def _map_error(self, error: Exception, span: Any) -> PolyDbError | None:
        if isinstance(error, psycopg.errors.QueryCanceled):
            span.set_status("deadline_exceeded")
            msg = f"Query timed out after {self.config.default_timeout}s: {error}"
            return TimeoutError(msg)
        if isinstance(error, psycopg.OperationalError):
            span.set_status("unavailable")
            return NetworkError(f"Database error: {error}")
        if isinstance(error, psycopg.Error):
            span.set_status("invalid_argument")
            return QueryError(f"SQL error: {error}")
        return None


class MySqlSession(SqlSession):
    """MySQL session using PyMySQL in autocommit mode."""

    engine = Engine.MYSQL

    def _is_open(self) -> bool:
        return self._connection is not None and self._connection.open

    def _open(self) -> pymysql.connections.Connection:
        try:
            return pymysql.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password or "",
                database=self.config.database,
                connect_timeout=self.config.connect_timeout,
                charset="utf8mb4",
                autocommit=True,
            )
        except pymysql.err.MySQLError as e:
            msg = (
                f"Connection failed to {self.config.host}:{self.config.port} "
                f"database '{self.config.database}': {e}"
            )
            raise NetworkError(msg) from e

    def _timeout_statement(self) -> str:
        # Applies to SELECT statements only; MySQL has no general statement timeout.
        return f"SET SESSION MAX_EXECUTION_TIME = {int(self.config.default_timeout * 1000)}"

    def _describe(self, cur: Any) -> list[Any]:
        description = list(cur.description)
        # PyMySQL keeps the per-column charset on the result's field packets
        fields = getattr(getattr(cur, "_result", None), "fields", None)
        if not isinstance(fields, list) or len(fields) != len(description):
            return description
        type_tag: Any = self.dialect.type_tag
        return [
            (desc[0], type_tag(desc[1], field.charsetnr), *desc[2:])
            for desc, field in zip(description, fields, strict=True)
        ]

    def _status_of(self, cur: Any, row_count: int) -> str:
        if cur.description:
            return f"{row_count} rows"
        return f"{cur.rowcount} rows affected"

    def _map_error(self, error: Exception, span: Any) -> PolyDbError | None:
        if not isinstance(error, pymysql.err.MySQLError):
            return None
        code = error.args[0] if error.args and isinstance(error.args[0], int) else None
        if code == _MYSQL_QUERY_TIMEOUT:
            span.set_status("deadline_exceeded")
            msg = f"Query timed out after {self.config.default_timeout}s: {error}"
            return TimeoutError(msg)
        if code in _MYSQL_CONNECTION_ERRORS or isinstance(
            error, pymysql.err.InterfaceError
        ):
            span.set_status("unavailable")
            return NetworkError(f"Database error: {error}")
        span.set_status("invalid_argument")
        return QueryError(f"SQL error: {error}")


class RedisSession:
    """Redis session on one dedicated connection.

    redis-py's per-command response callbacks are cleared, so replies come
    back in raw RESP shape: bulk strings and status words as bytes,
    integers as int, arrays as lists, nil as None.
    """

    engine = Engine.REDIS

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self.dialect: Dialect = get_dialect(self.engine)
        self.db = parse_db_index(config.database)
        self._client: redis.Redis | None = None

    def __enter__(self) -> RedisSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _connect(self) -> redis.Redis:
        if self._client is not None:
            return self._client

        client = redis.Redis(
            host=self.config.host,
            port=self.config.port,
            db=self.db,
            username=self.config.user,
            password=self.config.password,
            socket_connect_timeout=self.config.connect_timeout,
            socket_timeout=self.config.default_timeout,
            single_connection_client=True,
            # A silent reconnect would reset the selected db; fail instead
            retry=Retry(NoBackoff(), 0),
            retry_on_error=[],
        )
        client.response_callbacks.clear()
        try:
            client.execute_command("PING")
        except redis.exceptions.RedisError as e:
            client.close()
            msg = f"Connection failed to {self.config.host}:{self.config.port}: {e}"
            raise NetworkError(msg) from e
        self._client = client
        structlog.get_logger().debug(
            "connected", engine=self.engine.value, host=self.config.host, db=self.db
        )
        return client

    def execute_command(self, *args: Any) -> Any:
        client = self._connect()
        try:
            return client.execute_command(*args)
        except redis.exceptions.TimeoutError as e:
            self.close()
            msg = f"Command timed out after {self.config.default_timeout}s: {e}"
            raise TimeoutError(msg) from e
        except redis.exceptions.ConnectionError as e:
            self.close()
            raise NetworkError(f"Redis connection error: {e}") from e
        except redis.exceptions.RedisError as e:
            raise CommandExecutionError(str(e)) from e

    def select(self, index: int) -> None:
        self.execute_command("SELECT", index)
        self.db = index

    def run(self, text: str) -> ResultSet:
        """Tokenize and execute a multi-line command script."""
        return results_to_result_set(execute_script(self, tokenize(text)))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


Session = SqlSession | RedisSession

_SESSIONS: dict[Engine, type[SqlSession] | type[RedisSession]] = {
    Engine.MYSQL: MySqlSession,
    Engine.POSTGRESQL: PgSession,
    Engine.REDIS: RedisSession,
}


def open_session(config: ResolvedConfig) -> Session:
    """Return an unconnected session for the configured engine.

    The connection is established lazily on first use.
    """
    return _SESSIONS[Engine(config.engine)](config)


def alter(session: Session, table: str, op: AlterOperation) -> tuple[DdlPlan, PlanOutcome]:
    """Translate ``op`` for the session's engine and execute the plan."""
    plan = session.dialect.translate(table, op)
    return plan, execute_plan(session, plan)
