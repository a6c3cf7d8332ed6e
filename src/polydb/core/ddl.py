"""DDL plan model, literal/identifier helpers and ordered plan execution.

Dialects build a ``DdlPlan`` from one ``AlterOperation``; the plan's
statements must run in order on one session because follow-up statements
(comments) depend on the primary statement having succeeded.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

import sentry_sdk
import structlog
from pydantic import BaseModel

from polydb.core.exceptions import PolyDbError, StatementExecutionError, TranslationError

if TYPE_CHECKING:
    from collections.abc import Iterable


class DdlStatement(BaseModel):
    sql: str
    # Follow-up whose failure must not mask the primary statement's success.
    best_effort: bool = False


class DdlPlan(BaseModel):
    statements: list[DdlStatement]
    notices: list[str] = []

    @property
    def sql(self) -> list[str]:
        return [s.sql for s in self.statements]


class PlanOutcome(BaseModel):
    executed: list[str]
    skipped: list[str] = []


class StatementRunner(Protocol):
    def execute(self, sql: str) -> object: ...


# ---------------------------------------------------------------------------
# Identifier and literal helpers
# ---------------------------------------------------------------------------


def require_name(value: str | None, what: str) -> str:
    if value is None or not value.strip():
        msg = f"Missing {what}"
        raise TranslationError(msg)
    return value


def quote_identifier(name: str, quote: str) -> str:
    return f"{quote}{name.replace(quote, quote * 2)}{quote}"


def quote_qualified(name: str, quote: str) -> str:
    """Quote ``schema.table`` part by part."""
    return ".".join(quote_identifier(part, quote) for part in name.split("."))


def string_literal(text: str, *, backslash_escapes: bool) -> str:
    escaped = text.replace("\\", "\\\\") if backslash_escapes else text
    return "'" + escaped.replace("'", "''") + "'"


_NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_KEYWORDS = {"NULL", "TRUE", "FALSE"}
_FUNCTION_CALL = re.compile(r"^[A-Za-z_][\w.]*\s*\(.*\)$", re.DOTALL)
_STATEMENT_MARKERS = (";", "--", "/*")


def default_literal(literal: str, *, backslash_escapes: bool) -> str:
    """Pass SQL expressions through; quote anything that is plain text."""
    stripped = literal.strip()
    upper = stripped.upper()
    if any(marker in stripped for marker in _STATEMENT_MARKERS):
        return string_literal(literal, backslash_escapes=backslash_escapes)
    if len(stripped) >= 2 and stripped.startswith("'") and stripped.endswith("'"):
        # Already quoted: re-escape the body so stray quotes stay inside the literal
        inner = stripped[1:-1].replace("''", "'")
        return string_literal(inner, backslash_escapes=backslash_escapes)
    if (
        _NUMERIC.match(stripped)
        or upper in _KEYWORDS
        or upper.startswith("CURRENT_")
        or upper in ("LOCALTIME", "LOCALTIMESTAMP")
        or _FUNCTION_CALL.match(stripped)
    ):
        return stripped
    return string_literal(literal, backslash_escapes=backslash_escapes)


def join_clauses(parts: Iterable[str | None]) -> str:
    return " ".join(p for p in parts if p)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def execute_plan(session: StatementRunner, plan: DdlPlan) -> PlanOutcome:
    """Run ``plan`` in order on ``session``.

    A failing primary statement raises StatementExecutionError with its
    position; statements after it are not attempted. A failing best-effort
    follow-up is logged and reported in ``PlanOutcome.skipped``.
    """
    log = structlog.get_logger()
    executed: list[str] = []
    skipped: list[str] = []

    span_description = plan.sql[0][:100] if plan.sql else ""
    with sentry_sdk.start_span(op="db.ddl", description=span_description) as span:
        for position, statement in enumerate(plan.statements):
            log.debug("executing ddl", position=position, sql=statement.sql)
            try:
                session.execute(statement.sql)
            except PolyDbError as e:
                if statement.best_effort:
                    log.warning(
                        "follow-up statement failed",
                        position=position,
                        sql=statement.sql,
                        error=e.message,
                    )
                    skipped.append(statement.sql)
                    continue
                span.set_status("internal_error")
                msg = f"Statement {position + 1} of {len(plan.statements)} failed: {e.message}"
                raise StatementExecutionError(
                    msg, position=position, statement=statement.sql
                ) from e
            executed.append(statement.sql)
        span.set_data("statement_count", len(executed))

    return PlanOutcome(executed=executed, skipped=skipped)
