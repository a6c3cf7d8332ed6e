"""Sequential execution of tokenized key-value scripts on one session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import sentry_sdk
import structlog
from pydantic import BaseModel
from redis.exceptions import RedisError

from polydb.core.exceptions import PolyDbError
from polydb.core.models import ColumnMeta, ResultSet
from polydb.core.values import TextValue, render_reply

if TYPE_CHECKING:
    from collections.abc import Sequence

    from polydb.core.kv_script import KvCommand

ERROR_PREFIX = "Error: "


class CommandSession(Protocol):
    def execute_command(self, *args: Any) -> Any: ...


class KvResult(BaseModel):
    command: str
    result: str
    ok: bool = True


def execute_script(
    session: CommandSession, commands: Sequence[KvCommand]
) -> list[KvResult]:
    """Run every command in order and capture one result per command.

    No command-specific validation happens here: the first token is the
    command name and the rest are forwarded as-is. A failing command is
    recorded as ``Error: <message>`` and the script continues.
    """
    log = structlog.get_logger()
    results: list[KvResult] = []

    span_description = f"{len(commands)} commands"
    with sentry_sdk.start_span(op="db.redis.script", description=span_description) as span:
        for command in commands:
            log.debug(
                "executing command", command=command.name, argc=len(command.args) - 1
            )
            try:
                reply = session.execute_command(*command.args)
            except (RedisError, PolyDbError) as e:
                log.debug("command failed", command=command.name, error=str(e))
                results.append(
                    KvResult(command=command.line, result=f"{ERROR_PREFIX}{e}", ok=False)
                )
                continue
            results.append(KvResult(command=command.line, result=render_reply(reply)))

        failures = sum(1 for r in results if not r.ok)
        span.set_data("command_count", len(results))
        span.set_data("failure_count", failures)

    return results


def results_to_result_set(results: Sequence[KvResult]) -> ResultSet:
    rows = [
        {"command": TextValue(value=r.command), "result": TextValue(value=r.result)}
        for r in results
    ]
    failures = sum(1 for r in results if not r.ok)
    return ResultSet(
        columns=[
            ColumnMeta(name="command", type_tag="TEXT"),
            ColumnMeta(name="result", type_tag="TEXT"),
        ],
        rows=rows,
        row_count=len(rows),
        status_message=f"{len(rows)} commands, {failures} failed",
    )
