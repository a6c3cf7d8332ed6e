"""Exception hierarchy for polydb.

All exceptions carry an exit_code for CLI return value mapping.
Exit codes are defined in exit_codes.py.
"""

from polydb.core.exit_codes import ExitCode


class PolyDbError(Exception):
    """Base exception for all polydb errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(PolyDbError):
    """Connection failures, unreachable host, rejected credentials."""

    exit_code: int = ExitCode.NETWORK_ERROR


# Session providers raise this when connect(config) fails.
ConnectError = NetworkError


class TimeoutError(NetworkError):
    """Query timeout, connection timeout."""

    exit_code: int = ExitCode.TIMEOUT


class InputError(PolyDbError):
    """File not found, invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(PolyDbError):
    """Malformed config, missing profile, unknown engine."""

    exit_code: int = ExitCode.CONFIG_ERROR


class QueryError(PolyDbError):
    """The server rejected a query."""

    exit_code: int = ExitCode.EXECUTION_ERROR


class TranslationError(PolyDbError):
    """An alter operation cannot be expressed for the target engine.

    Raised before any statement is sent to the server.
    """

    exit_code: int = ExitCode.TRANSLATION_ERROR


class StatementExecutionError(PolyDbError):
    """One statement of a translated DDL sequence failed."""

    exit_code: int = ExitCode.EXECUTION_ERROR

    def __init__(self, message: str, *, position: int, statement: str) -> None:
        self.position = position
        self.statement = statement
        super().__init__(message)


class CommandExecutionError(PolyDbError):
    """One key-value command failed; captured inline in the script result."""

    exit_code: int = ExitCode.EXECUTION_ERROR


class DecodeDegradation(PolyDbError):
    """A single decode strategy could not handle a native cell value.

    Never escapes the normalizer: the next strategy in the chain runs.
    """
