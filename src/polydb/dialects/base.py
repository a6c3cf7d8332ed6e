"""Dialect protocol and registry.

A dialect bundles everything engine-specific: the type-tag rule table
used by the normalizer, DDL translation, and metadata introspection.
Sessions resolve their dialect once when they are opened.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from polydb.core.exceptions import ConfigError
from polydb.core.normalizer import TypeRule, classify, normalize_cell
from polydb.core.values import Engine, TypeClass, Value

if TYPE_CHECKING:
    from polydb.core.ddl import DdlPlan
    from polydb.core.models import TableInfo
    from polydb.core.schema_ops import AlterOperation, ColumnDef, IndexDef


@runtime_checkable
class Dialect(Protocol):
    """Capability interface shared by all engines."""

    engine: Engine
    type_rules: tuple[TypeRule, ...]

    def type_tag(self, type_code: Any) -> str:
        """Map a driver type code from cursor.description to a type tag."""
        ...

    def classify(self, tag: str) -> TypeClass: ...

    def normalize(self, tag: str, raw: Any) -> Value: ...

    def translate(self, table: str, op: AlterOperation) -> DdlPlan: ...

    def list_databases(self, session: Any) -> list[str]: ...

    def list_tables(self, session: Any, database: str | None = None) -> list[TableInfo]: ...

    def list_columns(
        self, session: Any, table: str, database: str | None = None
    ) -> list[ColumnDef]: ...

    def list_indexes(self, session: Any, table: str) -> list[IndexDef]: ...


class RuleBasedNormalizer:
    """Shared ``classify``/``normalize`` driven by ``type_rules``."""

    type_rules: tuple[TypeRule, ...] = ()

    def classify(self, tag: str) -> TypeClass:
        return classify(self.type_rules, tag)

    def normalize(self, tag: str, raw: Any) -> Value:
        return normalize_cell(self.type_rules, tag, raw)


class DialectRegistry:
    """Registry for looking up dialects by engine name."""

    def __init__(self) -> None:
        self._dialects: dict[Engine, Dialect] = {}

    def register(self, dialect: Dialect) -> None:
        self._dialects[dialect.engine] = dialect

    def get(self, engine: str) -> Dialect:
        """Return the dialect for ``engine``.

        Raises ConfigError if the engine is not registered.
        """
        try:
            key = Engine(str(engine).lower())
        except ValueError:
            key = None
        if key is None or key not in self._dialects:
            available = ", ".join(self.available)
            msg = f"Unsupported engine {engine!r}. Available: {available}"
            raise ConfigError(msg)
        return self._dialects[key]

    @property
    def available(self) -> list[str]:
        return sorted(e.value for e in self._dialects)


# Global registry instance populated by dialect modules.
registry = DialectRegistry()
