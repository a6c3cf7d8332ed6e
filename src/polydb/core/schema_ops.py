"""Abstract schema alteration requests.

``AlterOperation`` is a closed union of variants; each variant carries
exactly the payload it needs, so an operation can never be half-specified.
``parse_alter_operation`` also accepts the flat wire shape used by the
workbench UI (``op_type`` plus optional fields).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from polydb.core.exceptions import TranslationError


class ColumnDef(BaseModel):
    """Column definition as shown and edited in the schema designer.

    ``nullable`` is tri-state: ``None`` means unknown / leave unchanged.
    MySQL cannot leave it unchanged on modify and reports a notice.
    ``default_value`` is an unparsed SQL literal.
    """

    name: str
    type_name: str
    is_pk: bool = False
    nullable: bool | None = None
    default_value: str | None = None
    comment: str | None = None


class IndexDef(BaseModel):
    """Index definition; ``columns`` order is significant."""

    name: str
    columns: list[str]
    is_unique: bool = False
    is_pk: bool = False
    comment: str | None = None


class _Operation(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddColumn(_Operation):
    op: Literal["add_column"] = "add_column"
    column: ColumnDef


class ModifyColumn(_Operation):
    op: Literal["modify_column"] = "modify_column"
    column: ColumnDef


class DropColumn(_Operation):
    op: Literal["drop_column"] = "drop_column"
    name: str


class RenameColumn(_Operation):
    op: Literal["rename_column"] = "rename_column"
    old_name: str
    new_name: str


class AddIndex(_Operation):
    op: Literal["add_index"] = "add_index"
    index: IndexDef


class DropIndex(_Operation):
    op: Literal["drop_index"] = "drop_index"
    name: str


AlterOperation = Annotated[
    AddColumn | ModifyColumn | DropColumn | RenameColumn | AddIndex | DropIndex,
    Field(discriminator="op"),
]

_operation_adapter: TypeAdapter[Any] = TypeAdapter(AlterOperation)

# Flat wire op_type -> tagged discriminator.
_WIRE_OPS = {
    "add": "add_column",
    "modify": "modify_column",
    "drop": "drop_column",
    "rename": "rename_column",
    "add_index": "add_index",
    "drop_index": "drop_index",
}


def _require(data: dict[str, Any], key: str, what: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        msg = f"Missing {what}"
        raise TranslationError(msg)
    return value


def _from_wire(data: dict[str, Any]) -> dict[str, Any]:
    op_type = data.get("op_type")
    if op_type not in _WIRE_OPS:
        msg = f"Unknown operation: {op_type!r}"
        raise TranslationError(msg)

    match op_type:
        case "add" | "modify":
            column = dict(_require(data, "column_def", "column definition"))
            # The UI sends is_nullable; the model calls it nullable.
            if "is_nullable" in column and "nullable" not in column:
                column["nullable"] = column.pop("is_nullable")
            return {"op": _WIRE_OPS[op_type], "column": column}
        case "drop":
            return {"op": "drop_column", "name": _require(data, "column_name", "column name")}
        case "rename":
            return {
                "op": "rename_column",
                "old_name": _require(data, "column_name", "column name"),
                "new_name": _require(data, "new_name", "new name"),
            }
        case "add_index":
            return {"op": "add_index", "index": _require(data, "index_def", "index definition")}
        case _:
            return {"op": "drop_index", "name": _require(data, "index_name", "index name")}


def parse_alter_operation(data: dict[str, Any]) -> AlterOperation:
    """Build an ``AlterOperation`` from tagged (``op``) or flat (``op_type``) JSON.

    Raises TranslationError when the payload for the variant is missing or
    malformed.
    """
    payload = data if "op" in data else _from_wire(data)
    try:
        return _operation_adapter.validate_python(payload)
    except ValidationError as e:
        msg = f"Invalid alter operation: {e.errors()[0]['msg']}"
        raise TranslationError(msg) from e
