"""
Generic update operations applied to resource fields.

Operations form a closed set: add, remove, change and rank. Array fields
accept all four; scalar fields accept only change.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from .errors import InvalidOperationError

OPERATION_NAMES: frozenset[str] = frozenset({"add", "remove", "change", "rank"})


@dataclass(frozen=True)
class AddOperation:
    """Append `target` to an array."""

    target: Any
    name: ClassVar[str] = "add"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "target": self.target}


@dataclass(frozen=True)
class RemoveOperation:
    """Remove the first array element equal to `target`.

    `replacement_value` tells cascades what to put in place of the removed
    value (e.g. the state cards move to when a workflow state is removed).
    """

    target: Any
    replacement_value: Any = None
    name: ClassVar[str] = "remove"

    def to_dict(self) -> dict[str, Any]:
        data = {"name": self.name, "target": self.target}
        if self.replacement_value is not None:
            data["replacementValue"] = self.replacement_value
        return data


@dataclass(frozen=True)
class ChangeOperation:
    """Replace `target` with `to`.

    `mapping_table` carries `{"stateMapping": {old: new}}` when a card type's
    workflow is changed.
    """

    target: Any
    to: Any
    mapping_table: dict[str, Any] | None = None
    name: ClassVar[str] = "change"

    def to_dict(self) -> dict[str, Any]:
        data = {"name": self.name, "target": self.target, "to": self.to}
        if self.mapping_table is not None:
            data["mappingTable"] = self.mapping_table
        return data

    @property
    def state_mapping(self) -> dict[str, str]:
        if not self.mapping_table:
            return {}
        return dict(self.mapping_table.get("stateMapping", {}))


@dataclass(frozen=True)
class RankOperation:
    """Move the array element equal to `target` to `new_index`."""

    target: Any
    new_index: int
    name: ClassVar[str] = "rank"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "target": self.target, "newIndex": self.new_index}


Operation = Union[AddOperation, RemoveOperation, ChangeOperation, RankOperation]


@dataclass(frozen=True)
class UpdateKey:
    """Selects the field an operation applies to.

    `sub_key` addresses nested content, e.g. `{key: "content", sub_key: "calculation"}`.
    """

    key: str
    sub_key: str | None = None

    def __str__(self) -> str:
        return f"{self.key}.{self.sub_key}" if self.sub_key else self.key

    @classmethod
    def from_value(cls, value: str | dict[str, Any] | UpdateKey) -> UpdateKey:
        if isinstance(value, UpdateKey):
            return value
        if isinstance(value, str):
            return cls(key=value)
        return cls(key=value["key"], sub_key=value.get("subKey") or value.get("sub_key"))


def operation_from_dict(data: dict[str, Any]) -> Operation:
    """
    Build an operation from its wire form.

    The wire form is `{name, target, to?, newIndex?, mappingTable?, replacementValue?}`.
    """
    if not isinstance(data, dict):
        raise InvalidOperationError(f"Operation must be an object, got {type(data).__name__}")

    name = str(data.get("name", "")).strip().lower()
    if name not in OPERATION_NAMES:
        raise InvalidOperationError(
            f"Unknown operation '{data.get('name')}'. Supported operations: "
            f"{', '.join(sorted(OPERATION_NAMES))}"
        )
    if "target" not in data:
        raise InvalidOperationError(f"Operation '{name}' requires a target")

    target = data["target"]
    if name == "add":
        return AddOperation(target=target)
    if name == "remove":
        return RemoveOperation(target=target, replacement_value=data.get("replacementValue"))
    if name == "change":
        if "to" not in data:
            raise InvalidOperationError("Operation 'change' requires 'to'")
        return ChangeOperation(target=target, to=data["to"], mapping_table=data.get("mappingTable"))

    new_index = data.get("newIndex")
    if isinstance(new_index, bool) or not isinstance(new_index, int):
        raise InvalidOperationError("Operation 'rank' requires an integer 'newIndex'")
    return RankOperation(target=target, new_index=new_index)


def _describe(item: Any) -> str:
    if isinstance(item, (dict, list)):
        return json.dumps(item, sort_keys=True)
    return str(item)


def _index_of(values: list[Any], target: Any) -> int:
    for index, value in enumerate(values):
        if value == target:
            return index
    return -1


# ============================================================================
# HANDLERS
# ============================================================================


def apply_array_operation(values: list[Any], operation: Operation, *, strict: bool = True) -> list[Any]:
    """
    Apply an operation to an array and return the new array.

    The input list is not modified. Items are matched by deep equality.

    Args:
        values: Current array value
        operation: Operation to apply
        strict: When False, `change` and `remove` with a missing target are no-ops

    Returns:
        New list

    Raises:
        InvalidOperationError: duplicate add, missing target, or bad rank index
    """
    result = list(values)

    if isinstance(operation, AddOperation):
        if _index_of(result, operation.target) != -1:
            raise InvalidOperationError(f"Item '{_describe(operation.target)}' already exists")
        result.append(operation.target)
        return result

    index = _index_of(result, operation.target)
    if index == -1:
        if not strict and isinstance(operation, (ChangeOperation, RemoveOperation)):
            return result
        raise InvalidOperationError(f"Item '{_describe(operation.target)}' not found")

    if isinstance(operation, RemoveOperation):
        del result[index]
    elif isinstance(operation, ChangeOperation):
        result[index] = operation.to
    elif isinstance(operation, RankOperation):
        if not 0 <= operation.new_index < len(result):
            raise InvalidOperationError(f"Invalid target index: {operation.new_index}")
        item = result.pop(index)
        result.insert(operation.new_index, item)
    else:
        raise InvalidOperationError(f"Unsupported operation: {operation!r}")
    return result


def apply_scalar_operation(value: Any, operation: Operation) -> Any:
    """Apply an operation to a scalar value. Only `change` is allowed."""
    if not isinstance(operation, ChangeOperation):
        raise InvalidOperationError(f"Cannot do operation {operation.name} on scalar value")
    if operation.to == value:
        return value
    return operation.to
