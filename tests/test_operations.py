"""Tests for the add/remove/change/rank operation handlers."""

from __future__ import annotations

import pytest

from cyberismo.errors import InvalidOperationError
from cyberismo.operations import (
    AddOperation,
    ChangeOperation,
    RankOperation,
    RemoveOperation,
    UpdateKey,
    apply_array_operation,
    apply_scalar_operation,
    operation_from_dict,
)


# =============================================================================
# Array operations
# =============================================================================


def test_add_appends_and_leaves_input_untouched() -> None:
    """Add returns a new list with the target at the end."""
    values = ["a", "b"]
    assert apply_array_operation(values, AddOperation("c")) == ["a", "b", "c"]
    assert values == ["a", "b"]


def test_add_duplicate_fails() -> None:
    """Adding an existing item fails."""
    with pytest.raises(InvalidOperationError, match="Item 'a' already exists"):
        apply_array_operation(["a"], AddOperation("a"))


def test_remove_by_deep_equality() -> None:
    """Objects are matched by value."""
    values = [{"name": "Draft"}, {"name": "Done"}]
    assert apply_array_operation(values, RemoveOperation({"name": "Draft"})) == [{"name": "Done"}]


def test_change_replaces_in_place() -> None:
    """Change keeps the position of the replaced item."""
    assert apply_array_operation(["a", "b", "c"], ChangeOperation("b", "x")) == ["a", "x", "c"]


def test_missing_target_strict() -> None:
    """By default change and remove on a missing target fail."""
    with pytest.raises(InvalidOperationError, match="Item 'z' not found"):
        apply_array_operation(["a"], ChangeOperation("z", "y"))
    with pytest.raises(InvalidOperationError, match="Item 'z' not found"):
        apply_array_operation(["a"], RemoveOperation("z"))


def test_missing_target_non_strict() -> None:
    """Non-strict change and remove on a missing target are no-ops."""
    assert apply_array_operation(["a"], ChangeOperation("z", "y"), strict=False) == ["a"]
    assert apply_array_operation(["a"], RemoveOperation("z"), strict=False) == ["a"]


def test_rank_moves_item() -> None:
    """Rank moves the target to the new index."""
    assert apply_array_operation(["a", "b", "c"], RankOperation("c", 0)) == ["c", "a", "b"]
    assert apply_array_operation(["a", "b", "c"], RankOperation("a", 2)) == ["b", "c", "a"]


@pytest.mark.parametrize("index", [-1, 3])
def test_rank_index_out_of_range(index: int) -> None:
    """Indices outside the array are rejected."""
    with pytest.raises(InvalidOperationError, match=f"Invalid target index: {index}"):
        apply_array_operation(["a", "b", "c"], RankOperation("a", index))


# =============================================================================
# Scalar operations
# =============================================================================


def test_scalar_change() -> None:
    """Change sets the new value regardless of the current one."""
    assert apply_scalar_operation("old", ChangeOperation("old", "new")) == "new"
    assert apply_scalar_operation("other", ChangeOperation("old", "new")) == "new"


@pytest.mark.parametrize(
    "operation",
    [AddOperation("x"), RemoveOperation("x"), RankOperation("x", 0)],
)
def test_scalar_rejects_array_operations(operation) -> None:
    """Only change applies to scalars."""
    with pytest.raises(InvalidOperationError, match=f"Cannot do operation {operation.name} on scalar value"):
        apply_scalar_operation("x", operation)


# =============================================================================
# Wire form
# =============================================================================


def test_operation_from_dict() -> None:
    """The wire form maps onto the operation dataclasses."""
    assert operation_from_dict({"name": "add", "target": "a"}) == AddOperation("a")
    assert operation_from_dict({"name": "rank", "target": "a", "newIndex": 1}) == RankOperation("a", 1)
    change = operation_from_dict(
        {"name": "change", "target": "w1", "to": "w2", "mappingTable": {"stateMapping": {"A": "B"}}}
    )
    assert isinstance(change, ChangeOperation)
    assert change.state_mapping == {"A": "B"}
    remove = operation_from_dict({"name": "remove", "target": "a", "replacementValue": "b"})
    assert remove == RemoveOperation("a", replacement_value="b")


@pytest.mark.parametrize(
    "data,message",
    [
        ({"name": "move", "target": "a"}, "Unknown operation 'move'"),
        ({"name": "add"}, "requires a target"),
        ({"name": "change", "target": "a"}, "requires 'to'"),
        ({"name": "rank", "target": "a", "newIndex": "1"}, "integer 'newIndex'"),
        ("add", "must be an object"),
    ],
)
def test_operation_from_dict_rejects(data, message: str) -> None:
    """Malformed operations are rejected with a specific message."""
    with pytest.raises(InvalidOperationError, match=message):
        operation_from_dict(data)


def test_to_dict_round_trip() -> None:
    """to_dict produces the wire form operation_from_dict accepts."""
    operation = ChangeOperation("a", "b", mapping_table={"stateMapping": {"x": "y"}})
    assert operation_from_dict(operation.to_dict()) == operation


def test_update_key_forms() -> None:
    """Keys may be given as strings, dicts or UpdateKey values."""
    assert UpdateKey.from_value("states") == UpdateKey("states")
    assert UpdateKey.from_value({"key": "content", "subKey": "calculation"}) == UpdateKey("content", "calculation")
    assert str(UpdateKey("content", "calculation")) == "content.calculation"
