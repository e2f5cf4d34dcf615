"""Tests for card containers: project cards and template cards."""

from __future__ import annotations

from pathlib import Path

import pytest

from cyberismo.containers.card_container import CARD_KEY_PATTERN
from cyberismo.containers.project import Project, initial_state
from cyberismo.errors import NotFoundError, ReferenceNotFoundError


# =============================================================================
# Creating cards
# =============================================================================


def test_create_card(project: Project, card_type) -> None:
    """New cards get a prefixed key, default metadata and the initial state."""
    card = project.create_card("test/cardTypes/task", content="Hello")
    assert CARD_KEY_PATTERN.match(card.key)
    assert card.key.startswith("test_")
    assert card.metadata["title"] == "Untitled"
    assert card.metadata["cardType"] == "test/cardTypes/task"
    assert card.metadata["workflowState"] == "Draft"
    assert card.metadata["links"] == []
    assert "lastUpdated" in card.metadata
    assert (card.path / "index.adoc").read_text(encoding="utf-8") == "Hello"


def test_create_card_missing_card_type(project: Project) -> None:
    """Cards need an existing card type."""
    with pytest.raises(ReferenceNotFoundError):
        project.create_card("test/cardTypes/missing")


def test_child_cards(project: Project, card_type) -> None:
    """Children live in the parent's `c/` folder."""
    parent = project.create_card("test/cardTypes/task")
    child = project.create_card("test/cardTypes/task", parent_key=parent.key)
    assert child.path.parent == parent.path / "c"
    assert child.parent_key == parent.key
    assert parent.parent_key is None

    tree = project.collect_cards()
    assert [c.key for c in tree] == [parent.key]
    assert [c.key for c in tree[0].children] == [child.key]
    assert [c.key for c in project.iter_cards()] == [parent.key, child.key]


def test_new_cards_ranked_after_siblings(project: Project, card_type) -> None:
    """Each new card is ranked after its last sibling; children rank separately."""
    first = project.create_card("test/cardTypes/task")
    second = project.create_card("test/cardTypes/task")
    child = project.create_card("test/cardTypes/task", parent_key=first.key)
    assert first.metadata["rank"] == "0|b"
    assert second.metadata["rank"] == "0|c"
    assert child.metadata["rank"] == "0|b"
    assert first.metadata["rank"] < second.metadata["rank"]


def test_direct_children_only(project: Project, card_type) -> None:
    """The walk can stop at the first level of cards."""
    parent = project.create_card("test/cardTypes/task")
    project.create_card("test/cardTypes/task", parent_key=parent.key)
    tree = project.collect_cards(direct_children_only=True)
    assert [c.key for c in tree] == [parent.key]
    assert tree[0].children == []


def test_missing_parent(project: Project, card_type) -> None:
    """A child needs an existing parent."""
    with pytest.raises(NotFoundError, match="Card 'test_nope' does not exist"):
        project.create_card("test/cardTypes/task", parent_key="test_nope")


def test_find_and_remove_card(project: Project, card_type) -> None:
    """Cards can be found by key and removed."""
    card = project.create_card("test/cardTypes/task")
    assert project.has_card(card.key)
    assert project.find_card(card.key).metadata["cardType"] == "test/cardTypes/task"
    project.remove_card(card.key)
    assert project.find_card(card.key) is None
    with pytest.raises(NotFoundError):
        project.remove_card(card.key)


def test_attachments(project: Project, card_type, tmp_path: Path) -> None:
    """Attachments are copied into the card's `a/` folder."""
    card = project.create_card("test/cardTypes/task")
    source = tmp_path / "diagram.png"
    source.write_bytes(b"png")
    assert project.add_attachment(card.key, source) == "diagram.png"
    assert project.find_card(card.key).attachments == ["diagram.png"]


def test_update_card_metadata(project: Project, card_type) -> None:
    """Metadata updates set and remove keys and stamp lastUpdated."""
    card = project.create_card("test/cardTypes/task")
    project.update_card_metadata(card, {"title": "Renamed", "extra": 1})
    project.update_card_metadata(card, remove_keys=("extra",))
    metadata = project.find_card(card.key).metadata
    assert metadata["title"] == "Renamed"
    assert "extra" not in metadata


# =============================================================================
# Templates
# =============================================================================


def test_template_cards(project: Project, card_type) -> None:
    """Template cards are counted by the template and kept out of the project tree."""
    template = project.resource("test/templates/page")
    template.create()
    card = project.create_card("test/cardTypes/task", template="test/templates/page")

    assert template.show()["numberOfCards"] == 1
    assert project.card_keys() == []
    assert [c.key for c in project.all_cards()] == [card.key]
    assert project.all_cards(include_templates=False) == []


def test_missing_template(project: Project, card_type) -> None:
    """Cards cannot be added to a template that does not exist."""
    with pytest.raises(NotFoundError, match="Template 'test/templates/missing' does not exist"):
        project.create_card("test/cardTypes/task", template="test/templates/missing")


# =============================================================================
# Initial state
# =============================================================================


def test_initial_state_from_creation_transition() -> None:
    """The creation transition decides the initial state."""
    workflow = {
        "states": [{"name": "A", "category": "initial"}, {"name": "B", "category": "active"}],
        "transitions": [{"name": "Create", "fromState": [""], "toState": "B"}],
    }
    assert initial_state(workflow) == "B"


def test_initial_state_fallbacks() -> None:
    """Without a creation transition the first initial state is used."""
    workflow = {
        "states": [{"name": "A", "category": "active"}, {"name": "B", "category": "initial"}],
        "transitions": [],
    }
    assert initial_state(workflow) == "B"
    assert initial_state({"states": [], "transitions": []}) == ""
