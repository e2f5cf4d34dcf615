from __future__ import annotations

from typing import Any

from .. import defaults
from ..errors import ReferenceNotFoundError
from ..operations import AddOperation, ChangeOperation, Operation
from .base import ResourceObject

CARD_TYPE_LIST_KEYS = ("sourceCardTypes", "destinationCardTypes")


class LinkTypeResource(ResourceObject):
    """Link type; empty card type lists mean "any card type"."""

    resource_type = "linkTypes"

    def default_content(self) -> dict[str, Any]:
        return defaults.link_type(str(self.name))

    def create_link_type(self) -> dict[str, Any]:
        return self.create()

    def before_update(self, key: str, operation: Operation) -> None:
        if key not in CARD_TYPE_LIST_KEYS:
            return
        if isinstance(operation, AddOperation):
            card_type = operation.target
        elif isinstance(operation, ChangeOperation):
            card_type = operation.to
        else:
            return
        if not self.project.resource_exists(str(card_type), "cardTypes"):
            raise ReferenceNotFoundError(f"Card type '{card_type}' does not exist in the project")

    def on_name_change(self, old: str, new: str) -> None:
        super().on_name_change(old, new)

        def relink(metadata: dict[str, Any]):
            links = metadata.get("links", [])
            if not any(link.get("linkType") == old for link in links):
                return None
            return {
                "links": [
                    {**link, "linkType": new} if link.get("linkType") == old else link
                    for link in links
                ]
            }, ()

        self.update_cards(self.project.all_cards(), relink)

    def card_references(self, cards: list) -> list[str]:
        name = str(self.name)
        linked = [
            c.key
            for c in cards
            if c.metadata and any(link.get("linkType") == name for link in c.metadata.get("links", []))
        ]
        return sorted(set(linked) | set(super().card_references(cards)))
