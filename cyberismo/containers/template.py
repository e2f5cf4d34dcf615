"""Template container: the cards stored inside a template resource."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .card_container import CHILDREN_FOLDER, Card, CardContainer


class Template(CardContainer):
    """Cards under `<templates>/<identifier>/c/`."""

    def __init__(self, folder: Path, prefix: str, name: str):
        super().__init__(folder, prefix)
        self.name = name

    @property
    def cards_root(self) -> Path:
        return self.base_path / CHILDREN_FOLDER

    def number_of_cards(self) -> int:
        return sum(1 for _ in self.iter_cards())

    def add_template_card(
        self,
        metadata: dict[str, Any],
        content: str = "",
        parent_key: str | None = None,
    ) -> Card:
        self.cards_root.mkdir(parents=True, exist_ok=True)
        return self.add_card(metadata, content, parent_key)
