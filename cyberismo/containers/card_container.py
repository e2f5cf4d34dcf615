"""
Card container: reads and writes card directories.

A card is a directory named by its key:

    <cards root>/<key>/index.json   metadata
    <cards root>/<key>/index.adoc   content
    <cards root>/<key>/a/<file>     attachments
    <cards root>/<key>/c/<key>/...  child cards

Shared by Project (cards under cardRoot/) and Template (cards under the
template's c/ folder).
"""

from __future__ import annotations

import logging
import random
import re
import shutil
import string
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import InvalidOperationError, NotFoundError
from ..lexorank import next_rank
from .files import read_json_file, remove_path, write_json_file, write_text_file

logger = logging.getLogger(__name__)

CARD_KEY_PATTERN = re.compile(r"^[a-z]+_[0-9a-z]+$")
METADATA_FILE = "index.json"
CONTENT_FILE = "index.adoc"
ATTACHMENT_FOLDER = "a"
CHILDREN_FOLDER = "c"

CARD_KEY_LENGTH = 8
CARD_KEY_ATTEMPTS = 10
_KEY_ALPHABET = string.digits + string.ascii_lowercase


def is_card_key(value: str) -> bool:
    return CARD_KEY_PATTERN.match(value) is not None


@dataclass
class Card:
    """A card read from disk."""

    key: str
    path: Path
    metadata: dict[str, Any] | None = None
    content: str | None = None
    children: list[Card] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)

    @property
    def parent_key(self) -> str | None:
        parent = self.path.parent
        if parent.name == CHILDREN_FOLDER and is_card_key(parent.parent.name):
            return parent.parent.name
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "path": str(self.path),
            "metadata": self.metadata,
            "content": self.content,
            "children": [child.to_dict() for child in self.children],
            "attachments": list(self.attachments),
        }


class CardContainer:
    """Base class for containers that own a tree of cards."""

    def __init__(self, base_path: Path, prefix: str):
        self.base_path = Path(base_path)
        self.prefix = prefix

    @property
    def cards_root(self) -> Path:
        raise NotImplementedError

    # --- reading ---

    def _read_card(self, card_path: Path, include_content: bool) -> Card:
        card = Card(key=card_path.name, path=card_path)
        metadata_file = card_path / METADATA_FILE
        if metadata_file.exists():
            card.metadata = read_json_file(metadata_file)
        if include_content:
            content_file = card_path / CONTENT_FILE
            card.content = content_file.read_text(encoding="utf-8") if content_file.exists() else ""
        attachment_folder = card_path / ATTACHMENT_FOLDER
        if attachment_folder.is_dir():
            card.attachments = sorted(p.name for p in attachment_folder.iterdir() if p.is_file())
        return card

    def _walk(self, folder: Path, direct_children_only: bool, include_content: bool) -> list[Card]:
        cards: list[Card] = []
        if not folder.is_dir():
            return cards
        for entry in sorted(folder.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if not is_card_key(entry.name):
                continue
            card = self._read_card(entry, include_content)
            # Stop descending at the first level of card directories.
            if not direct_children_only:
                card.children = self._walk(entry / CHILDREN_FOLDER, False, include_content)
            cards.append(card)
        return cards

    def collect_cards(
        self,
        root: Path | None = None,
        *,
        direct_children_only: bool = False,
        include_content: bool = False,
    ) -> list[Card]:
        """
        Collect the card tree under `root` (defaults to the cards root).

        Args:
            root: Folder to start from
            direct_children_only: Only return the first level of cards
            include_content: Also read index.adoc

        Returns:
            Top-level cards, each with its `children` populated
        """
        return self._walk(root or self.cards_root, direct_children_only, include_content)

    def iter_cards(self, include_content: bool = False) -> Iterator[Card]:
        """Depth-first iteration over every card in the container."""
        stack = list(reversed(self.collect_cards(include_content=include_content)))
        while stack:
            card = stack.pop()
            yield card
            stack.extend(reversed(card.children))

    def card_keys(self) -> list[str]:
        return [card.key for card in self.iter_cards()]

    def find_card_path(self, key: str) -> Path | None:
        if not self.cards_root.is_dir():
            return None
        for metadata_file in self.cards_root.rglob(METADATA_FILE):
            if metadata_file.parent.name == key:
                return metadata_file.parent
        return None

    def find_card(self, key: str, include_content: bool = False) -> Card | None:
        card_path = self.find_card_path(key)
        if card_path is None:
            return None
        card = self._read_card(card_path, include_content)
        card.children = self._walk(card_path / CHILDREN_FOLDER, False, include_content)
        return card

    def has_card(self, key: str) -> bool:
        return self.find_card_path(key) is not None

    # --- writing ---

    def write_card_metadata(self, card: Card, metadata: dict[str, Any]) -> None:
        """Persist metadata; `lastUpdated` is stamped on every write."""
        metadata = dict(metadata)
        metadata["lastUpdated"] = datetime.now(timezone.utc).isoformat()
        write_json_file(card.path / METADATA_FILE, metadata)
        card.metadata = metadata

    def update_card_metadata(
        self,
        card: Card,
        changes: dict[str, Any] | None = None,
        remove_keys: tuple[str, ...] = (),
    ) -> None:
        metadata = dict(card.metadata or {})
        metadata.update(changes or {})
        for key in remove_keys:
            metadata.pop(key, None)
        self.write_card_metadata(card, metadata)

    def write_card_content(self, card: Card, content: str) -> None:
        write_text_file(card.path / CONTENT_FILE, content)
        card.content = content

    def generate_card_key(self) -> str:
        """
        Generate a unique `<prefix>_<random>` card key.

        Raises:
            InvalidOperationError: no free key found
        """
        existing = set(self.card_keys())
        for _ in range(CARD_KEY_ATTEMPTS):
            suffix = "".join(random.choices(_KEY_ALPHABET, k=CARD_KEY_LENGTH))
            key = f"{self.prefix}_{suffix}"
            if key not in existing:
                return key
        raise InvalidOperationError(f"Could not generate a unique card key for prefix '{self.prefix}'")

    def add_card(
        self,
        metadata: dict[str, Any],
        content: str = "",
        parent_key: str | None = None,
    ) -> Card:
        """
        Create a card under the cards root or under `parent_key`'s `c/` folder.

        Cards without a rank are ranked after their last sibling.
        """
        if parent_key is None:
            parent_folder = self.cards_root
        else:
            parent_path = self.find_card_path(parent_key)
            if parent_path is None:
                raise NotFoundError(f"Card '{parent_key}' does not exist")
            parent_folder = parent_path / CHILDREN_FOLDER

        if not metadata.get("rank"):
            siblings = self.collect_cards(parent_folder, direct_children_only=True)
            metadata = {
                **metadata,
                "rank": next_rank([(c.metadata or {}).get("rank", "") for c in siblings]),
            }

        key = self.generate_card_key()
        card = Card(key=key, path=parent_folder / key)
        card.path.mkdir(parents=True)
        self.write_card_metadata(card, metadata)
        self.write_card_content(card, content)
        logger.debug("Created card %s at %s", key, card.path)
        return card

    def remove_card(self, key: str) -> None:
        card_path = self.find_card_path(key)
        if card_path is None:
            raise NotFoundError(f"Card '{key}' does not exist")
        remove_path(card_path)

    def add_attachment(self, key: str, source: Path) -> str:
        card_path = self.find_card_path(key)
        if card_path is None:
            raise NotFoundError(f"Card '{key}' does not exist")
        folder = card_path / ATTACHMENT_FOLDER
        folder.mkdir(exist_ok=True)
        shutil.copy2(source, folder / source.name)
        return source.name
