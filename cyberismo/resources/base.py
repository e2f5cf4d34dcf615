"""
Generic resource object.

A resource is one schema-validated JSON document stored at
`<resources>/<type>/<identifier>.json`. Every mutation goes through the same
steps: resolve the field, apply the operation to a copy of the document,
validate the copy, write it, then run cascades into other resources and
cards. Nothing is written when validation fails.

Cascades run after the write and are best-effort: a failure in one
dependent is logged and the rest continue.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from ..configuration_log import ConfigurationOperation
from ..containers.files import read_json_file, remove_path, write_json_file
from ..errors import (
    CrossProjectRenameError,
    CyberismoError,
    InvalidOperationError,
    NotFoundError,
    ReadOnlyResourceError,
    SchemaValidationError,
    TypeChangeError,
)
from ..naming import (
    ResourceName,
    assert_prefix_owned,
    assert_type_matches,
    validate_identifier,
)
from ..operations import (
    ChangeOperation,
    Operation,
    UpdateKey,
    apply_array_operation,
    apply_scalar_operation,
)
from ..schemas import RESOURCE_SCHEMA_IDS, get_schema, validate_document

if TYPE_CHECKING:
    from pathlib import Path

    from ..containers.card_container import Card
    from ..containers.project import Project

logger = logging.getLogger(__name__)

# Text files that may mention resource names and are rewritten on rename.
HANDLEBARS_SUFFIXES = (".hbs",)
LOGIC_PROGRAM_SUFFIXES = (".lp",)


class ResourceObject:
    """Base class for every resource type."""

    resource_type: ClassVar[str] = ""

    def __init__(self, project: Project, name: ResourceName):
        assert_type_matches(name, self.resource_type)
        self.project = project
        self.name = name
        self.data: dict[str, Any] | None = None
        if self.file_path.exists():
            self.data = read_json_file(self.file_path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.name)!r})"

    # ========================================================================
    # Locations and state
    # ========================================================================

    @property
    def schema_id(self) -> str:
        return RESOURCE_SCHEMA_IDS[self.resource_type]

    @property
    def file_path(self) -> Path:
        return self.project.resource_metadata_path(self.name)

    @property
    def is_module_resource(self) -> bool:
        return not self.project.is_local(self.name)

    def exists(self) -> bool:
        return self.file_path.exists()

    def _assert_writable(self) -> None:
        assert_prefix_owned(self.name, self.project.project_prefixes())
        if self.is_module_resource:
            raise ReadOnlyResourceError("Cannot update module resources")

    def _require_data(self) -> dict[str, Any]:
        if not self.exists():
            raise NotFoundError(
                f"Resource '{self.name.identifier}' does not exist in the project"
            )
        if self.data is None:
            self.data = read_json_file(self.file_path)
        return self.data

    def _write(self) -> None:
        write_json_file(self.file_path, self.data)

    def _is_array_key(self, key: str, current: Any) -> bool:
        if isinstance(current, list):
            return True
        schema = get_schema(self.schema_id) or {}
        prop = schema.get("properties", {}).get(key, {})
        return prop.get("type") == "array"

    # ========================================================================
    # Validation
    # ========================================================================

    def content_errors(self, content: dict[str, Any]) -> list[str]:
        """Type-specific checks beyond the JSON schema."""
        return []

    def validate_content(self, content: dict[str, Any]) -> None:
        validate_document(self.resource_type, content)
        errors = self.content_errors(content)
        if errors:
            raise SchemaValidationError(f"/{self.schema_id}", errors)

    def validate(self, content: dict[str, Any] | None = None) -> None:
        """
        Validate `content`, or the document currently on disk.

        Raises:
            NotFoundError: no content given and nothing persisted
            SchemaValidationError: the document is invalid
        """
        if content is None:
            if not self.exists():
                raise NotFoundError(
                    f"Resource '{self.name.identifier}' does not exist in the project"
                )
            content = read_json_file(self.file_path)
        self.validate_content(content)

    # ========================================================================
    # Create / show
    # ========================================================================

    def default_content(self) -> dict[str, Any]:
        """Document `create()` writes when no content is given; every resource type overrides it."""
        raise NotImplementedError

    def create(self, content: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Create the resource.

        Args:
            content: Full document; a default document is used when omitted

        Returns:
            The persisted document
        """
        validate_identifier(self.name.identifier)
        self._assert_writable()
        if self.exists():
            raise InvalidOperationError(f"Resource '{self.name}' already exists in the project")

        content = copy.deepcopy(content) if content is not None else self.default_content()
        self.validate_content(content)
        if content["name"] != str(self.name):
            raise SchemaValidationError(
                f"/{self.schema_id}",
                [f"name: '{content['name']}' does not match resource name '{self.name}'"],
            )

        self.data = content
        self._write()
        self.on_created()
        self.project.collector.add(self.name, self.file_path)
        self.project.log_change(ConfigurationOperation.RESOURCE_CREATE, str(self.name))
        logger.info("Created resource %s", self.name)
        return copy.deepcopy(self.data)

    def on_created(self) -> None:
        """Hook for resources that own more than the metadata file."""

    def show(self) -> dict[str, Any]:
        """Fresh read of the persisted document."""
        self.data = None
        return copy.deepcopy(self._require_data())

    # ========================================================================
    # Update
    # ========================================================================

    def update(self, key: UpdateKey | str, operation: Operation) -> None:
        """
        Apply `operation` to the field selected by `key`.

        Raises:
            ReadOnlyResourceError: module resource
            NotFoundError: resource does not exist
            InvalidOperationError: operation does not fit the field
            SchemaValidationError: resulting document is invalid (nothing written)
        """
        key = UpdateKey.from_value(key)
        self._assert_writable()
        if not key.key:
            raise InvalidOperationError("Update key cannot be empty")
        self._require_data()

        if key.key == "name":
            if not isinstance(operation, ChangeOperation):
                raise InvalidOperationError(f"Cannot do operation {operation.name} on scalar value")
            self.rename(self.project.resource_name(str(operation.to)))
            return
        if key.key == "content":
            self.update_content(key, operation)
            return

        self.before_update(key.key, operation)

        candidate = copy.deepcopy(self.data)
        current = candidate.get(key.key)
        if self._is_array_key(key.key, current):
            try:
                candidate[key.key] = apply_array_operation(current or [], operation)
            except InvalidOperationError as e:
                raise InvalidOperationError(f"Cannot perform operation on '{key.key}'. {e}") from e
        else:
            candidate[key.key] = apply_scalar_operation(current, operation)

        self.update_document(candidate, key.key, operation)
        self.validate_content(candidate)

        previous = self.data
        self.data = candidate
        self._write()
        self.project.log_change(
            ConfigurationOperation.RESOURCE_UPDATE,
            str(self.name),
            {"key": str(key), "operation": operation.to_dict()},
        )
        self.after_update(key.key, operation, previous)

    def update_content(self, key: UpdateKey, operation: Operation) -> None:
        raise InvalidOperationError(f"Resource '{self.name}' has no content files")

    def before_update(self, key: str, operation: Operation) -> None:
        """Reference checks that must pass before the operation is applied."""

    def update_document(self, candidate: dict[str, Any], key: str, operation: Operation) -> None:
        """Follow-up edits inside the same document (e.g. dependent lists)."""

    def after_update(self, key: str, operation: Operation, previous: dict[str, Any]) -> None:
        """Cascades into other resources and cards."""

    # ========================================================================
    # Rename / delete
    # ========================================================================

    def rename(self, new_name: ResourceName | str) -> None:
        """
        Rename the resource and update references to it.

        Raises:
            CrossProjectRenameError: prefix would change
            TypeChangeError: type would change
            InvalidNameError: invalid new identifier
        """
        self._assert_writable()
        new_name = self.project.resource_name(new_name)
        assert_prefix_owned(new_name, self.project.project_prefixes())
        if new_name.prefix != self.name.prefix:
            raise CrossProjectRenameError("Can only rename project resources")
        if new_name.type != self.name.type:
            raise TypeChangeError("Cannot change resource type")
        validate_identifier(new_name.identifier)
        self._require_data()
        if new_name == self.name:
            return
        if self.project.resource_metadata_path(new_name).exists():
            raise InvalidOperationError(f"Resource '{new_name}' already exists in the project")

        old_name = self.name
        old_path = self.file_path
        self.move_storage(new_name)
        self.name = new_name
        self.data["name"] = str(new_name)
        self._write()
        remove_path(old_path)

        self.project.collector.remove(old_name)
        self.project.collector.add(new_name, self.file_path)
        self.project.log_change(
            ConfigurationOperation.RESOURCE_RENAME, str(old_name), {"newName": str(new_name)}
        )
        logger.info("Renamed resource %s to %s", old_name, new_name)
        self.on_name_change(str(old_name), str(new_name))

    def move_storage(self, new_name: ResourceName) -> None:
        """Hook for resources that own an internal folder."""

    def on_name_change(self, old: str, new: str) -> None:
        """Rewrite textual references in cards, calculations and templates."""
        self._best_effort("card content", self.update_card_content_references, old, new)
        self._best_effort("calculations", self.update_calculations, old, new)
        self._best_effort("handlebars", self.update_handlebars, old, new)

    def delete(self) -> None:
        """
        Delete the resource's files.

        References held by other resources are left in place.

        Raises:
            NotFoundError: nothing to delete
        """
        self._assert_writable()
        if not self.exists():
            raise NotFoundError(
                f"Resource '{self.name.identifier}' does not exist in the project"
            )
        used_by = self.usage()
        if used_by:
            logger.warning("Deleting %s while it is used by: %s", self.name, ", ".join(used_by))
        self.remove_storage()
        remove_path(self.file_path)
        self.data = None
        self.project.collector.remove(self.name)
        self.project.log_change(ConfigurationOperation.RESOURCE_DELETE, str(self.name))
        logger.info("Deleted resource %s", self.name)

    def remove_storage(self) -> None:
        """Hook for resources that own an internal folder."""

    # ========================================================================
    # Usage
    # ========================================================================

    def usage(self, cards: list[Card] | None = None) -> list[str]:
        """Card keys and resource names that reference this resource."""
        if not self.exists():
            raise NotFoundError(
                f"Resource '{self.name.identifier}' does not exist in the project"
            )
        if cards is None:
            cards = self.project.all_cards(include_content=True)
        references = [*self.resource_references(), *self.card_references(cards)]
        references.extend(self.project.calculations_referencing(str(self.name)))
        return _unique(references)

    def resource_references(self) -> list[str]:
        return []

    def card_references(self, cards: list[Card]) -> list[str]:
        """Cards whose content mentions this resource."""
        name = str(self.name)
        return sorted(c.key for c in cards if c.content and name in c.content)

    # ========================================================================
    # Cascade helpers
    # ========================================================================

    def _best_effort(self, what: str, func, *args) -> None:
        try:
            func(*args)
        except (CyberismoError, OSError):
            logger.exception("Updating %s after change to %s failed", what, self.name)

    def update_card_content_references(self, old: str, new: str) -> None:
        for card in self.project.all_cards(include_content=True):
            if card.content and old in card.content:
                self.project.write_card_content(card, card.content.replace(old, new))

    def update_calculations(self, old: str, new: str) -> None:
        files = self.project.folder_resource_files("calculations", LOGIC_PROGRAM_SUFFIXES)
        self.project.replace_in_files(files, old, new)

    def update_handlebars(self, old: str, new: str) -> None:
        for resource_type in ("reports", "graphViews"):
            files = self.project.folder_resource_files(resource_type, HANDLEBARS_SUFFIXES)
            self.project.replace_in_files(files, old, new)

    def update_cards(self, cards: list[Card], func) -> int:
        """Apply `func(metadata) -> changes | None` to each card and persist changes."""
        updated = 0
        for card in cards:
            try:
                changes = func(dict(card.metadata or {}))
                if changes is None:
                    continue
                set_values, remove_keys = changes
                self.project.update_card_metadata(card, set_values, tuple(remove_keys))
                updated += 1
            except (CyberismoError, OSError):
                logger.exception("Failed to update card %s after change to %s", card.key, self.name)
        return updated


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
