"""
Folder resources: metadata file plus an internal folder of content files.

    <type>/<identifier>.json   metadata
    <type>/<identifier>/       content files (allowlisted per type)

Content files are addressed in updates as `{key: "content", subKey: <content key>}`.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, ClassVar

from ..configuration_log import ConfigurationOperation
from ..containers.files import remove_path, write_text_file
from ..errors import InvalidOperationError, SchemaValidationError
from ..naming import ResourceName
from ..operations import ChangeOperation, Operation, UpdateKey
from .base import ResourceObject

logger = logging.getLogger(__name__)

PARAMETER_SCHEMA_FILE = "parameterSchema.json"


class FolderResource(ResourceObject):
    """Base class for resources that own content files."""

    # file name -> content key in `show()["content"]`
    content_files: ClassVar[dict[str, str]] = {}

    @property
    def internal_folder(self) -> Path:
        return self.file_path.with_suffix("")

    def default_files(self) -> dict[str, str]:
        return {}

    def on_created(self) -> None:
        self.internal_folder.mkdir(parents=True, exist_ok=True)
        for file_name, text in self.default_files().items():
            write_text_file(self.internal_folder / file_name, text)

    def move_storage(self, new_name: ResourceName) -> None:
        source = self.internal_folder
        if source.exists():
            target = self.project.resource_metadata_path(new_name).with_suffix("")
            shutil.move(str(source), str(target))
            logger.debug("Moved %s to %s", source, target)

    def remove_storage(self) -> None:
        remove_path(self.internal_folder)

    # ========================================================================
    # Content files
    # ========================================================================

    def file_name_for(self, content_key: str) -> str:
        for file_name, key in self.content_files.items():
            if key == content_key:
                return file_name
        raise InvalidOperationError(
            f"Unknown content '{content_key}' for {self.resource_type}. "
            f"Allowed: {', '.join(self.content_files.values()) or 'none'}"
        )

    def read_content(self) -> dict[str, Any]:
        """Content files keyed by content key; JSON files are parsed."""
        content: dict[str, Any] = {}
        for file_name, key in self.content_files.items():
            path = self.internal_folder / file_name
            if not path.exists():
                continue
            text = path.read_text(encoding="utf-8")
            if file_name.endswith(".json"):
                try:
                    content[key] = json.loads(text)
                except json.JSONDecodeError as e:
                    raise SchemaValidationError(
                        f"/{self.schema_id}", [f"{file_name}: invalid JSON ({e})"]
                    ) from e
            else:
                content[key] = text
        return content

    def show(self) -> dict[str, Any]:
        data = super().show()
        if self.content_files:
            data["content"] = self.read_content()
        return data

    def update_file(self, file_name: str, text: str) -> None:
        """
        Replace one content file.

        Only allowlisted files directly inside the internal folder can be written.
        """
        self._assert_writable()
        path = (self.internal_folder / file_name).resolve()
        if path.parent != self.internal_folder.resolve() or Path(file_name).name != file_name:
            raise InvalidOperationError(f"File '{file_name}' is not in the resource")
        if file_name not in self.content_files:
            raise InvalidOperationError(f"File '{file_name}' is not allowed to be updated")
        if file_name.endswith(".json"):
            try:
                json.loads(text)
            except json.JSONDecodeError as e:
                raise SchemaValidationError(
                    f"/{self.schema_id}", [f"{file_name}: invalid JSON ({e})"]
                ) from e
        write_text_file(path, text)

    def update_content(self, key: UpdateKey, operation: Operation) -> None:
        if not key.sub_key:
            raise InvalidOperationError("Updating content requires a sub key")
        if not isinstance(operation, ChangeOperation):
            raise InvalidOperationError(f"Cannot do operation {operation.name} on scalar value")
        file_name = self.file_name_for(key.sub_key)
        value = operation.to
        text = value if isinstance(value, str) else json.dumps(value, indent=4) + "\n"
        self.update_file(file_name, text)
        self.project.log_change(
            ConfigurationOperation.RESOURCE_UPDATE, str(self.name), {"key": str(key)}
        )

    # ========================================================================
    # Validation
    # ========================================================================

    def validate(self, content: dict[str, Any] | None = None) -> None:
        super().validate(content)
        if content is None and self.content_files:
            self.read_content()
