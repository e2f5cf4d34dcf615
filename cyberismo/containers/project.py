"""
Project container.

A project owns its resources (`.cards/local/`), imported modules
(`.cards/modules/<prefix>/`) and its card tree (`cardRoot/`). Resource
objects are created on demand and read from disk per call; the only
long-lived cache is the resource collector, owned by the project.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .. import defaults
from ..configuration_log import ConfigurationLog, ConfigurationOperation
from ..errors import InvalidNameError, InvalidOperationError, NotFoundError, ReferenceNotFoundError
from ..naming import RESOURCE_TYPES, ResourceName, is_valid_prefix, parse_resource_name
from .card_container import Card, CardContainer
from .collector import ResourceCollector, ResourcesFrom
from .config import (
    ModuleSetting,
    ProjectConfiguration,
    load_project_configuration,
    save_project_configuration,
)
from .files import read_json_file
from .paths import CONFIG_FILE_NAME, ProjectPaths
from .template import Template

if TYPE_CHECKING:
    from ..resources.base import ResourceObject

logger = logging.getLogger(__name__)


class Project(CardContainer):
    """A project rooted at `root`."""

    def __init__(self, root: Path):
        self.paths = ProjectPaths(Path(root).resolve())
        self.configuration = load_project_configuration(self.paths.config_file)
        super().__init__(self.paths.root, self.configuration.prefix)
        self.collector = ResourceCollector(self.paths, self.prefix)
        self.collector.refresh()
        self.configuration_log = ConfigurationLog(self.paths.root)

    @classmethod
    def create(cls, root: Path, prefix: str, name: str) -> Project:
        """Initialize an empty project on disk and open it."""
        if not is_valid_prefix(prefix):
            raise InvalidNameError(
                f"Project prefix '{prefix}' must be 3-10 lowercase letters"
            )
        paths = ProjectPaths(Path(root))
        if paths.config_file.exists():
            raise InvalidOperationError(f"Project already exists at '{root}'")
        for resource_type in RESOURCE_TYPES:
            paths.resource_folder(resource_type).mkdir(parents=True, exist_ok=True)
        paths.card_root.mkdir(parents=True, exist_ok=True)
        save_project_configuration(paths.config_file, ProjectConfiguration(prefix=prefix, name=name))
        return cls(paths.root)

    @property
    def root(self) -> Path:
        return self.paths.root

    @property
    def name(self) -> str:
        return self.configuration.name

    @property
    def cards_root(self) -> Path:
        return self.paths.card_root

    def log_change(
        self,
        operation: ConfigurationOperation,
        target: str,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        try:
            self.configuration_log.log(operation, target, parameters)
        except OSError as e:
            logger.error("Failed to log %s for %s: %s", operation.value, target, e)

    # ========================================================================
    # Resources
    # ========================================================================

    def project_prefixes(self) -> list[str]:
        """Own prefix first, then imported module prefixes."""
        return [self.prefix, *(p for p in self.collector.module_prefixes() if p != self.prefix)]

    def resource_name(self, name: str | ResourceName) -> ResourceName:
        if isinstance(name, ResourceName):
            return name
        return parse_resource_name(name, default_prefix=self.prefix)

    def is_local(self, name: ResourceName) -> bool:
        return name.prefix == self.prefix

    def resource_metadata_path(self, name: ResourceName) -> Path:
        if self.is_local(name):
            folder = self.paths.resource_folder(name.type)
        else:
            folder = self.paths.module_resource_folder(name.prefix, name.type)
        return folder / f"{name.identifier}.json"

    def resource(self, name: str | ResourceName) -> ResourceObject:
        """Resource object for `name`; the document is loaded from disk if present."""
        from ..resources import resource_object

        return resource_object(self, self.resource_name(name))

    def resource_data(self, name: str | ResourceName) -> dict[str, Any] | None:
        """Metadata document of a resource, or None if it does not exist."""
        try:
            path = self.resource_metadata_path(self.resource_name(name))
        except InvalidNameError:
            return None
        if not path.exists():
            return None
        return read_json_file(path)

    def resources(self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL) -> list[str]:
        return self.collector.resource_names(resource_type, source)

    def resource_exists(self, name: str | ResourceName, resource_type: str | None = None) -> bool:
        """True if `name` is a known resource, of `resource_type` when given."""
        try:
            parsed = self.resource_name(name)
        except InvalidNameError:
            return False
        if resource_type is not None and parsed.type != resource_type:
            return False
        return self.collector.resource_exists(parsed.type, str(parsed))

    def local_resources(self, resource_type: str) -> list[ResourceObject]:
        return [self.resource(n) for n in self.resources(resource_type, ResourcesFrom.LOCAL)]

    def folder_resource_files(self, resource_type: str, suffixes: tuple[str, ...]) -> list[Path]:
        """Content files of local folder resources, filtered by suffix."""
        folder = self.paths.resource_folder(resource_type)
        if not folder.is_dir():
            return []
        return sorted(
            p for p in folder.rglob("*") if p.is_file() and p.name.endswith(suffixes)
        )

    def replace_in_files(self, files: list[Path], old: str, new: str) -> int:
        """Replace every occurrence of `old` in the given text files."""
        changed = 0
        for path in files:
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                continue
            if old not in text:
                continue
            path.write_text(text.replace(old, new), encoding="utf-8")
            changed += 1
        return changed

    def calculations_referencing(self, name: str) -> list[str]:
        """Names of local calculations whose logic program mentions `name`."""
        found: list[str] = []
        for path in self.folder_resource_files("calculations", (".lp",)):
            if name in path.read_text(encoding="utf-8"):
                identifier = path.parent.name
                found.append(f"{self.prefix}/calculations/{identifier}")
        return sorted(set(found))

    # ========================================================================
    # Cards
    # ========================================================================

    def templates(self, source: ResourcesFrom = ResourcesFrom.ALL) -> list[Template]:
        result = []
        for entry in self.collector.resources("templates", source):
            result.append(Template(entry.path.with_suffix(""), self.prefix, entry.full_name))
        return result

    def template(self, name: str | ResourceName) -> Template:
        parsed = self.resource_name(name)
        entry = self.collector.find(parsed)
        if entry is None or parsed.type != "templates":
            raise NotFoundError(f"Template '{parsed}' does not exist in the project")
        return Template(entry.path.with_suffix(""), self.prefix, entry.full_name)

    def all_cards(self, include_content: bool = False, include_templates: bool = True) -> list[Card]:
        """Every project card, then every local template card, flattened."""
        cards = list(self.iter_cards(include_content=include_content))
        if include_templates:
            for template in self.templates(ResourcesFrom.LOCAL):
                cards.extend(template.iter_cards(include_content=include_content))
        return cards

    def cards_of_type(self, card_type: str, include_content: bool = False) -> list[Card]:
        return [
            c
            for c in self.all_cards(include_content=include_content)
            if c.metadata and c.metadata.get("cardType") == card_type
        ]

    def create_card(
        self,
        card_type: str,
        parent_key: str | None = None,
        template: str | None = None,
        content: str = "",
    ) -> Card:
        """
        Create a card of `card_type` in the project or in a template.

        The card starts in the workflow's initial state.
        """
        card_type_data = self.resource_data(card_type)
        if card_type_data is None:
            raise ReferenceNotFoundError(f"Card type '{card_type}' does not exist in the project")
        workflow = self.resource_data(card_type_data["workflow"]) or {}

        metadata = defaults.card(card_type_data)
        metadata["workflowState"] = initial_state(workflow)

        if template is not None:
            return self.template(template).add_template_card(metadata, content, parent_key)
        self.cards_root.mkdir(parents=True, exist_ok=True)
        return self.add_card(metadata, content, parent_key)

    # ========================================================================
    # Modules
    # ========================================================================

    def import_module(self, source_root: Path) -> str:
        """
        Copy another project's resources in as a read-only module.

        Returns:
            The module's prefix
        """
        source = ProjectPaths(Path(source_root))
        module_config = load_project_configuration(source.config_file)
        prefix = module_config.prefix
        if prefix == self.prefix:
            raise InvalidOperationError(f"Cannot import module with the project's own prefix '{prefix}'")
        if any(m.name == prefix for m in self.configuration.modules):
            raise InvalidOperationError(f"Module '{prefix}' is already imported")

        destination = self.paths.module_folder(prefix)
        if destination.exists():
            shutil.rmtree(destination)
        shutil.copytree(
            source.resources_folder,
            destination,
            ignore=shutil.ignore_patterns("migrations", CONFIG_FILE_NAME),
        )
        save_project_configuration(destination / CONFIG_FILE_NAME, module_config)

        self._save_modules(
            [*self.configuration.modules, ModuleSetting(name=prefix, location=str(source.root))]
        )
        self.collector.module_imported()
        self.log_change(ConfigurationOperation.MODULE_ADD, prefix, {"location": str(source.root)})
        logger.info("Imported module %s from %s", prefix, source.root)
        return prefix

    def remove_module(self, prefix: str) -> None:
        if not any(m.name == prefix for m in self.configuration.modules):
            raise NotFoundError(f"Module '{prefix}' does not exist in the project")
        shutil.rmtree(self.paths.module_folder(prefix), ignore_errors=True)
        self._save_modules([m for m in self.configuration.modules if m.name != prefix])
        self.collector.module_imported()
        self.log_change(ConfigurationOperation.MODULE_REMOVE, prefix)

    def _save_modules(self, modules: list[ModuleSetting]) -> None:
        self.configuration = ProjectConfiguration(
            prefix=self.configuration.prefix,
            name=self.configuration.name,
            modules=modules,
        )
        save_project_configuration(self.paths.config_file, self.configuration)


def initial_state(workflow: dict[str, Any]) -> str:
    """Target state of the creation transition, else the first initial state."""
    for transition in workflow.get("transitions", []):
        if transition.get("fromState") == [""]:
            return transition["toState"]
    for state in workflow.get("states", []):
        if state.get("category") == "initial":
            return state["name"]
    return ""
