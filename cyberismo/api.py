"""
Functions behind the resource routes.

Each function takes an open `Project` and returns plain JSON-ready data so
that a web layer (or the CLI) can serialize it directly.
"""

from __future__ import annotations

import logging
from typing import Any

from .containers.card_container import Card
from .containers.collector import ResourcesFrom
from .containers.config import load_project_configuration
from .containers.paths import CONFIG_FILE_NAME
from .containers.project import Project
from .errors import CyberismoError, InvalidOperationError, SchemaValidationError
from .naming import RESOURCE_TYPES
from .operations import UpdateKey, operation_from_dict
from .resources import FolderResource

logger = logging.getLogger(__name__)


# ============================================================================
# Resource tree
# ============================================================================


def _modules(project: Project) -> list[dict[str, str]]:
    modules = []
    for prefix in project.collector.module_prefixes():
        name = prefix
        config_file = project.paths.module_folder(prefix) / CONFIG_FILE_NAME
        if config_file.exists():
            try:
                name = load_project_configuration(config_file).name
            except (CyberismoError, OSError):
                logger.warning("Cannot read configuration of module %s", prefix)
        modules.append({"name": name, "cardKeyPrefix": prefix})
    return modules


def _sort_key(node: dict[str, Any]) -> str:
    data = node.get("data") or {}
    return (data.get("displayName") or node["name"].split("/")[-1]).lower()


def _card_node(card: Card, prefix: str, read_only: bool) -> dict[str, Any]:
    data = {k: v for k, v in card.to_dict().items() if k != "children"}
    return {
        "id": card.key,
        "type": "card",
        "name": f"{prefix}/cards/{card.key}",
        "data": data,
        "children": [_card_node(child, prefix, read_only) for child in card.children],
        "readOnly": read_only,
    }


def _resource_node(project: Project, resource_type: str, name: str) -> dict[str, Any]:
    resource = project.resource(name)
    data = resource.show()
    read_only = resource.is_module_resource
    node: dict[str, Any] = {
        "id": f"{resource_type}-{name}",
        "type": resource_type,
        "name": name,
        "data": data,
        "readOnly": read_only,
    }
    if resource_type == "templates":
        template = project.template(name)
        node["children"] = [
            _card_node(card, resource.name.prefix, read_only) for card in template.collect_cards()
        ]
    elif isinstance(resource, FolderResource):
        node["children"] = [
            {
                "id": f"{resource_type}-{name}-{file_name}",
                "type": "file",
                "name": f"{name}/{file_name}",
                "resourceName": name,
                "fileName": file_name,
                "displayName": file_name,
                "data": {"content": data.get("content", {}).get(content_key)},
                "readOnly": read_only,
            }
            for file_name, content_key in resource.content_files.items()
            if content_key in data.get("content", {})
        ]
    return node


def resource_tree(project: Project) -> list[dict[str, Any]]:
    """
    Project resources as a tree.

    The first node describes the project and its modules. Then each resource
    type that has resources gets a `resourceGroup` node whose children are
    `module` nodes: the project's own resources first, then one node per
    imported module. Folder resources carry `file` nodes; templates carry
    their cards.
    """
    modules = _modules(project)
    module_names = {m["cardKeyPrefix"]: m["name"] for m in modules}
    tree: list[dict[str, Any]] = [
        {
            "id": "general-project",
            "type": "general",
            "name": "project",
            "data": {"name": project.name, "cardKeyPrefix": project.prefix, "modules": modules},
            "readOnly": False,
        }
    ]

    for resource_type in RESOURCE_TYPES:
        local: list[dict[str, Any]] = []
        imported: dict[str, list[dict[str, Any]]] = {}
        for name in project.resources(resource_type):
            try:
                node = _resource_node(project, resource_type, name)
            except (ValueError, OSError):
                logger.exception("Cannot show resource %s", name)
                continue
            prefix = name.split("/")[0]
            if prefix == project.prefix:
                local.append(node)
            else:
                imported.setdefault(prefix, []).append(node)

        children: list[dict[str, Any]] = []
        if local:
            children.append(
                {
                    "id": f"{resource_type}-project",
                    "type": "module",
                    "name": "project",
                    "children": sorted(local, key=_sort_key),
                    "readOnly": False,
                }
            )
        module_nodes = [
            {
                "id": f"{resource_type}-module-{prefix}",
                "type": "module",
                "name": module_names.get(prefix, prefix),
                "prefix": prefix,
                "children": sorted(nodes, key=_sort_key),
                "readOnly": True,
            }
            for prefix, nodes in imported.items()
        ]
        children.extend(sorted(module_nodes, key=lambda n: n["name"]))

        if children:
            tree.append(
                {
                    "id": resource_type,
                    "type": "resourceGroup",
                    "name": resource_type,
                    "children": children,
                }
            )
    return tree


# ============================================================================
# Resource routes
# ============================================================================


def list_resources(
    project: Project, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL
) -> list[str]:
    if resource_type not in RESOURCE_TYPES:
        raise InvalidOperationError(
            f"Unknown resource type '{resource_type}'. Supported types: {', '.join(RESOURCE_TYPES)}"
        )
    return project.resources(resource_type, source)


def show_resource(project: Project, name: str) -> dict[str, Any]:
    return project.resource(name).show()


def apply_operation(project: Project, name: str, body: dict[str, Any]) -> dict[str, Any]:
    """
    Apply one update operation.

    Args:
        body: `{key, subKey?, operation: {name, target, to?, newIndex?,
              mappingTable?, replacementValue?}}`

    Returns:
        The resource as shown after the update (under its new name when the
        operation renamed it)
    """
    if not isinstance(body, dict) or not body.get("key"):
        raise InvalidOperationError("Request body must contain 'key'")
    key = UpdateKey(key=body["key"], sub_key=body.get("subKey"))
    operation = operation_from_dict(body.get("operation"))

    resource = project.resource(name)
    resource.update(key, operation)
    return resource.show()


def delete_resource(project: Project, name: str) -> None:
    project.resource(name).delete()


def validate_resource(project: Project, name: str) -> list[str]:
    """Validation errors of a persisted resource; empty when it is valid."""
    try:
        project.resource(name).validate()
    except SchemaValidationError as e:
        return list(e.errors)
    return []
