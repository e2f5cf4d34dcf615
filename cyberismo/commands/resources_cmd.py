"""Resource commands: tree, list, show, validate, create, delete, rename, apply."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from .. import api
from ..containers.collector import ResourcesFrom
from ..errors import CyberismoError, InvalidOperationError
from ..resources import CardTypeResource, FieldTypeResource
from ._common import open_project, parse_value, print_error, print_json


def _add_tree_nodes(branch: Tree, nodes: list[dict[str, Any]]) -> None:
    for node in nodes:
        label = node["name"]
        if node["type"] == "card":
            label = f"{node['id']} [dim]{(node['data'].get('metadata') or {}).get('title', '')}[/dim]"
        elif node["type"] == "file":
            label = f"[green]{node['fileName']}[/green]"
        elif node.get("readOnly"):
            label = f"{label} [dim](read-only)[/dim]"
        child = branch.add(label)
        _add_tree_nodes(child, node.get("children", []))


def run_tree(project_root: Path, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        tree = api.resource_tree(project)
    except CyberismoError as e:
        print_error(err, e)
        return 1

    if output_json:
        print_json(tree)
        return 0

    general, groups = tree[0], tree[1:]
    root = Tree(f"[bold]{general['data']['name']}[/bold] ({general['data']['cardKeyPrefix']})")
    for group in groups:
        branch = root.add(f"[cyan]{group['name']}[/cyan]")
        _add_tree_nodes(branch, group["children"])
    Console().print(root)
    return 0


def run_list(
    project_root: Path,
    resource_type: str,
    *,
    source: str = "all",
    output_json: bool = False,
) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        names = api.list_resources(project, resource_type, ResourcesFrom(source))
    except CyberismoError as e:
        print_error(err, e)
        return 1

    if output_json:
        print_json(names)
        return 0

    table = Table(title=resource_type)
    table.add_column("name", style="cyan", no_wrap=True)
    table.add_column("displayName")
    table.add_column("source", style="dim")
    for name in names:
        data = project.resource_data(name) or {}
        source_label = "local" if name.split("/")[0] == project.prefix else "module"
        table.add_row(name, data.get("displayName", ""), source_label)
    Console().print(table)
    return 0


def run_show(project_root: Path, name: str) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        data = api.show_resource(project, name)
    except CyberismoError as e:
        print_error(err, e)
        return 1
    print_json(data)
    return 0


def run_validate(project_root: Path, name: str, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        errors = api.validate_resource(project, name)
    except CyberismoError as e:
        print_error(err, e)
        return 1

    if output_json:
        print_json({"name": name, "valid": not errors, "errors": errors})
    elif errors:
        for message in errors:
            err.print(f"  {message}", style="red")
    else:
        Console().print(f"[green]✓[/green] {name} is valid")
    return 1 if errors else 0


def run_create(
    project_root: Path,
    name: str,
    *,
    workflow: str | None = None,
    data_type: str | None = None,
) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        resource = project.resource(name)
        if isinstance(resource, CardTypeResource):
            if not workflow:
                raise InvalidOperationError("Card types need --workflow")
            resource.create_card_type(workflow)
        elif isinstance(resource, FieldTypeResource):
            resource.create_field_type(data_type or "shortText")
        else:
            resource.create()
    except CyberismoError as e:
        print_error(err, e)
        return 1
    Console().print(f"Created [cyan]{resource.name}[/cyan]")
    return 0


def run_delete(project_root: Path, name: str) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        resource = project.resource(name)
        used_by = resource.usage()
        api.delete_resource(project, name)
    except CyberismoError as e:
        print_error(err, e)
        return 1
    if used_by:
        err.print(f"[yellow]Warning:[/yellow] {name} was still used by {', '.join(used_by)}")
    Console().print(f"Deleted [cyan]{name}[/cyan]")
    return 0


def run_rename(project_root: Path, name: str, new_name: str) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        resource = project.resource(name)
        resource.rename(new_name)
    except CyberismoError as e:
        print_error(err, e)
        return 1
    Console().print(f"Renamed [cyan]{name}[/cyan] to [cyan]{resource.name}[/cyan]")
    return 0


def run_apply(
    project_root: Path,
    name: str,
    key: str,
    operation: str,
    *,
    target: str | None = None,
    to: str | None = None,
    new_index: int | None = None,
    sub_key: str | None = None,
    mapping: str | None = None,
    replacement: str | None = None,
) -> int:
    """
    Apply one update operation.

    `target`, `to`, `mapping` and `replacement` are parsed as JSON when they
    parse, so `--target '{"name": "x"}'` and `--target Draft` both work.
    """
    err = Console(stderr=True)
    op: dict[str, Any] = {"name": operation, "target": parse_value(target)}
    if to is not None:
        op["to"] = parse_value(to)
    if new_index is not None:
        op["newIndex"] = new_index
    if mapping is not None:
        op["mappingTable"] = {"stateMapping": parse_value(mapping)}
    if replacement is not None:
        op["replacementValue"] = parse_value(replacement)
    body: dict[str, Any] = {"key": key, "operation": op}
    if sub_key:
        body["subKey"] = sub_key

    try:
        project = open_project(project_root)
        updated = api.apply_operation(project, name, body)
    except CyberismoError as e:
        print_error(err, e)
        return 1
    print_json(updated)
    return 0
