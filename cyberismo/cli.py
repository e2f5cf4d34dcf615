"""CLI entrypoint for cyberismo."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .containers.paths import find_project_root
from .naming import RESOURCE_TYPES


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


@click.group()
@click.version_option(__version__, prog_name="cyberismo")
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    envvar="CYBERISMO_PROJECT",
    help="Path to the project root (defaults to the nearest folder with .cards/local/cardsConfig.json)",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, project: Path | None, verbose: bool) -> None:
    """cyberismo - Manage the resources of a Cyberismo content project.

    Create, update, rename and delete workflows, card types, field types,
    link types, templates, reports, calculations and graph resources.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    if project is None:
        detected = find_project_root(Path.cwd())
        if detected is None:
            raise click.ClickException(
                "Project not found. Pass --project /path/to/project or run from inside one."
            )
        project = detected

    if not project.exists() or not project.is_dir():
        raise click.BadParameter(f"Directory '{project}' does not exist.", param_hint="--project / -p")

    ctx.obj["project"] = project.resolve()


# ============================================================================
# resources
# ============================================================================


@cli.group()
def resources() -> None:
    """Resource commands."""
    pass


@resources.command("tree")
@click.option("--json", "output_json", is_flag=True, help="Output the tree as JSON")
@click.pass_context
def resources_tree(ctx: click.Context, output_json: bool) -> None:
    """Show every resource grouped by type and module."""
    from .commands.resources_cmd import run_tree

    sys.exit(run_tree(ctx.obj["project"], output_json=output_json))


@resources.command("list")
@click.argument("resource_type", type=click.Choice(RESOURCE_TYPES))
@click.option(
    "--source",
    type=click.Choice(["all", "local", "imported"]),
    default="all",
    help="Which resources to list",
)
@click.option("--json", "output_json", is_flag=True, help="Output names as JSON")
@click.pass_context
def resources_list(ctx: click.Context, resource_type: str, source: str, output_json: bool) -> None:
    """List resources of one type.

    Examples:

        cyberismo resources list workflows

        cyberismo resources list cardTypes --source imported
    """
    from .commands.resources_cmd import run_list

    sys.exit(run_list(ctx.obj["project"], resource_type, source=source, output_json=output_json))


@resources.command("show")
@click.argument("name")
@click.pass_context
def resources_show(ctx: click.Context, name: str) -> None:
    """Print a resource as JSON."""
    from .commands.resources_cmd import run_show

    sys.exit(run_show(ctx.obj["project"], name))


@resources.command("validate")
@click.argument("name")
@click.option("--json", "output_json", is_flag=True, help="Output the result as JSON")
@click.pass_context
def resources_validate(ctx: click.Context, name: str, output_json: bool) -> None:
    """Validate a resource against its schema and references."""
    from .commands.resources_cmd import run_validate

    sys.exit(run_validate(ctx.obj["project"], name, output_json=output_json))


@resources.command("create")
@click.argument("name")
@click.option("--workflow", default=None, help="Workflow of a new card type")
@click.option("--data-type", default=None, help="Data type of a new field type (default: shortText)")
@click.pass_context
def resources_create(ctx: click.Context, name: str, workflow: str | None, data_type: str | None) -> None:
    """Create a resource with default content.

    NAME is `prefix/type/identifier`; the prefix may be omitted.

    Examples:

        cyberismo resources create workflows/approval

        cyberismo resources create cardTypes/task --workflow workflows/approval

        cyberismo resources create fieldTypes/cost --data-type number
    """
    from .commands.resources_cmd import run_create

    sys.exit(run_create(ctx.obj["project"], name, workflow=workflow, data_type=data_type))


@resources.command("delete")
@click.argument("name")
@click.pass_context
def resources_delete(ctx: click.Context, name: str) -> None:
    """Delete a resource. References to it are left in place."""
    from .commands.resources_cmd import run_delete

    sys.exit(run_delete(ctx.obj["project"], name))


@resources.command("rename")
@click.argument("name")
@click.argument("new_name")
@click.pass_context
def resources_rename(ctx: click.Context, name: str, new_name: str) -> None:
    """Rename a resource and update the cards and resources that use it."""
    from .commands.resources_cmd import run_rename

    sys.exit(run_rename(ctx.obj["project"], name, new_name))


@resources.command("apply")
@click.argument("name")
@click.argument("key")
@click.argument("operation", type=click.Choice(["add", "remove", "change", "rank"]))
@click.option("--target", default=None, help="Target value (JSON or plain string)")
@click.option("--to", "to", default=None, help="New value for 'change' (JSON or plain string)")
@click.option("--index", "new_index", type=int, default=None, help="New index for 'rank'")
@click.option("--sub-key", default=None, help="Content file key, e.g. 'calculation'")
@click.option("--mapping", default=None, help="State mapping for a workflow change, as a JSON object")
@click.option("--replacement", default=None, help="Replacement value for 'remove'")
@click.pass_context
def resources_apply(
    ctx: click.Context,
    name: str,
    key: str,
    operation: str,
    target: str | None,
    to: str | None,
    new_index: int | None,
    sub_key: str | None,
    mapping: str | None,
    replacement: str | None,
) -> None:
    """Apply one update operation to a resource field.

    Examples:

        cyberismo resources apply workflows/approval states add --target '{"name": "Review", "category": "active"}'

        cyberismo resources apply cardTypes/task displayName change --target '' --to Task

        cyberismo resources apply calculations/main content change --sub-key calculation --target '' --to 'a.'
    """
    from .commands.resources_cmd import run_apply

    sys.exit(
        run_apply(
            ctx.obj["project"],
            name,
            key,
            operation,
            target=target,
            to=to,
            new_index=new_index,
            sub_key=sub_key,
            mapping=mapping,
            replacement=replacement,
        )
    )


# ============================================================================
# cards
# ============================================================================


@cli.group()
def cards() -> None:
    """Card commands."""
    pass


@cards.command("list")
@click.option("--card-type", default=None, help="Only cards of this card type")
@click.option("--templates", "include_templates", is_flag=True, help="Include template cards")
@click.option("--json", "output_json", is_flag=True, help="Output cards as JSON")
@click.pass_context
def cards_list(ctx: click.Context, card_type: str | None, include_templates: bool, output_json: bool) -> None:
    """List cards with their type and workflow state."""
    from .commands.cards_cmd import run_cards_list

    sys.exit(
        run_cards_list(
            ctx.obj["project"],
            card_type=card_type,
            include_templates=include_templates,
            output_json=output_json,
        )
    )


# ============================================================================
# configuration log / watch
# ============================================================================


@cli.command("log")
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N entries")
@click.option("--json", "output_json", is_flag=True, help="Output entries as JSON")
@click.option("--snapshot", "version", default=None, help="Rename the current log to a versioned file")
@click.pass_context
def log(ctx: click.Context, last_n: int | None, output_json: bool, version: str | None) -> None:
    """Show the configuration change log."""
    from .commands.log_cmd import run_log, run_log_version

    if version:
        sys.exit(run_log_version(ctx.obj["project"], version))
    sys.exit(run_log(ctx.obj["project"], last_n=last_n, output_json=output_json))


@cli.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Refresh the resource cache when files under .cards/ change.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    sys.exit(run_watch(ctx.obj["project"]))


if __name__ == "__main__":
    cli()
