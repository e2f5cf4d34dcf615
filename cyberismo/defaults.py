"""Default documents and content files for newly created resources and cards."""

from __future__ import annotations

import json
from typing import Any

DEFAULT_REPORT_CATEGORY = "Uncategorised report"


def card_type(name: str, workflow: str) -> dict[str, Any]:
    return {
        "name": name,
        "displayName": "",
        "workflow": workflow,
        "customFields": [],
        "alwaysVisibleFields": [],
        "optionallyVisibleFields": [],
    }


def field_type(name: str, data_type: str) -> dict[str, Any]:
    content: dict[str, Any] = {"name": name, "displayName": "", "dataType": data_type}
    if data_type in ("enum", "list"):
        content["enumValues"] = []
    return content


def link_type(name: str) -> dict[str, Any]:
    identifier = name.split("/")[-1]
    return {
        "name": name,
        "displayName": "",
        "outboundDisplayName": identifier,
        "inboundDisplayName": identifier,
        "sourceCardTypes": [],
        "destinationCardTypes": [],
        "enableLinkDescription": False,
    }


def workflow(name: str) -> dict[str, Any]:
    """Three-state workflow: Draft -> Approved, anything -> Deprecated."""
    return {
        "name": name,
        "displayName": "",
        "states": [
            {"name": "Draft", "category": "initial"},
            {"name": "Approved", "category": "closed"},
            {"name": "Deprecated", "category": "closed"},
        ],
        "transitions": [
            {"name": "Create", "fromState": [""], "toState": "Draft"},
            {"name": "Approve", "fromState": ["Draft"], "toState": "Approved"},
            {"name": "Archive", "fromState": ["*"], "toState": "Deprecated"},
        ],
    }


def report(name: str) -> dict[str, Any]:
    return {"name": name, "displayName": "", "category": DEFAULT_REPORT_CATEGORY}


def metadata(name: str) -> dict[str, Any]:
    """Calculations, graph models, graph views and templates."""
    return {"name": name, "displayName": ""}


# ============================================================================
# CONTENT FILES
# ============================================================================


def logic_program_placeholder(identifier: str) -> str:
    return f"% add your calculations here for '{identifier}'\n"


def parameter_schema(title: str) -> str:
    schema = {
        "title": title,
        "description": "Parameters for the macro",
        "type": "object",
        "properties": {"cardKey": {"type": "string"}},
        "additionalProperties": False,
    }
    return json.dumps(schema, indent=4) + "\n"


def report_files(identifier: str) -> dict[str, str]:
    return {
        "index.adoc.hbs": "{{#each results}}\n* {{this.title}}\n{{/each}}\n",
        "query.lp.hbs": f"% query for report '{identifier}'\nselect(title).\n",
        "parameterSchema.json": parameter_schema(identifier),
    }


def graph_view_files(identifier: str) -> dict[str, str]:
    return {
        "view.lp.hbs": f"% add your view logic here for '{identifier}'\n",
        "parameterSchema.json": parameter_schema(identifier),
    }


# ============================================================================
# CARDS
# ============================================================================


def card(card_type_content: dict[str, Any], rank: str = "") -> dict[str, Any]:
    """Metadata for a new card of the given card type."""
    content: dict[str, Any] = {
        "title": "Untitled",
        "cardType": card_type_content["name"],
        "workflowState": "",
        "rank": rank,
        "links": [],
    }
    for custom_field in card_type_content.get("customFields", []):
        if not custom_field.get("isCalculated", False):
            content[custom_field["name"]] = None
    return content
