"""
JSON schema registry for resource documents, card metadata and project config.

Each resource type maps to one schema. Validation collects every error with
jsonschema's Draft 2020-12 validator; `validate_document` raises on the first.
"""

from __future__ import annotations

from typing import Any

import jsonschema

from .errors import SchemaValidationError

_NAME = {"type": "string", "minLength": 1}
_TEXT = {"type": "string"}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}

_COMMON_PROPERTIES: dict[str, Any] = {
    "name": _NAME,
    "displayName": _TEXT,
    "description": _TEXT,
}


def _resource_schema(
    properties: dict[str, Any] | None = None,
    required: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {**_COMMON_PROPERTIES, **(properties or {})},
        "required": ["name", "displayName", *(required or [])],
        "additionalProperties": False,
    }


DATA_TYPES: tuple[str, ...] = (
    "shortText",
    "longText",
    "number",
    "integer",
    "boolean",
    "enum",
    "list",
    "date",
    "dateTime",
    "person",
)

STATE_CATEGORIES: tuple[str, ...] = ("initial", "active", "closed")


# ============================================================================
# RESOURCE SCHEMAS
# ============================================================================

WORKFLOW_SCHEMA = _resource_schema(
    {
        "states": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _NAME,
                    "category": {"enum": list(STATE_CATEGORIES)},
                },
                "required": ["name"],
                "additionalProperties": False,
            },
            "uniqueItems": True,
        },
        "transitions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _NAME,
                    "fromState": _STRING_LIST,
                    "toState": _TEXT,
                },
                "required": ["name", "fromState", "toState"],
                "additionalProperties": False,
            },
            "uniqueItems": True,
        },
    },
    ["states", "transitions"],
)

CARD_TYPE_SCHEMA = _resource_schema(
    {
        "workflow": _NAME,
        "customFields": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": _NAME,
                    "displayName": _TEXT,
                    "description": _TEXT,
                    "isCalculated": {"type": "boolean"},
                    "isEditable": {"type": "boolean"},
                },
                "required": ["name"],
                "additionalProperties": False,
            },
            "uniqueItems": True,
        },
        "alwaysVisibleFields": {**_STRING_LIST, "uniqueItems": True},
        "optionallyVisibleFields": {**_STRING_LIST, "uniqueItems": True},
    },
    ["workflow", "customFields", "alwaysVisibleFields", "optionallyVisibleFields"],
)

FIELD_TYPE_SCHEMA = _resource_schema(
    {
        "dataType": {"enum": list(DATA_TYPES)},
        "enumValues": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "enumValue": _NAME,
                    "enumDisplayValue": _TEXT,
                    "enumDescription": _TEXT,
                },
                "required": ["enumValue"],
                "additionalProperties": False,
            },
            "uniqueItems": True,
        },
    },
    ["dataType"],
)

LINK_TYPE_SCHEMA = _resource_schema(
    {
        "outboundDisplayName": _TEXT,
        "inboundDisplayName": _TEXT,
        "sourceCardTypes": {**_STRING_LIST, "uniqueItems": True},
        "destinationCardTypes": {**_STRING_LIST, "uniqueItems": True},
        "enableLinkDescription": {"type": "boolean"},
    },
    [
        "outboundDisplayName",
        "inboundDisplayName",
        "sourceCardTypes",
        "destinationCardTypes",
        "enableLinkDescription",
    ],
)

TEMPLATE_SCHEMA = _resource_schema({"category": _TEXT})
REPORT_SCHEMA = _resource_schema({"category": _TEXT}, ["category"])
GRAPH_MODEL_SCHEMA = _resource_schema({"category": _TEXT})
GRAPH_VIEW_SCHEMA = _resource_schema({"category": _TEXT})
CALCULATION_SCHEMA = _resource_schema()


# ============================================================================
# PROJECT SCHEMAS
# ============================================================================

CARDS_CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "cardKeyPrefix": {"type": "string", "pattern": "^[a-z]{3,10}$"},
        "name": _NAME,
        "modules": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"name": _NAME, "location": _TEXT},
                "required": ["name"],
            },
        },
    },
    "required": ["cardKeyPrefix", "name"],
}

CARD_BASE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": _TEXT,
        "cardType": _TEXT,
        "workflowState": _TEXT,
        "rank": _TEXT,
        "lastUpdated": _TEXT,
        "links": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "linkType": _NAME,
                    "cardKey": _NAME,
                    "linkDescription": _TEXT,
                },
                "required": ["linkType", "cardKey"],
            },
        },
    },
    "required": ["title", "cardType", "workflowState", "rank"],
}


# ============================================================================
# REGISTRY
# ============================================================================

# schema id -> schema
SCHEMAS: dict[str, dict[str, Any]] = {
    "workflowSchema": WORKFLOW_SCHEMA,
    "cardTypeSchema": CARD_TYPE_SCHEMA,
    "fieldTypeSchema": FIELD_TYPE_SCHEMA,
    "linkTypeSchema": LINK_TYPE_SCHEMA,
    "templateSchema": TEMPLATE_SCHEMA,
    "reportSchema": REPORT_SCHEMA,
    "graphModelSchema": GRAPH_MODEL_SCHEMA,
    "graphViewSchema": GRAPH_VIEW_SCHEMA,
    "calculationSchema": CALCULATION_SCHEMA,
    "cardsConfigSchema": CARDS_CONFIG_SCHEMA,
    "cardBaseSchema": CARD_BASE_SCHEMA,
}

# resource type -> schema id
RESOURCE_SCHEMA_IDS: dict[str, str] = {
    "workflows": "workflowSchema",
    "cardTypes": "cardTypeSchema",
    "fieldTypes": "fieldTypeSchema",
    "linkTypes": "linkTypeSchema",
    "templates": "templateSchema",
    "reports": "reportSchema",
    "graphModels": "graphModelSchema",
    "graphViews": "graphViewSchema",
    "calculations": "calculationSchema",
}

_SCHEMA_IDS_BY_KEY = {key.lower(): key for key in (*SCHEMAS, *RESOURCE_SCHEMA_IDS)}


def _normalize(key: str) -> str | None:
    key = key.strip().lstrip("/")
    canonical = _SCHEMA_IDS_BY_KEY.get(key.lower())
    if canonical is None:
        return None
    return RESOURCE_SCHEMA_IDS.get(canonical, canonical)


def get_schema_id(key: str) -> str | None:
    """Resolve a schema id or resource type to its schema id."""
    return _normalize(key)


def get_schema(key: str) -> dict[str, Any] | None:
    """Get a schema by schema id or resource type (case insensitive)."""
    schema_id = _normalize(key)
    if schema_id is None:
        return None
    return SCHEMAS[schema_id]


def list_schema_ids() -> list[str]:
    return sorted(SCHEMAS)


def _format_error(error: jsonschema.ValidationError) -> str:
    if error.absolute_path:
        path = "/".join(str(p) for p in error.absolute_path)
        return f"{path}: {error.message}"
    return error.message


def schema_errors(key: str, document: Any) -> list[str]:
    """
    Validate a document and return all error messages.

    Args:
        key: Schema id or resource type
        document: JSON-compatible value to validate

    Returns:
        List of error messages (empty if valid)
    """
    schema = get_schema(key)
    if schema is None:
        raise ValueError(f"Unknown schema: {key}")
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path])
    return [_format_error(e) for e in errors]


def validate_document(key: str, document: Any) -> None:
    """Raise SchemaValidationError if `document` does not match its schema."""
    errors = schema_errors(key, document)
    if errors:
        raise SchemaValidationError(f"/{get_schema_id(key)}", errors)
