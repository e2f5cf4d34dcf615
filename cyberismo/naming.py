"""
Resource naming: `prefix/type/identifier`.

A ResourceName is an immutable value object. Renaming a resource produces a
new name; nothing mutates an existing one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import InvalidNameError, PrefixMismatchError, TypeMismatchError

# Plural folder names, also the `type` segment of a resource name.
RESOURCE_TYPES: tuple[str, ...] = (
    "calculations",
    "cardTypes",
    "fieldTypes",
    "graphModels",
    "graphViews",
    "linkTypes",
    "reports",
    "templates",
    "workflows",
)

# Resources that own an internal folder next to their metadata file.
FOLDER_RESOURCE_TYPES: frozenset[str] = frozenset(
    {"calculations", "graphModels", "graphViews", "reports", "templates"}
)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
IDENTIFIER_MAX_LENGTH = 255
PREFIX_PATTERN = re.compile(r"^[a-z]+$")
PREFIX_MIN_LENGTH = 3
PREFIX_MAX_LENGTH = 10


@dataclass(frozen=True)
class ResourceName:
    """A parsed resource name."""

    prefix: str
    type: str
    identifier: str

    def __str__(self) -> str:
        return f"{self.prefix}/{self.type}/{self.identifier}"

    def renamed(self, identifier: str) -> ResourceName:
        """Same prefix and type, new identifier."""
        return ResourceName(self.prefix, self.type, identifier)


def is_valid_identifier(identifier: str) -> bool:
    """Check an identifier against the allowed character set and length."""
    if not identifier or len(identifier) > IDENTIFIER_MAX_LENGTH:
        return False
    if identifier in (".", ".."):
        return False
    return IDENTIFIER_PATTERN.match(identifier) is not None


def is_valid_prefix(prefix: str) -> bool:
    """Project prefixes are 3-10 lowercase ASCII letters."""
    if not PREFIX_MIN_LENGTH <= len(prefix) <= PREFIX_MAX_LENGTH:
        return False
    return PREFIX_PATTERN.match(prefix) is not None


def is_resource_type(value: str) -> bool:
    return value in RESOURCE_TYPES


def validate_identifier(identifier: str) -> None:
    if not is_valid_identifier(identifier):
        raise InvalidNameError(
            f"Resource identifier must follow naming rules. Identifier '{identifier}' is invalid"
        )


def parse_resource_name(raw: str, default_prefix: str = "") -> ResourceName:
    """
    Parse a `prefix/type/identifier` string.

    Args:
        raw: Resource name string
        default_prefix: Used when the prefix segment is empty or left out

    Returns:
        ResourceName

    Raises:
        InvalidNameError: wrong number of segments, unknown type or invalid identifier
    """
    parts = raw.strip().split("/")
    if len(parts) == 2 and default_prefix:
        parts = [default_prefix, *parts]
    if len(parts) != 3:
        raise InvalidNameError(
            f"Resource name '{raw}' must have three parts: 'prefix/type/identifier'"
        )

    prefix, resource_type, identifier = parts
    if not prefix:
        prefix = default_prefix
    if not is_resource_type(resource_type):
        raise InvalidNameError(
            f"Unknown resource type '{resource_type}' in '{raw}'. "
            f"Supported types: {', '.join(RESOURCE_TYPES)}"
        )
    validate_identifier(identifier)
    return ResourceName(prefix, resource_type, identifier)


def assert_prefix_owned(name: ResourceName, known_prefixes: list[str]) -> None:
    """Raise PrefixMismatchError unless the name's prefix is a known prefix."""
    if name.prefix not in known_prefixes:
        raise PrefixMismatchError(
            "Resource name can only refer to project that it is part of. "
            f"Prefix '{name.prefix}' is not included in '[{','.join(known_prefixes)}]'"
        )


def assert_type_matches(name: ResourceName, expected_type: str) -> None:
    """Raise TypeMismatchError when the name's type segment is not `expected_type`."""
    if name.type != expected_type:
        raise TypeMismatchError(
            "Resource name must match the resource type. "
            f"Type '{name.type}' does not match '{expected_type}'"
        )
