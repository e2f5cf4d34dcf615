"""
Error taxonomy for resource and card operations.

All errors derive from CyberismoError, itself a ValueError, so callers that
only care about "bad input" can keep catching ValueError.
"""

from __future__ import annotations


class CyberismoError(ValueError):
    """Base class for all data handler failures."""


class InvalidNameError(CyberismoError):
    """A resource name or identifier does not follow the naming rules."""


class PrefixMismatchError(CyberismoError):
    """A resource name refers to a prefix the project does not own."""


class TypeMismatchError(CyberismoError):
    """A resource name's type segment does not match the expected type."""


class ReferenceNotFoundError(CyberismoError):
    """A referenced resource does not exist."""


class WorkflowNotFoundError(ReferenceNotFoundError):
    """A card type refers to a workflow that does not exist."""


class SchemaValidationError(CyberismoError):
    """A document failed JSON schema validation."""

    def __init__(self, schema_id: str, errors: list[str]):
        self.schema_id = schema_id
        self.errors = list(errors)
        first = self.errors[0] if self.errors else "unknown error"
        super().__init__(f"Schema '{schema_id}' validation Error: {first}")


class InvalidOperationError(CyberismoError):
    """The operation is incompatible with the target field or value."""


class NotFoundError(CyberismoError):
    """The target resource or card does not exist."""


class CrossProjectRenameError(CyberismoError):
    """A rename would move a resource to another project's prefix."""


class TypeChangeError(CyberismoError):
    """A rename would change the resource type."""


class ReadOnlyResourceError(CyberismoError):
    """Module resources cannot be modified from the importing project."""
