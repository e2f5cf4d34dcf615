"""
Resource objects, one class per resource type.

`resource_object()` maps a parsed resource name to the class that knows how
to create, update, rename and delete that type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import InvalidNameError
from ..naming import ResourceName
from .base import ResourceObject
from .calculation import CalculationResource
from .card_type import CardTypeResource
from .field_type import FieldTypeResource
from .folder import FolderResource
from .graph_model import GraphModelResource
from .graph_view import GraphViewResource
from .link_type import LinkTypeResource
from .report import ReportResource
from .template import TemplateResource
from .workflow import WorkflowResource

if TYPE_CHECKING:
    from ..containers.project import Project

# Resource type (folder name) -> resource class
RESOURCE_CLASSES: dict[str, type[ResourceObject]] = {
    cls.resource_type: cls
    for cls in (
        CalculationResource,
        CardTypeResource,
        FieldTypeResource,
        GraphModelResource,
        GraphViewResource,
        LinkTypeResource,
        ReportResource,
        TemplateResource,
        WorkflowResource,
    )
}


def get_resource_class(resource_type: str) -> type[ResourceObject] | None:
    return RESOURCE_CLASSES.get(resource_type.strip())


def resource_object(project: Project, name: ResourceName) -> ResourceObject:
    """
    Build the resource object for `name`.

    Raises:
        InvalidNameError: unknown resource type
    """
    cls = get_resource_class(name.type)
    if cls is None:
        raise InvalidNameError(f"Unknown resource type '{name.type}'")
    return cls(project, name)


__all__ = [
    "RESOURCE_CLASSES",
    "ResourceObject",
    "FolderResource",
    "CalculationResource",
    "CardTypeResource",
    "FieldTypeResource",
    "GraphModelResource",
    "GraphViewResource",
    "LinkTypeResource",
    "ReportResource",
    "TemplateResource",
    "WorkflowResource",
    "get_resource_class",
    "resource_object",
]
