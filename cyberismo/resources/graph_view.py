from __future__ import annotations

from typing import Any

from .. import defaults
from .folder import PARAMETER_SCHEMA_FILE, FolderResource


class GraphViewResource(FolderResource):
    """View template plus the JSON schema of its macro parameters."""

    resource_type = "graphViews"
    content_files = {"view.lp.hbs": "viewTemplate", PARAMETER_SCHEMA_FILE: "schema"}

    def default_content(self) -> dict[str, Any]:
        return defaults.metadata(str(self.name))

    def default_files(self) -> dict[str, str]:
        return defaults.graph_view_files(self.name.identifier)
