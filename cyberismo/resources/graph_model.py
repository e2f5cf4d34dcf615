from __future__ import annotations

from typing import Any

from .. import defaults
from .folder import FolderResource


class GraphModelResource(FolderResource):
    resource_type = "graphModels"
    content_files = {"model.lp": "model"}

    def default_content(self) -> dict[str, Any]:
        return defaults.metadata(str(self.name))

    def default_files(self) -> dict[str, str]:
        return {"model.lp": defaults.logic_program_placeholder(self.name.identifier)}
