"""Template resource: metadata plus a folder of template cards."""

from __future__ import annotations

from typing import Any

from .. import defaults
from ..containers.card_container import CHILDREN_FOLDER
from ..containers.template import Template
from .folder import FolderResource


class TemplateResource(FolderResource):
    resource_type = "templates"

    def default_content(self) -> dict[str, Any]:
        return defaults.metadata(str(self.name))

    def create_template(self) -> dict[str, Any]:
        return self.create()

    def on_created(self) -> None:
        super().on_created()
        (self.internal_folder / CHILDREN_FOLDER).mkdir(exist_ok=True)

    def template_object(self) -> Template:
        return Template(self.internal_folder, self.project.prefix, str(self.name))

    def show(self) -> dict[str, Any]:
        data = super().show()
        data["path"] = str(self.internal_folder)
        data["numberOfCards"] = self.template_object().number_of_cards()
        return data
