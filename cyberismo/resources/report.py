from __future__ import annotations

from typing import Any

from .. import defaults
from .folder import PARAMETER_SCHEMA_FILE, FolderResource


class ReportResource(FolderResource):
    """Report: content template, query template and parameter schema."""

    resource_type = "reports"
    content_files = {
        "index.adoc.hbs": "contentTemplate",
        "query.lp.hbs": "queryTemplate",
        PARAMETER_SCHEMA_FILE: "schema",
    }

    def default_content(self) -> dict[str, Any]:
        return defaults.report(str(self.name))

    def default_files(self) -> dict[str, str]:
        return defaults.report_files(self.name.identifier)

    def create_report(self) -> dict[str, Any]:
        return self.create()

    def handlebar_files(self) -> list[str]:
        if not self.internal_folder.is_dir():
            return []
        return sorted(p.name for p in self.internal_folder.iterdir() if p.suffix == ".hbs")
