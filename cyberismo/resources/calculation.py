from __future__ import annotations

from typing import Any

from .. import defaults
from .folder import FolderResource


class CalculationResource(FolderResource):
    """Logic program stored in `calculation.lp`."""

    resource_type = "calculations"
    content_files = {"calculation.lp": "calculation"}

    def default_content(self) -> dict[str, Any]:
        return defaults.metadata(str(self.name))

    def default_files(self) -> dict[str, str]:
        return {"calculation.lp": defaults.logic_program_placeholder(self.name.identifier)}

    def usage(self, cards=None) -> list[str]:
        # its own program mentioning its name is not a usage
        return [u for u in super().usage(cards) if u != str(self.name)]
