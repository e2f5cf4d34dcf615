from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..naming import is_valid_prefix
from ..schemas import validate_document
from .files import read_json_file, write_json_file

# Older projects used an all-lowercase file name.
LEGACY_CONFIG_FILE_NAME = "cardsconfig.json"


@dataclass(frozen=True)
class ModuleSetting:
    name: str
    location: str | None = None


@dataclass(frozen=True)
class ProjectConfiguration:
    prefix: str
    name: str
    modules: list[ModuleSetting] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"cardKeyPrefix": self.prefix, "name": self.name}
        if self.modules:
            data["modules"] = [
                {"name": m.name, **({"location": m.location} if m.location else {})}
                for m in self.modules
            ]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfiguration:
        validate_document("cardsConfigSchema", data)
        modules = [
            ModuleSetting(name=str(m["name"]), location=m.get("location"))
            for m in data.get("modules", [])
            if isinstance(m, dict)
        ]
        return cls(prefix=data["cardKeyPrefix"], name=data["name"], modules=modules)


def _config_path(path: Path) -> Path:
    if path.exists():
        return path
    legacy = path.with_name(LEGACY_CONFIG_FILE_NAME)
    return legacy if legacy.exists() else path


def load_project_configuration(path: Path) -> ProjectConfiguration:
    """
    Load `cardsConfig.json`.

    Raises:
        ValueError: missing file, invalid JSON or schema violation
    """
    return ProjectConfiguration.from_dict(read_json_file(_config_path(path)))


def save_project_configuration(path: Path, config: ProjectConfiguration) -> None:
    if not is_valid_prefix(config.prefix):
        raise ValueError(f"Invalid card key prefix '{config.prefix}'")
    write_json_file(path, config.to_dict())
