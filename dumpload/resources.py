"""
dumpload/resources.py

Ordered resource configuration: which destination table is loaded from which
file, and in what order.

A resources file is JSON:

    {"resources": [{"resource": "customers", "source": "dump/customers.csv"}]}

Relative `source` locators resolve against the extracted dump directory.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class ResourceConfig(BaseModel):
    """
    One resource identifier and the locator of its CSV source.
    """

    resource: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)

    @field_validator("resource", "source")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    def resolve_source(self, base_dir: str | Path) -> Path:
        path = Path(self.source)
        if path.is_absolute():
            return path
        return Path(base_dir) / path


class ResourcesFile(BaseModel):
    """
    Top-level resources document; order defines orchestration order.
    """

    resources: list[ResourceConfig] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _reject_duplicates(self) -> ResourcesFile:
        seen: set[str] = set()
        for entry in self.resources:
            if entry.resource in seen:
                raise ValueError(f"resource '{entry.resource}' is configured more than once")
            seen.add(entry.resource)
        return self


DEFAULT_RESOURCES: tuple[ResourceConfig, ...] = (
    ResourceConfig(resource="customers", source="dump/customers.csv"),
    ResourceConfig(resource="organizations", source="dump/organizations.csv"),
)


def load_resource_configs(config_path: str | Path | None = None) -> list[ResourceConfig]:
    """
    Load resource configurations from a JSON file, or return the built-in defaults.
    """

    if config_path is None:
        return list(DEFAULT_RESOURCES)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Resources config file not found: {path}")

    try:
        parsed = ResourcesFile.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise ValueError(f"Invalid resources config {path}: {exc}") from exc
    return list(parsed.resources)
