"""
Configuration schema (``certificate_config.schema``).

Frozen dataclasses describing a status catalog as authored in YAML.
Parsing lives in ``loader``; structural checks live in ``validator``.
Nothing here touches the kernel's runtime objects.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_BULK_UPDATE_MAX = 50
DEFAULT_CONFIRMATION_STATEMENT = (
    "I have verified and confirm the changes I am about to make"
)


@dataclass(frozen=True)
class CatalogSettings:
    bulk_update_max: int = DEFAULT_BULK_UPDATE_MAX
    default_confirmation_statement: str = DEFAULT_CONFIRMATION_STATEMENT


@dataclass(frozen=True)
class StatusDef:
    name: str
    display_name: str
    description: str | None = None
    color: str = "#6B7280"
    display_order: int = 0
    is_active: bool = True
    can_edit_certificate: bool = True
    is_final: bool = False


@dataclass(frozen=True)
class ValidationDef:
    """A reusable validation; attached to statuses through RequirementDef."""

    name: str
    description: str | None = None
    required_field: str | None = None
    confirmation_statement: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class RequirementDef:
    status: str
    validation: str


@dataclass(frozen=True)
class CatalogConfiguration:
    """A complete, parsed catalog.  ``checksum`` identifies its source content."""

    config_id: str
    version: int
    settings: CatalogSettings
    statuses: tuple[StatusDef, ...] = ()
    validations: tuple[ValidationDef, ...] = ()
    requirements: tuple[RequirementDef, ...] = ()
    checksum: str = ""

    def validation(self, name: str) -> ValidationDef | None:
        for v in self.validations:
            if v.name == name:
                return v
        return None
