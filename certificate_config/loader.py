"""
Configuration Loader (``certificate_config.loader``).

Responsibility
--------------
Loads a catalog YAML file and parses it into the frozen dataclasses of
``certificate_config.schema``.  Runtime callers go through
``certificate_config.get_active_catalog()`` instead of calling this
directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from certificate_config.schema import (
    DEFAULT_BULK_UPDATE_MAX,
    DEFAULT_CONFIRMATION_STATEMENT,
    CatalogConfiguration,
    CatalogSettings,
    RequirementDef,
    StatusDef,
    ValidationDef,
)
from certificate_kernel.utils.hashing import hash_payload


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields ``{}``."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def parse_settings(data: dict[str, Any] | None) -> CatalogSettings:
    data = data or {}
    limit = data.get("bulk_update_max", DEFAULT_BULK_UPDATE_MAX)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"bulk_update_max must be an integer, got {limit!r}")
    return CatalogSettings(
        bulk_update_max=limit,
        default_confirmation_statement=str(
            data.get("default_confirmation_statement", DEFAULT_CONFIRMATION_STATEMENT)
        ).strip(),
    )


def parse_status(data: dict[str, Any]) -> StatusDef:
    return StatusDef(
        name=str(data["name"]).strip().lower(),
        display_name=str(data.get("display_name") or data["name"]),
        description=_optional_text(data.get("description")),
        color=str(data.get("color", "#6B7280")),
        display_order=int(data.get("display_order", 0)),
        is_active=_as_bool(data, "is_active", True),
        can_edit_certificate=_as_bool(data, "can_edit_certificate", True),
        is_final=_as_bool(data, "is_final", False),
    )


def parse_validation(data: dict[str, Any]) -> ValidationDef:
    return ValidationDef(
        name=str(data["name"]).strip(),
        description=_optional_text(data.get("description")),
        required_field=_optional_text(data.get("required_field")),
        confirmation_statement=_optional_text(data.get("confirmation_statement")),
        is_active=_as_bool(data, "is_active", True),
    )


def parse_requirement(data: dict[str, Any]) -> RequirementDef:
    return RequirementDef(
        status=str(data["status"]).strip().lower(),
        validation=str(data["validation"]).strip(),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical input, identical checksum."""
    return hash_payload(data)


def parse_configuration(data: dict[str, Any]) -> CatalogConfiguration:
    return CatalogConfiguration(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        settings=parse_settings(data.get("settings")),
        statuses=tuple(parse_status(s) for s in data.get("statuses") or ()),
        validations=tuple(parse_validation(v) for v in data.get("validations") or ()),
        requirements=tuple(parse_requirement(r) for r in data.get("requirements") or ()),
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> CatalogConfiguration:
    return parse_configuration(load_yaml_file(path))
