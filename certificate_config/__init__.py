"""
certificate_config -- single public entrypoint for the status catalog.

Responsibility:
    ``get_active_catalog()`` is how runtime code obtains the catalog of
    statuses and validation requirements.  YAML loading is internal
    tooling.  ``build_rule_store()`` bridges a loaded catalog into the
    kernel's RuleStore protocol.

Architecture position:
    Sits above ``certificate_kernel``.  The kernel never imports from
    this package.

Failure modes:
    - ``FileNotFoundError`` -- catalog file missing.
    - ``ValueError`` -- validation errors in the catalog.

Audit relevance:
    Every successful ``get_active_catalog()`` call emits a
    ``CATALOG_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying rule evaluations to the catalog that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from certificate_config.loader import load_configuration
from certificate_config.schema import CatalogConfiguration, CatalogSettings
from certificate_config.validator import ValidationReport, validate_configuration
from certificate_kernel.domain.status import StatusDefinition, ValidationRequirement
from certificate_kernel.stores.memory import InMemoryRuleStore

_logger = logging.getLogger("certificate_kernel.config")

_DEFAULT_CATALOG = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "CatalogConfiguration",
    "CatalogSettings",
    "ValidationReport",
    "build_rule_store",
    "get_active_catalog",
    "to_kernel_catalog",
    "validate_configuration",
]


def get_active_catalog(path: Path | None = None) -> CatalogConfiguration:
    """
    Load and validate the catalog.

    Args:
        path: Catalog YAML file.  Defaults to certificate_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If validation reports errors.
    """
    config = load_configuration(path or _DEFAULT_CATALOG)

    report = validate_configuration(config)
    if not report.is_valid:
        raise ValueError(
            "Catalog validation failed:\n"
            + "\n".join(f"  - {e}" for e in report.errors)
        )
    for warning in report.warnings:
        _logger.warning("catalog_config_warning", extra={"warning": warning})

    _logger.info(
        "CATALOG_CONFIG_TRACE",
        extra={
            "trace_type": "CATALOG_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "status_count": len(config.statuses),
            "requirement_count": len(config.requirements),
            "bulk_update_max": config.settings.bulk_update_max,
        },
    )
    return config


def to_kernel_catalog(
    config: CatalogConfiguration,
) -> tuple[list[StatusDefinition], list[ValidationRequirement]]:
    """Translate a catalog into kernel value objects."""
    statuses = [
        StatusDefinition(
            name=s.name,
            display_name=s.display_name,
            description=s.description,
            color=s.color,
            display_order=s.display_order,
            is_active=s.is_active,
            can_edit_certificate=s.can_edit_certificate,
            is_final=s.is_final,
        )
        for s in config.statuses
    ]
    requirements = []
    for req in config.requirements:
        validation = config.validation(req.validation)
        if validation is None:
            raise ValueError(f"Unknown validation {req.validation!r} on status {req.status!r}")
        requirements.append(
            ValidationRequirement(
                status_name=req.status,
                validation_name=validation.name,
                validation_description=validation.description,
                required_field=validation.required_field,
                confirmation_statement=validation.confirmation_statement,
                is_active=validation.is_active,
            )
        )
    return statuses, requirements


def build_rule_store(config: CatalogConfiguration) -> InMemoryRuleStore:
    statuses, requirements = to_kernel_catalog(config)
    return InMemoryRuleStore(statuses, requirements)
