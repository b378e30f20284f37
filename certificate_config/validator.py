"""
Configuration Validator (``certificate_config.validator``).

Checks a parsed CatalogConfiguration before it is turned into a rule
store.

Errors (the catalog MUST NOT be used):
    * duplicate status or validation names
    * requirements referencing unknown statuses or validations
    * required fields outside the closed RequiredField enumeration
    * a bulk limit below 1, or a blank default confirmation statement

Warnings (usable, but an administrator should look):
    * a status whose active requirements carry different confirmation
      statements.  Transitions into it are always rejected as a conflict.
    * requirements attached to inactive statuses

Status names are compared trimmed and lower-cased, and confirmation
statements trimmed, the same way the kernel compares them at runtime.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from certificate_config.schema import CatalogConfiguration
from certificate_kernel.domain.status import RequiredField, normalize_status_name
from certificate_kernel.exceptions import UnknownRequiredFieldError


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_configuration(config: CatalogConfiguration) -> ValidationReport:
    report = ValidationReport()

    if config.settings.bulk_update_max < 1:
        report.errors.append(
            f"settings.bulk_update_max must be at least 1, got {config.settings.bulk_update_max}"
        )
    if not config.settings.default_confirmation_statement:
        report.errors.append("settings.default_confirmation_statement must not be blank")

    for name, count in Counter(normalize_status_name(s.name) for s in config.statuses).items():
        if count > 1:
            report.errors.append(f"Duplicate status name: {name}")
    for name, count in Counter(v.name for v in config.validations).items():
        if count > 1:
            report.errors.append(f"Duplicate validation name: {name}")

    for validation in config.validations:
        if validation.required_field is None:
            continue
        try:
            RequiredField.parse(validation.required_field)
        except UnknownRequiredFieldError:
            report.errors.append(
                f"Validation {validation.name} requires unknown field "
                f"{validation.required_field!r}"
            )

    statuses = {normalize_status_name(s.name): s for s in config.statuses}
    statements: dict[str, set[str]] = {}
    for req in config.requirements:
        status = statuses.get(normalize_status_name(req.status))
        validation = config.validation(req.validation)
        if status is None:
            report.errors.append(
                f"Requirement {req.validation} references unknown status {req.status}"
            )
        if validation is None:
            report.errors.append(
                f"Requirement on {req.status} references unknown validation {req.validation}"
            )
        if status is None or validation is None:
            continue
        if not status.is_active:
            report.warnings.append(
                f"Requirement {req.validation} is attached to inactive status {req.status}"
            )
        text = (validation.confirmation_statement or "").strip()
        if validation.is_active and text:
            statements.setdefault(normalize_status_name(status.name), set()).add(text)

    for status_name, texts in sorted(statements.items()):
        if len(texts) > 1:
            report.warnings.append(
                f"Status {status_name} has conflicting confirmation statements "
                f"({len(texts)} distinct); transitions into it will be rejected"
            )

    return report
