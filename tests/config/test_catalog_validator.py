"""Tests for validate_configuration()."""

from certificate_config.schema import (
    CatalogConfiguration,
    CatalogSettings,
    RequirementDef,
    StatusDef,
    ValidationDef,
)
from certificate_config.validator import validate_configuration


def _config(**overrides) -> CatalogConfiguration:
    values = dict(
        config_id="t",
        version=1,
        settings=CatalogSettings(),
        statuses=(
            StatusDef(name="pending", display_name="Pending"),
            StatusDef(name="paid", display_name="Paid"),
        ),
        validations=(
            ValidationDef(name="date", required_field="payment-date", confirmation_statement="A"),
        ),
        requirements=(RequirementDef(status="paid", validation="date"),),
    )
    values.update(overrides)
    return CatalogConfiguration(**values)


class TestValidator:
    def test_valid(self):
        report = validate_configuration(_config())
        assert report.is_valid
        assert report.warnings == []

    def test_duplicate_status(self):
        statuses = (
            StatusDef(name="paid", display_name="Paid"),
            StatusDef(name="paid", display_name="Paid again"),
        )
        report = validate_configuration(_config(statuses=statuses))
        assert "Duplicate status name: paid" in report.errors

    def test_duplicate_validation(self):
        validations = (ValidationDef(name="date"), ValidationDef(name="date"))
        report = validate_configuration(_config(validations=validations))
        assert not report.is_valid

    def test_unknown_required_field(self):
        validations = (ValidationDef(name="date", required_field="shoe-size"),)
        report = validate_configuration(_config(validations=validations))
        assert any("shoe-size" in e for e in report.errors)

    def test_dangling_references(self):
        requirements = (
            RequirementDef(status="ghost", validation="date"),
            RequirementDef(status="paid", validation="ghost"),
        )
        report = validate_configuration(_config(requirements=requirements))
        assert len(report.errors) == 2

    def test_bad_settings(self):
        report = validate_configuration(
            _config(settings=CatalogSettings(bulk_update_max=0, default_confirmation_statement=""))
        )
        assert len(report.errors) == 2

    def test_conflicting_statements_warn(self):
        validations = (
            ValidationDef(name="date", confirmation_statement="A"),
            ValidationDef(name="type", confirmation_statement="B"),
        )
        requirements = (
            RequirementDef(status="paid", validation="date"),
            RequirementDef(status="paid", validation="type"),
        )
        report = validate_configuration(
            _config(validations=validations, requirements=requirements)
        )
        assert report.is_valid
        assert any("conflicting confirmation statements" in w for w in report.warnings)

    def test_inactive_validation_not_a_conflict(self):
        validations = (
            ValidationDef(name="date", confirmation_statement="A"),
            ValidationDef(name="type", confirmation_statement="B", is_active=False),
        )
        requirements = (
            RequirementDef(status="paid", validation="date"),
            RequirementDef(status="paid", validation="type"),
        )
        report = validate_configuration(
            _config(validations=validations, requirements=requirements)
        )
        assert report.warnings == []

    def test_requirement_on_inactive_status_warns(self):
        statuses = (StatusDef(name="paid", display_name="Paid", is_active=False),)
        report = validate_configuration(_config(statuses=statuses))
        assert report.is_valid
        assert report.warnings

    def test_statement_whitespace_not_a_conflict(self):
        validations = (
            ValidationDef(name="date", confirmation_statement="I confirm"),
            ValidationDef(name="type", confirmation_statement="  I confirm "),
        )
        requirements = (
            RequirementDef(status="paid", validation="date"),
            RequirementDef(status="paid", validation="type"),
        )
        report = validate_configuration(
            _config(validations=validations, requirements=requirements)
        )
        assert report.warnings == []

    def test_blank_statement_ignored(self):
        validations = (
            ValidationDef(name="date", confirmation_statement="A"),
            ValidationDef(name="type", confirmation_statement="   "),
        )
        requirements = (
            RequirementDef(status="paid", validation="date"),
            RequirementDef(status="paid", validation="type"),
        )
        report = validate_configuration(
            _config(validations=validations, requirements=requirements)
        )
        assert report.warnings == []

    def test_status_names_compared_case_insensitively(self):
        requirements = (RequirementDef(status=" Paid", validation="date"),)
        report = validate_configuration(_config(requirements=requirements))
        assert report.is_valid

    def test_conflict_across_status_spellings(self):
        validations = (
            ValidationDef(name="date", confirmation_statement="A"),
            ValidationDef(name="type", confirmation_statement="B"),
        )
        requirements = (
            RequirementDef(status="paid", validation="date"),
            RequirementDef(status="PAID", validation="type"),
        )
        report = validate_configuration(
            _config(validations=validations, requirements=requirements)
        )
        assert any("Status paid has conflicting" in w for w in report.warnings)

    def test_duplicate_status_differing_in_case(self):
        statuses = (
            StatusDef(name="paid", display_name="Paid"),
            StatusDef(name="Paid ", display_name="Paid again"),
        )
        report = validate_configuration(_config(statuses=statuses))
        assert "Duplicate status name: paid" in report.errors
