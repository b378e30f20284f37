"""Tests for certificate_kernel.domain.status."""

from dataclasses import FrozenInstanceError

import pytest

from certificate_kernel.domain.status import (
    REQUIRED_FIELDS,
    RequiredField,
    StatusDefinition,
    ValidationRequirement,
    normalize_status_name,
)
from certificate_kernel.exceptions import UnknownRequiredFieldError


# =============================================================================
# RequiredField
# =============================================================================


class TestRequiredField:
    def test_closed_set(self):
        assert {f.value for f in REQUIRED_FIELDS} == {
            "order-number",
            "payment-date",
            "payment-type",
            "cost",
            "additional-cost",
        }

    def test_is_str_enum(self):
        assert isinstance(RequiredField.COST, str)

    @pytest.mark.parametrize(
        "kind, attribute",
        [
            (RequiredField.COST, "cost"),
            (RequiredField.ADDITIONAL_COST, "additional_cost"),
            (RequiredField.ORDER_NUMBER, "order_number"),
            (RequiredField.PAYMENT_DATE, "payment_date"),
            (RequiredField.PAYMENT_TYPE, "payment_type_id"),
        ],
    )
    def test_attribute_mapping(self, kind, attribute):
        assert kind.attribute == attribute

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("payment-date", RequiredField.PAYMENT_DATE),
            ("  Payment-Date ", RequiredField.PAYMENT_DATE),
            ("record-cost", RequiredField.COST),
            ("paymentTypeId", RequiredField.PAYMENT_TYPE),
            ("additional_cost", RequiredField.ADDITIONAL_COST),
            (RequiredField.ORDER_NUMBER, RequiredField.ORDER_NUMBER),
        ],
    )
    def test_parse_accepts_known_spellings(self, raw, expected):
        assert RequiredField.parse(raw) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(UnknownRequiredFieldError) as exc_info:
            RequiredField.parse("tax-id")
        assert exc_info.value.code == "UNKNOWN_REQUIRED_FIELD"
        assert exc_info.value.value == "tax-id"


# =============================================================================
# StatusDefinition
# =============================================================================


class TestStatusDefinition:
    def test_name_is_normalized(self):
        status = StatusDefinition(name="  In_Progress ", display_name="In progress")
        assert status.name == "in_progress"

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            StatusDefinition(name="   ", display_name="Nothing")

    def test_editable_by_default(self):
        status = StatusDefinition(name="pending", display_name="Pending")
        assert status.is_editable
        assert status.block_reason is None

    def test_final_status_not_editable(self):
        status = StatusDefinition(name="done", display_name="Done", is_final=True)
        assert not status.is_editable
        assert status.block_reason.startswith("status done forbids edits")

    def test_locked_status_not_editable(self):
        status = StatusDefinition(
            name="locked", display_name="Locked", can_edit_certificate=False,
        )
        assert not status.is_editable
        assert status.block_reason == "status locked forbids edits"

    def test_frozen(self):
        status = StatusDefinition(name="pending", display_name="Pending")
        with pytest.raises(FrozenInstanceError):
            status.is_final = True  # type: ignore[misc]


# =============================================================================
# ValidationRequirement
# =============================================================================


class TestValidationRequirement:
    def test_required_field_string_is_parsed(self):
        req = ValidationRequirement(
            status_name="Paid", validation_name="v", required_field="payment-date",
        )
        assert req.required_field is RequiredField.PAYMENT_DATE
        assert req.status_name == "paid"

    def test_statement_trimmed(self):
        req = ValidationRequirement(
            status_name="paid", validation_name="v", confirmation_statement="  I confirm  ",
        )
        assert req.statement == "I confirm"

    def test_blank_statement_is_none(self):
        req = ValidationRequirement(
            status_name="paid", validation_name="v", confirmation_statement="   ",
        )
        assert req.statement is None

    def test_unknown_required_field_rejected(self):
        with pytest.raises(UnknownRequiredFieldError):
            ValidationRequirement(
                status_name="paid", validation_name="v", required_field="nope",
            )


def test_normalize_status_name_handles_none():
    assert normalize_status_name(None) == ""
    assert normalize_status_name(" PAID ") == "paid"
