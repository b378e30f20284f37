"""
Status definitions and validation requirements.

Responsibility:
    Value objects describing the configurable lifecycle: which statuses
    exist, whether a record sitting in one may still be edited, and what
    a record must carry before it can move into one.

Architecture position:
    Kernel > Domain -- pure, frozen, no I/O.

Invariants enforced:
    - A status that is final, or that forbids certificate edits, admits no
      mutation of records currently in it (``StatusDefinition.is_editable``).
    - ``RequiredField`` is a closed enumeration.  New kinds of required
      field are added here and nowhere else; ``parse`` rejects anything
      outside the set with ``UnknownRequiredFieldError``.
"""

from dataclasses import dataclass
from enum import Enum

from certificate_kernel.exceptions import UnknownRequiredFieldError


def normalize_status_name(name: str | None) -> str:
    """Canonical lookup form of a status token: trimmed, lower-cased."""
    return (name or "").strip().lower()


class RequiredField(str, Enum):
    """Record fields a validation requirement may demand."""

    ORDER_NUMBER = "order-number"
    PAYMENT_DATE = "payment-date"
    PAYMENT_TYPE = "payment-type"
    COST = "cost"
    ADDITIONAL_COST = "additional-cost"

    @property
    def attribute(self) -> str:
        """Name of the CertificateRecord attribute this kind checks."""
        return _ATTRIBUTES[self]

    @classmethod
    def parse(cls, value: "str | RequiredField") -> "RequiredField":
        """
        Accept the canonical token, the record attribute name, its
        camelCase spelling, or the legacy ``record-cost`` alias.
        """
        if isinstance(value, RequiredField):
            return value
        token = (value or "").strip()
        try:
            return cls(token.lower())
        except ValueError:
            pass
        match = _ALIASES.get(token) or _ALIASES.get(token.lower())
        if match is None:
            raise UnknownRequiredFieldError(value)
        return match


_ATTRIBUTES: dict[RequiredField, str] = {
    RequiredField.ORDER_NUMBER: "order_number",
    RequiredField.PAYMENT_DATE: "payment_date",
    RequiredField.PAYMENT_TYPE: "payment_type_id",
    RequiredField.COST: "cost",
    RequiredField.ADDITIONAL_COST: "additional_cost",
}

_ALIASES: dict[str, RequiredField] = {
    "record-cost": RequiredField.COST,
    "order_number": RequiredField.ORDER_NUMBER,
    "orderNumber": RequiredField.ORDER_NUMBER,
    "payment_date": RequiredField.PAYMENT_DATE,
    "paymentDate": RequiredField.PAYMENT_DATE,
    "payment_type_id": RequiredField.PAYMENT_TYPE,
    "paymentTypeId": RequiredField.PAYMENT_TYPE,
    "additional_cost": RequiredField.ADDITIONAL_COST,
    "additionalCost": RequiredField.ADDITIONAL_COST,
}

# Exposed to callers that need to render the closed set.
REQUIRED_FIELDS: tuple[RequiredField, ...] = tuple(RequiredField)


@dataclass(frozen=True)
class StatusDefinition:
    """
    A named lifecycle state.

    ``name`` is the stable token records reference; it is stored in its
    normalized form.  ``display_name``, ``color`` and ``display_order``
    are presentation metadata carried through untouched.
    """

    name: str
    display_name: str
    can_edit_certificate: bool = True
    is_final: bool = False
    is_active: bool = True
    color: str = "#6B7280"
    display_order: int = 0
    description: str | None = None

    def __post_init__(self) -> None:
        normalized = normalize_status_name(self.name)
        if not normalized:
            raise ValueError("Status name must not be blank")
        object.__setattr__(self, "name", normalized)

    @property
    def is_editable(self) -> bool:
        return self.can_edit_certificate and not self.is_final

    @property
    def block_reason(self) -> str | None:
        """Human-readable reason records in this status cannot change."""
        if self.is_final:
            return f"status {self.name} forbids edits (final status {self.display_name})"
        if not self.can_edit_certificate:
            return f"status {self.name} forbids edits"
        return None


@dataclass(frozen=True)
class ValidationRequirement:
    """
    One rule attached to a status.

    A requirement may demand a field, a confirmation statement, both, or
    neither (a purely informational validation).  All requirements
    attached to a status must be satisfied to enter it.
    """

    status_name: str
    validation_name: str
    required_field: RequiredField | None = None
    confirmation_statement: str | None = None
    validation_description: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "status_name", normalize_status_name(self.status_name))
        if self.required_field is not None and not isinstance(
            self.required_field, RequiredField
        ):
            object.__setattr__(
                self, "required_field", RequiredField.parse(self.required_field)
            )

    @property
    def statement(self) -> str | None:
        """Trimmed confirmation statement, or None when blank."""
        text = (self.confirmation_statement or "").strip()
        return text or None
