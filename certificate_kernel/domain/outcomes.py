"""
Transition outcomes.

Evaluation results are values, never exceptions:

    Permitted  -- evaluator hand-off: all checks passed, mutate.
    Blocked    -- current status forbids any edit; excluded, not retried.
    Rejected   -- target status requirements unmet (missing fields,
                  confirmation, conflicting configuration, unknown target).
    Applied    -- mutation written (or a no-op with an empty diff).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from certificate_kernel.domain.audit import AuditEvent
from certificate_kernel.domain.diff import FieldChange
from certificate_kernel.domain.records import CertificateRecord
from certificate_kernel.domain.status import RequiredField, ValidationRequirement


class RejectionKind(str, Enum):
    CONFLICT = "conflict"
    INVALID_TARGET = "invalid_target"
    MISSING_FIELDS = "missing_fields"
    CONFIRMATION_REQUIRED = "confirmation_required"

    @property
    def code(self) -> str:
        return _REJECTION_CODES[self]


_REJECTION_CODES = {
    RejectionKind.CONFLICT: "CONFIGURATION_CONFLICT",
    RejectionKind.INVALID_TARGET: "INVALID_TARGET_STATUS",
    RejectionKind.MISSING_FIELDS: "MISSING_FIELDS",
    RejectionKind.CONFIRMATION_REQUIRED: "CONFIRMATION_REQUIRED",
}


@dataclass(frozen=True)
class Permitted:
    """All checks passed; ``required_statement`` is what was confirmed, if anything."""

    target_status: str | None = None
    required_statement: str | None = None
    requirements: tuple[ValidationRequirement, ...] = ()

    @property
    def is_transition(self) -> bool:
        return self.target_status is not None


@dataclass(frozen=True)
class Blocked:
    reason: str
    status_name: str


@dataclass(frozen=True)
class Rejected:
    """
    Target-status requirements were not satisfied.

    ``conflict`` is a rule-catalog defect (two different confirmation
    statements on one status) and is not fixable by the caller.  Every
    other kind is recoverable by resubmitting with more data.
    """

    target_status: str
    missing_fields: tuple[RequiredField, ...] = ()
    requires_confirmation: bool = False
    conflict: bool = False
    invalid_target: bool = False
    required_statement: str | None = None
    conflicting_statements: tuple[str, ...] = ()

    @property
    def kind(self) -> RejectionKind:
        if self.conflict:
            return RejectionKind.CONFLICT
        if self.invalid_target:
            return RejectionKind.INVALID_TARGET
        if self.missing_fields:
            return RejectionKind.MISSING_FIELDS
        return RejectionKind.CONFIRMATION_REQUIRED

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def recoverable(self) -> bool:
        return not self.conflict

    @property
    def reason(self) -> str:
        kind = self.kind
        if kind is RejectionKind.CONFLICT:
            return (
                f"status {self.target_status} has conflicting confirmation "
                f"statements: {' / '.join(self.conflicting_statements)}"
            )
        if kind is RejectionKind.INVALID_TARGET:
            return f"status {self.target_status} does not exist or is inactive"
        if kind is RejectionKind.MISSING_FIELDS:
            names = ", ".join(f.value for f in self.missing_fields)
            return f"status {self.target_status} requires: {names}"
        return f"status {self.target_status} requires confirmation: {self.required_statement}"


@dataclass(frozen=True)
class Applied:
    """
    Mutation outcome.  ``event`` is None when the diff was empty and
    nothing was written.
    """

    record: CertificateRecord
    diff: dict[str, FieldChange] = field(default_factory=dict)
    event: AuditEvent | None = None

    @property
    def changed(self) -> bool:
        return bool(self.diff)


Evaluation = Union[Permitted, Blocked, Rejected]
TransitionOutcome = Union[Applied, Blocked, Rejected]
