"""
TransitionEvaluator -- decides whether a proposed change may proceed.

Responsibility:
    Given a record and a TransitionRequest, answer Permitted, Blocked or
    Rejected.  Performs no writes.

Architecture position:
    Kernel > Domain.  Reads the RuleCatalog, nothing else.

Invariants enforced:
    - A record whose CURRENT status is final or forbids edits is Blocked
      for every request, field-only requests included.  A current status
      missing from the catalog is treated the same way.
    - Two different confirmation statements on the target status are a
      configuration conflict.  Neither statement is preferred.
    - Every unmet required field is reported, not just the first.
    - ``0`` satisfies a required numeric field.
    - Confirmation matches exactly (case-sensitive) after trimming.

Check order for a status transition:
    1. target unknown or inactive       -> Rejected(invalid_target)
    2. conflicting statements           -> Rejected(conflict)
    3. missing required fields          -> Rejected(missing_fields)
    4. confirmation absent or mismatched -> Rejected(requires_confirmation)
"""

from certificate_kernel.domain.outcomes import Blocked, Evaluation, Permitted, Rejected
from certificate_kernel.domain.records import (
    CertificateRecord,
    TransitionRequest,
    is_value_filled,
)
from certificate_kernel.domain.rule_catalog import RuleCatalog, distinct_statements
from certificate_kernel.domain.status import RequiredField

DEFAULT_CONFIRMATION_STATEMENT = (
    "I have verified and confirm the changes I am about to make"
)


class TransitionEvaluator:
    def __init__(
        self,
        catalog: RuleCatalog,
        default_confirmation_statement: str = DEFAULT_CONFIRMATION_STATEMENT,
    ):
        self._catalog = catalog
        self._default_statement = default_confirmation_statement.strip()

    @property
    def default_confirmation_statement(self) -> str:
        return self._default_statement

    def check_eligibility(self, record: CertificateRecord) -> Blocked | None:
        """Blocked if the record's current status admits no edits, else None."""
        current = self._catalog.status(record.status)
        if current is None:
            return Blocked(
                reason=f"status {record.status} is not defined",
                status_name=record.status,
            )
        reason = current.block_reason
        if reason is not None:
            return Blocked(reason=reason, status_name=current.name)
        return None

    def evaluate(self, record: CertificateRecord, request: TransitionRequest) -> Evaluation:
        blocked = self.check_eligibility(record)
        if blocked is not None:
            return blocked

        target_name = request.target_status
        if target_name is None or target_name == record.status:
            return Permitted()

        target = self._catalog.status(target_name)
        if target is None or not target.is_active:
            return Rejected(target_status=target_name, invalid_target=True)

        requirements = self._catalog.requirements_for(target.name)
        if not requirements:
            return Permitted(target_status=target.name)

        statements = distinct_statements(requirements)
        if len(statements) > 1:
            return Rejected(
                target_status=target.name,
                conflict=True,
                conflicting_statements=statements,
            )

        missing = self._missing_fields(record, request, requirements)
        if missing:
            return Rejected(target_status=target.name, missing_fields=missing)

        statement = statements[0] if statements else self._default_statement
        if not request.confirmed or request.confirmation_text.strip() != statement:
            return Rejected(
                target_status=target.name,
                requires_confirmation=True,
                required_statement=statement,
            )

        return Permitted(
            target_status=target.name,
            required_statement=statement,
            requirements=tuple(requirements),
        )

    @staticmethod
    def _missing_fields(record, request, requirements) -> tuple[RequiredField, ...]:
        missing: dict[RequiredField, None] = {}
        for req in requirements:
            kind = req.required_field
            if kind is None or kind in missing:
                continue
            if not is_value_filled(request.value_for(record, kind.attribute)):
                missing[kind] = None
        return tuple(missing)
