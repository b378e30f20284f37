"""
CertificateUpdateService -- single-record entry point.

Responsibility:
    Fetch a record, evaluate the request against the rule catalog, and
    hand permitted changes to the RecordMutator.  Also the creation path
    (``register_created``), the tag replacement path (``update_tags``) and
    the audit read path (``history``).

Architecture position:
    Kernel > Services.  The bulk orchestrator reuses ``apply_to_record``
    for each record it processes.

Failure modes:
    - Blocked / Rejected outcomes are RETURNED, never raised.
    - RecordNotFoundError when the id is unknown (raised).
    - StoreWriteError when a store fails after validation (raised).

Audit relevance:
    Every state change that reaches a store produces exactly one audit
    event through the mutator.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

from certificate_kernel.domain.audit import AuditEvent
from certificate_kernel.domain.clock import Clock, SystemClock
from certificate_kernel.domain.evaluator import (
    DEFAULT_CONFIRMATION_STATEMENT,
    TransitionEvaluator,
)
from certificate_kernel.domain.outcomes import Applied, Blocked, Permitted, Rejected, TransitionOutcome
from certificate_kernel.domain.ports import AuditStore, RecordStore, RuleStore
from certificate_kernel.domain.records import (
    ActorContext,
    Annotations,
    CertificateRecord,
    TransitionRequest,
)
from certificate_kernel.domain.rule_catalog import RuleCatalog
from certificate_kernel.logging_config import LogContext, get_logger
from certificate_kernel.services.audit_recorder import AuditRecorder
from certificate_kernel.services.mutator import RecordMutator

logger = get_logger("services.certificate")


class CertificateUpdateService:
    """
    Evaluate-then-mutate for one record at a time.

    Contract:
        ``update()`` returns Applied, Blocked or Rejected.  Only store
        failures and unknown ids raise.

    Non-goals:
        - No authorization; the actor is copied onto the audit event.
        - No transaction control; SQL-backed stores only flush.
    """

    def __init__(
        self,
        record_store: RecordStore,
        rule_store: RuleStore,
        audit_store: AuditStore,
        clock: Clock | None = None,
        default_confirmation_statement: str = DEFAULT_CONFIRMATION_STATEMENT,
    ):
        self._records = record_store
        self._catalog = RuleCatalog(rule_store)
        self._evaluator = TransitionEvaluator(self._catalog, default_confirmation_statement)
        self._recorder = AuditRecorder(audit_store, clock or SystemClock())
        self._mutator = RecordMutator(record_store, self._recorder)

    @property
    def catalog(self) -> RuleCatalog:
        return self._catalog

    @property
    def evaluator(self) -> TransitionEvaluator:
        return self._evaluator

    @property
    def records(self) -> RecordStore:
        return self._records

    def update(
        self,
        record_id: UUID,
        request: TransitionRequest,
        actor: ActorContext,
        annotations: Annotations | None = None,
    ) -> TransitionOutcome:
        if request.record_id != record_id:
            raise ValueError(
                f"Request targets {request.record_id}, not {record_id}"
            )
        with LogContext.bind(
            record_id=str(record_id),
            actor_id=actor.actor_id,
            correlation_id=actor.correlation_id,
        ):
            record = self._records.get(record_id)
            return self.apply_to_record(record, request, actor, annotations)

    def apply_to_record(
        self,
        record: CertificateRecord,
        request: TransitionRequest,
        actor: ActorContext,
        annotations: Annotations | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> TransitionOutcome:
        """Evaluate ``request`` against an already-fetched record and apply it."""
        evaluation = self._evaluator.evaluate(record, request)

        if isinstance(evaluation, Blocked):
            logger.info(
                "transition_blocked",
                extra={
                    "record_id": str(record.id),
                    "status": evaluation.status_name,
                    "reason": evaluation.reason,
                },
            )
            return evaluation

        if isinstance(evaluation, Rejected):
            logger.info(
                "transition_rejected",
                extra={
                    "record_id": str(record.id),
                    "target_status": evaluation.target_status,
                    "rejection": evaluation.kind.value,
                    "missing_fields": [f.value for f in evaluation.missing_fields],
                },
            )
            if evaluation.conflict:
                logger.warning(
                    "confirmation_statement_conflict",
                    extra={
                        "status": evaluation.target_status,
                        "statements": list(evaluation.conflicting_statements),
                    },
                )
            return evaluation

        assert isinstance(evaluation, Permitted)
        mutation = self._mutator.apply(record, request, actor, annotations, context)

        if mutation.event is not None:
            logger.info(
                "certificate_updated",
                extra={
                    "record_id": str(record.id),
                    "event_type": mutation.event.event_type.value,
                    "fields": sorted(mutation.diff),
                },
            )
        return Applied(record=mutation.record, diff=mutation.diff, event=mutation.event)

    def update_tags(
        self,
        record_id: UUID,
        labels: Iterable[str],
        actor: ActorContext,
    ) -> TransitionOutcome:
        """Replace the tag set.  Emits ``tags_updated`` only if it changed."""
        request = TransitionRequest(record_id=record_id, fields={"tags": list(labels)})
        return self.update(record_id, request, actor)

    def register_created(
        self,
        record: CertificateRecord,
        actor: ActorContext,
    ) -> Applied:
        """Persist a new record and append its ``created`` event."""
        mutation = self._mutator.create(record, actor)
        logger.info(
            "certificate_created",
            extra={
                "record_id": str(record.id),
                "record_number": record.record_number,
                "status": record.status,
            },
        )
        return Applied(record=mutation.record, diff=mutation.diff, event=mutation.event)

    def history(self, record_id: UUID) -> list[AuditEvent]:
        return self._recorder.history(record_id)
