"""
BulkMutationOrchestrator -- best-effort mutation of many records at once.

Contract:
    ``apply_bulk()`` partitions the requested records into blocked and
    editable by their CURRENT status, builds each editable record's
    request from the global and per-record patches, and runs the
    single-record evaluate-then-mutate path for each one independently.

Invariants enforced:
    - One record's rejection or failure never aborts or undoes another's
      mutation.  There is no cross-record transaction.  With an
      ``item_transaction`` hook (``from_session`` uses a SAVEPOINT) each
      record's writes are committed or rolled back on their own.
    - Field precedence: active global value > per-record value > unchanged.
    - Global annotations (note, added tags, comment) land in each applied
      record's own single mutation and diff.
    - applied / blocked / failed are disjoint and sum to the number of
      unique requested ids.
    - Results are reported in request order, also when run on a pool.
    - Cancellation stops new mutations; applied records stay applied.

Failure modes:
    - BulkUpdateEmptyError / BulkUpdateLimitExceededError before any work.
    - Everything after that is reported per record, never raised.

Non-goals:
    - Does NOT call ``session.commit()``; caller controls boundaries.
    - SQL-backed stores share one Session and must run with
      ``max_workers`` unset.  ``apply_bulk`` raises ValueError otherwise.
"""

from __future__ import annotations

import contextvars
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from certificate_kernel.domain.clock import Clock, SystemClock
from certificate_kernel.domain.evaluator import DEFAULT_CONFIRMATION_STATEMENT
from certificate_kernel.domain.outcomes import Applied, Blocked, Rejected
from certificate_kernel.domain.ports import AuditStore, RecordStore, RuleStore
from certificate_kernel.domain.records import (
    ActorContext,
    Annotations,
    CertificateRecord,
    TransitionRequest,
)
from certificate_kernel.exceptions import (
    BulkUpdateEmptyError,
    BulkUpdateLimitExceededError,
    CertificateKernelError,
)
from certificate_kernel.logging_config import LogContext, get_logger
from certificate_kernel.services.certificate_service import CertificateUpdateService
from certificate_kernel.stores.sql import SqlAuditStore, SqlRecordStore, SqlRuleStore

from certificate_batch.domain.types import (
    BULK_FIELDS,
    CANCELLED,
    RECORD_NOT_FOUND,
    UNHANDLED_EXCEPTION,
    BulkItemResult,
    BulkItemStatus,
    BulkOutcome,
    BulkRunStatus,
    GlobalPatch,
    RecordPatch,
)

if TYPE_CHECKING:
    from certificate_config.schema import CatalogConfiguration

logger = get_logger("batch.orchestrator")

BULK_UPDATE_MAX_LIMIT = 50


def build_request(
    record: CertificateRecord,
    global_patch: GlobalPatch,
    record_patch: RecordPatch | None,
    confirmed: bool,
    confirmation_text: str,
) -> TransitionRequest:
    """Effective request for one record under the bulk precedence rule."""
    chosen: dict[str, Any] = {}
    for name in BULK_FIELDS:
        if global_patch.provides(name):
            chosen[name] = global_patch.values.get(name)
        elif record_patch is not None and record_patch.provides(name):
            chosen[name] = record_patch.value(name)

    if record_patch is not None and record_patch.confirmed is not None:
        confirmed = record_patch.confirmed
    if record_patch is not None and record_patch.confirmation_text is not None:
        confirmation_text = record_patch.confirmation_text

    target = chosen.pop("target_status", None)
    return TransitionRequest(
        record_id=record.id,
        target_status=target,
        fields=chosen,
        confirmed=confirmed,
        confirmation_text=confirmation_text,
    )


class BulkMutationOrchestrator:
    """
    Contract:
        - ``from_stores()`` / ``from_session()`` / ``from_configuration()``
          create a fully wired orchestrator.
        - ``apply_bulk()`` returns a BulkOutcome.
    """

    def __init__(
        self,
        service: CertificateUpdateService,
        clock: Clock | None = None,
        max_records: int = BULK_UPDATE_MAX_LIMIT,
        item_transaction: Callable[[], Any] | None = None,
    ):
        """
        Args:
            item_transaction: Called once per record before its mutation.
                Returns an object with ``commit()`` and ``rollback()``;
                committed when the record is applied, rolled back on a
                rejection or an error.
        """
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self._service = service
        self._clock = clock or SystemClock()
        self._max_records = max_records
        self._item_transaction = item_transaction

    @classmethod
    def from_stores(
        cls,
        record_store: RecordStore,
        rule_store: RuleStore,
        audit_store: AuditStore,
        clock: Clock | None = None,
        max_records: int = BULK_UPDATE_MAX_LIMIT,
        default_confirmation_statement: str = DEFAULT_CONFIRMATION_STATEMENT,
        item_transaction: Callable[[], Any] | None = None,
    ) -> BulkMutationOrchestrator:
        clock = clock or SystemClock()
        service = CertificateUpdateService(
            record_store,
            rule_store,
            audit_store,
            clock=clock,
            default_confirmation_statement=default_confirmation_statement,
        )
        return cls(
            service,
            clock=clock,
            max_records=max_records,
            item_transaction=item_transaction,
        )

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        actor_id: str = "system",
        max_records: int = BULK_UPDATE_MAX_LIMIT,
        default_confirmation_statement: str = DEFAULT_CONFIRMATION_STATEMENT,
    ) -> BulkMutationOrchestrator:
        """Each record runs inside its own ``session.begin_nested()`` savepoint."""
        return cls.from_stores(
            SqlRecordStore(session, actor_id=actor_id),
            SqlRuleStore(session),
            SqlAuditStore(session),
            clock=clock,
            max_records=max_records,
            default_confirmation_statement=default_confirmation_statement,
            item_transaction=session.begin_nested,
        )

    @classmethod
    def from_configuration(
        cls,
        config: CatalogConfiguration,
        record_store: RecordStore,
        audit_store: AuditStore,
        clock: Clock | None = None,
    ) -> BulkMutationOrchestrator:
        """Rule store and limits taken from a loaded catalog configuration."""
        from certificate_config import build_rule_store

        return cls.from_stores(
            record_store,
            build_rule_store(config),
            audit_store,
            clock=clock,
            max_records=config.settings.bulk_update_max,
            default_confirmation_statement=config.settings.default_confirmation_statement,
        )

    @property
    def service(self) -> CertificateUpdateService:
        return self._service

    @property
    def max_records(self) -> int:
        return self._max_records

    # -------------------------------------------------------------------------
    # Apply
    # -------------------------------------------------------------------------

    def apply_bulk(
        self,
        record_ids: Sequence[UUID],
        global_patch: GlobalPatch | None = None,
        per_record_patches: Mapping[UUID, RecordPatch] | None = None,
        *,
        actor: ActorContext,
        annotations: Annotations | None = None,
        confirmed: bool = False,
        confirmation_text: str = "",
        cancel_event: threading.Event | None = None,
        max_workers: int | None = None,
    ) -> BulkOutcome:
        """
        Raises:
            BulkUpdateEmptyError: If ``record_ids`` is empty.
            BulkUpdateLimitExceededError: If it holds more unique ids
                than ``max_records``.
            ValueError: If ``max_workers`` asks for a pool while records
                run inside item transactions on a shared session.
        """
        if self._item_transaction is not None and max_workers is not None and max_workers > 1:
            raise ValueError("item transactions share one session; run without max_workers")
        unique_ids = list(dict.fromkeys(record_ids))
        if not unique_ids:
            raise BulkUpdateEmptyError()
        if len(unique_ids) > self._max_records:
            raise BulkUpdateLimitExceededError(len(unique_ids), self._max_records)

        global_patch = global_patch or GlobalPatch()
        per_record_patches = per_record_patches or {}
        if annotations is not None and annotations.is_empty:
            annotations = None

        batch_id = uuid4()
        start = time.monotonic()
        started_at = self._clock.now()
        context = {
            "bulk_operation": True,
            "batch_id": str(batch_id),
            "total_records": len(unique_ids),
        }

        with LogContext.bind(
            batch_id=str(batch_id),
            actor_id=actor.actor_id,
            correlation_id=actor.correlation_id or str(batch_id),
        ):
            logger.info(
                "bulk_update_started",
                extra={
                    "requested": len(unique_ids),
                    "global_fields": sorted(global_patch.active),
                    "per_record_patches": len(per_record_patches),
                },
            )

            found = {r.id: r for r in self._service.records.list_by_ids(unique_ids)}
            results: dict[int, BulkItemResult] = {}
            work: list[tuple[int, CertificateRecord]] = []

            for index, record_id in enumerate(unique_ids):
                record = found.get(record_id)
                if record is None:
                    results[index] = BulkItemResult(
                        index=index,
                        record_id=record_id,
                        record_number=None,
                        status=BulkItemStatus.FAILED,
                        code=RECORD_NOT_FOUND,
                        reason=f"Certificate record not found: {record_id}",
                    )
                    continue
                blocked = self._service.evaluator.check_eligibility(record)
                if blocked is not None:
                    results[index] = self._blocked(index, record, blocked)
                    continue
                work.append((index, record))

            def run(index: int, record: CertificateRecord) -> BulkItemResult:
                if cancel_event is not None and cancel_event.is_set():
                    return BulkItemResult(
                        index=index,
                        record_id=record.id,
                        record_number=record.record_number,
                        status=BulkItemStatus.FAILED,
                        code=CANCELLED,
                        reason="bulk update cancelled before this record was processed",
                    )
                return self._process(
                    index,
                    record,
                    lambda: build_request(
                        record,
                        global_patch,
                        per_record_patches.get(record.id),
                        confirmed,
                        confirmation_text,
                    ),
                    actor,
                    annotations,
                    context,
                )

            if max_workers is not None and max_workers > 1 and len(work) > 1:
                with ThreadPoolExecutor(max_workers=max_workers) as pool:
                    # each task gets its own copy so LogContext reaches the worker
                    futures = {
                        index: pool.submit(contextvars.copy_context().run, run, index, record)
                        for index, record in work
                    }
                    for index, future in futures.items():
                        results[index] = future.result()
            else:
                for index, record in work:
                    results[index] = run(index, record)

            ordered = tuple(results[i] for i in range(len(unique_ids)))
            cancelled = any(r.code == CANCELLED for r in ordered)
            outcome = BulkOutcome(
                batch_id=batch_id,
                status=self._final_status(ordered, cancelled),
                requested=len(unique_ids),
                results=ordered,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start) * 1000),
            )

            logger.info(
                "bulk_update_completed",
                extra={
                    "status": outcome.status.value,
                    "requested": outcome.requested,
                    **outcome.counts,
                    "duration_ms": outcome.duration_ms,
                },
            )
        return outcome

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _process(
        self,
        index: int,
        record: CertificateRecord,
        make_request: Callable[[], TransitionRequest],
        actor: ActorContext,
        annotations: Annotations | None,
        context: Mapping[str, Any],
    ) -> BulkItemResult:
        item_start = time.monotonic()

        def failed(code: str, reason: str, rejection: Rejected | None = None) -> BulkItemResult:
            logger.warning(
                "bulk_item_failed",
                extra={
                    "record_id": str(record.id),
                    "record_number": record.record_number,
                    "error_code": code,
                    "reason": reason,
                },
            )
            return BulkItemResult(
                index=index,
                record_id=record.id,
                record_number=record.record_number,
                status=BulkItemStatus.FAILED,
                code=code,
                reason=reason,
                rejection=rejection,
                duration_ms=int((time.monotonic() - item_start) * 1000),
            )

        transaction = self._item_transaction() if self._item_transaction is not None else None
        try:
            request = make_request()
            outcome = self._service.apply_to_record(
                record, request, actor, annotations, context,
            )
            if transaction is not None:
                if isinstance(outcome, Applied):
                    transaction.commit()
                else:
                    transaction.rollback()
        except CertificateKernelError as exc:
            self._rollback_item(transaction, record)
            return failed(exc.code, str(exc))
        except Exception as exc:
            logger.error(
                "bulk_item_unhandled_exception",
                extra={"record_id": str(record.id)},
                exc_info=True,
            )
            self._rollback_item(transaction, record)
            return failed(UNHANDLED_EXCEPTION, str(exc))

        if isinstance(outcome, Blocked):
            return self._blocked(index, record, outcome)
        if isinstance(outcome, Rejected):
            return failed(outcome.code, outcome.reason, rejection=outcome)

        assert isinstance(outcome, Applied)
        return BulkItemResult(
            index=index,
            record_id=record.id,
            record_number=record.record_number,
            status=BulkItemStatus.APPLIED,
            diff=outcome.diff,
            audit_event_id=outcome.event.id if outcome.event is not None else None,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )

    @staticmethod
    def _rollback_item(transaction: Any, record: CertificateRecord) -> None:
        if transaction is None:
            return
        transaction.rollback()
        logger.info("bulk_item_rolled_back", extra={"record_id": str(record.id)})

    @staticmethod
    def _blocked(index: int, record: CertificateRecord, blocked: Blocked) -> BulkItemResult:
        return BulkItemResult(
            index=index,
            record_id=record.id,
            record_number=record.record_number,
            status=BulkItemStatus.BLOCKED,
            code="STATUS_LOCKED",
            reason=blocked.reason,
        )

    @staticmethod
    def _final_status(results: Sequence[BulkItemResult], cancelled: bool) -> BulkRunStatus:
        if cancelled:
            return BulkRunStatus.CANCELLED
        applied = sum(1 for r in results if r.status is BulkItemStatus.APPLIED)
        if applied == len(results):
            return BulkRunStatus.COMPLETED
        if applied == 0:
            return BulkRunStatus.FAILED
        return BulkRunStatus.PARTIALLY_COMPLETED
