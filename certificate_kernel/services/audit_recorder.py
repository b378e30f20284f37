"""
AuditRecorder -- builds and appends immutable audit events.

Responsibility:
    Turn a computed diff into exactly one AuditEvent, stamp it with an id
    and a time from the injected Clock, and append it to the AuditStore.
    Also serves the read path (``history``) for collaborators.

Architecture position:
    Kernel > Services.  Called by RecordMutator and CertificateUpdateService.

Invariants enforced:
    - One event per call; events are never updated after append.
    - Event type is derived from the changed fields unless the caller
      names one (``created``).

Failure modes:
    - StoreWriteError when the audit store raises on append.  The record
      write that preceded it is NOT undone; the caller owns transactions.
"""

from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID, uuid4

from certificate_kernel.domain.audit import AuditEvent, AuditEventType, classify_changes
from certificate_kernel.domain.clock import Clock, SystemClock
from certificate_kernel.domain.diff import FieldChange
from certificate_kernel.domain.ports import AuditStore
from certificate_kernel.domain.records import ActorContext
from certificate_kernel.exceptions import CertificateKernelError, StoreWriteError
from certificate_kernel.logging_config import get_logger

logger = get_logger("services.audit_recorder")


class AuditRecorder:
    def __init__(
        self,
        audit_store: AuditStore,
        clock: Clock | None = None,
        id_factory: Callable[[], UUID] = uuid4,
    ):
        self._store = audit_store
        self._clock = clock or SystemClock()
        self._id_factory = id_factory

    def record(
        self,
        record_id: UUID,
        actor: ActorContext,
        changes: Mapping[str, FieldChange],
        event_type: AuditEventType | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> AuditEvent:
        """
        Append one event describing ``changes``.

        Raises:
            ValueError: If ``changes`` is empty.  Empty diffs are no-ops
                and must not reach the trail.
            StoreWriteError: If the audit store fails.
        """
        if not changes:
            raise ValueError("Refusing to record an audit event with no changes")

        event = AuditEvent(
            id=self._id_factory(),
            record_id=record_id,
            actor_id=actor.actor_id,
            actor_role=actor.actor_role,
            event_type=event_type or classify_changes(changes),
            changes=dict(changes),
            created_at=self._clock.now(),
            context=dict(context or {}),
        )

        try:
            self._store.append(event)
        except CertificateKernelError:
            raise
        except Exception as exc:
            logger.error(
                "audit_append_failed",
                extra={"record_id": str(record_id), "event_type": event.event_type.value},
                exc_info=True,
            )
            raise StoreWriteError("audit_append", str(record_id), str(exc)) from exc

        logger.info(
            "audit_event_recorded",
            extra={
                "audit_event_id": str(event.id),
                "record_id": str(record_id),
                "event_type": event.event_type.value,
                "fields": sorted(changes),
            },
        )
        return event

    def history(self, record_id: UUID) -> list[AuditEvent]:
        return self._store.list_by_record(record_id)
