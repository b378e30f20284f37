"""
RecordMutator -- applies an already-permitted change to one record.

Responsibility:
    Overlay the request (and any annotations) on the record, diff the
    before/after snapshots, write only the changed fields, and append
    exactly one audit event.

Architecture position:
    Kernel > Services.  Never evaluates rules; callers run the
    TransitionEvaluator first.

Invariants enforced:
    - Empty diff -> no store write, no audit event.
    - Status changes only when the target differs from the current status.
    - One logical mutation -> one audit event.  Status, field, tag and
      annotation changes made together share that event.
    - Read-modify-diff-write is sequential for one record.

Failure modes:
    - StoreWriteError when the record store raises.  The audit event is
      then not written.
    - StoreWriteError when the audit append fails after the record was
      written.  The written fields are put back to their prior values
      before the error propagates, so no change survives unaudited.
      A failed restore is logged as ``record_restore_failed``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from certificate_kernel.domain.audit import AuditEvent, AuditEventType
from certificate_kernel.domain.diff import FieldChange, ScalarChange, diff
from certificate_kernel.domain.ports import RecordStore
from certificate_kernel.domain.records import (
    LABEL_SET_FIELDS,
    ActorContext,
    Annotations,
    CertificateRecord,
    TransitionRequest,
    normalize_labels,
)
from certificate_kernel.exceptions import CertificateKernelError, StoreWriteError
from certificate_kernel.logging_config import get_logger
from certificate_kernel.services.audit_recorder import AuditRecorder

logger = get_logger("services.mutator")


@dataclass(frozen=True)
class Mutation:
    record: CertificateRecord
    diff: dict[str, FieldChange] = field(default_factory=dict)
    event: AuditEvent | None = None


def build_patch(
    record: CertificateRecord,
    request: TransitionRequest,
    annotations: Annotations | None = None,
) -> dict[str, Any]:
    """Field values the mutation would write, before diffing."""
    patch: dict[str, Any] = dict(request.fields)
    if request.target_status is not None and request.target_status != record.status:
        patch["status"] = request.target_status
    if annotations is not None:
        if annotations.note is not None:
            patch["notes"] = annotations.note
        if annotations.add_tags:
            base = patch.get("tags", record.tags)
            patch["tags"] = normalize_labels((*base, *annotations.add_tags))
    return patch


class RecordMutator:
    def __init__(self, record_store: RecordStore, recorder: AuditRecorder):
        self._records = record_store
        self._recorder = recorder

    def apply(
        self,
        record: CertificateRecord,
        request: TransitionRequest,
        actor: ActorContext,
        annotations: Annotations | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> Mutation:
        candidate = record.with_changes(build_patch(record, request, annotations))
        changes = diff(record.snapshot(), candidate.snapshot(), LABEL_SET_FIELDS)
        if annotations is not None and annotations.comment is not None:
            changes["comment"] = ScalarChange(before=None, after=annotations.comment)

        if not changes:
            logger.debug("mutation_noop", extra={"record_id": str(record.id)})
            return Mutation(record=record)

        write_patch = {
            name: getattr(candidate, name)
            for name in changes
            if name != "comment"
        }
        updated = self._write(record, write_patch) if write_patch else record
        try:
            event = self._recorder.record(record.id, actor, changes, context=context)
        except CertificateKernelError:
            if write_patch:
                self._restore(record, write_patch)
            raise
        return Mutation(record=updated, diff=changes, event=event)

    def create(
        self,
        record: CertificateRecord,
        actor: ActorContext,
        context: Mapping[str, Any] | None = None,
    ) -> Mutation:
        """Persist a new record and emit its ``created`` event."""
        try:
            stored = self._records.add(record)
        except CertificateKernelError:
            raise
        except Exception as exc:
            raise StoreWriteError("add", str(record.id), str(exc)) from exc

        changes = diff({}, stored.snapshot(), LABEL_SET_FIELDS)
        event = self._recorder.record(
            stored.id,
            actor,
            changes,
            event_type=AuditEventType.CREATED,
            context=context,
        )
        return Mutation(record=stored, diff=changes, event=event)

    def _write(self, record: CertificateRecord, patch: dict[str, Any]) -> CertificateRecord:
        try:
            return self._records.update(record.id, patch)
        except CertificateKernelError:
            raise
        except Exception as exc:
            logger.error(
                "record_write_failed",
                extra={"record_id": str(record.id), "fields": sorted(patch)},
                exc_info=True,
            )
            raise StoreWriteError("update", str(record.id), str(exc)) from exc

    def _restore(self, record: CertificateRecord, patch: dict[str, Any]) -> None:
        prior = {name: getattr(record, name) for name in patch}
        try:
            self._records.update(record.id, prior)
        except Exception:
            logger.error(
                "record_restore_failed",
                extra={"record_id": str(record.id), "fields": sorted(prior)},
                exc_info=True,
            )
            return
        logger.warning(
            "record_write_reverted",
            extra={"record_id": str(record.id), "fields": sorted(prior)},
        )
