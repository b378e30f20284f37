"""Tests for CertificateUpdateService."""

from uuid import uuid4

import pytest

from certificate_kernel.domain.audit import AuditEventType
from certificate_kernel.domain.diff import ScalarChange
from certificate_kernel.domain.outcomes import Applied, Blocked, Rejected
from certificate_kernel.domain.records import (
    Annotations,
    CertificateRecord,
    TransitionRequest,
)
from certificate_kernel.exceptions import RecordNotFoundError, StoreWriteError
from certificate_kernel.services.certificate_service import CertificateUpdateService
from certificate_kernel.stores.memory import InMemoryAuditStore, InMemoryRecordStore


class _FailingRecordStore(InMemoryRecordStore):
    def update(self, record_id, patch):
        raise ConnectionError("database went away")


class _WriteOnceRecordStore(InMemoryRecordStore):
    def __init__(self, records):
        super().__init__(records)
        self.writes = 0

    def update(self, record_id, patch):
        self.writes += 1
        if self.writes > 1:
            raise ConnectionError("database went away")
        return super().update(record_id, patch)


class _FailingAuditStore(InMemoryAuditStore):
    def append(self, event):
        raise ConnectionError("audit table locked")


# =============================================================================
# Lookup and argument errors
# =============================================================================


class TestErrors:
    def test_unknown_record(self, service, actor):
        record_id = uuid4()
        with pytest.raises(RecordNotFoundError) as exc_info:
            service.update(record_id, TransitionRequest(record_id, "paid"), actor)
        assert exc_info.value.code == "RECORD_NOT_FOUND"

    def test_request_for_other_record(self, service, make_record, actor):
        record = make_record()
        with pytest.raises(ValueError):
            service.update(record.id, TransitionRequest(uuid4(), "paid"), actor)

    def test_record_store_failure_raises(self, rule_store, audit_store, clock, actor):
        record = CertificateRecord(id=uuid4(), record_number="C-9", status="pending")
        store = _FailingRecordStore([record])
        service = CertificateUpdateService(store, rule_store, audit_store, clock=clock)

        with pytest.raises(StoreWriteError) as exc_info:
            service.update(record.id, TransitionRequest(record.id, "in_progress"), actor)

        assert exc_info.value.code == "STORE_WRITE_FAILED"
        assert "database went away" in str(exc_info.value)
        assert len(audit_store) == 0

    def test_audit_store_failure_raises(self, rule_store, record_store, clock, actor, make_record):
        record = make_record()
        service = CertificateUpdateService(
            record_store, rule_store, _FailingAuditStore(), clock=clock,
        )
        with pytest.raises(StoreWriteError) as exc_info:
            service.update(record.id, TransitionRequest(record.id, "in_progress"), actor)

        assert exc_info.value.operation == "audit_append"
        assert record_store.get(record.id) == record

    def test_audit_failure_restores_every_written_field(
        self, rule_store, record_store, clock, actor, make_record, captured_logs,
    ):
        record = make_record("pending", cost=100, tags=("a",), notes="before")
        service = CertificateUpdateService(
            record_store, rule_store, _FailingAuditStore(), clock=clock,
        )
        request = TransitionRequest(
            record.id, "in_progress", fields={"cost": 250, "order_number": "PO-7"},
        )

        with pytest.raises(StoreWriteError):
            service.update(
                record.id, request, actor, Annotations(note="after", add_tags=("b",)),
            )

        assert record_store.get(record.id) == record
        reverted = [r for r in captured_logs() if r["message"] == "record_write_reverted"]
        assert len(reverted) == 1
        assert reverted[0]["fields"] == ["cost", "notes", "order_number", "status", "tags"]

    def test_failed_restore_is_logged_and_original_error_raised(
        self, rule_store, clock, actor, captured_logs,
    ):
        record = CertificateRecord(id=uuid4(), record_number="C-8", status="pending")
        store = _WriteOnceRecordStore([record])
        service = CertificateUpdateService(store, rule_store, _FailingAuditStore(), clock=clock)

        with pytest.raises(StoreWriteError) as exc_info:
            service.update(record.id, TransitionRequest(record.id, "in_progress"), actor)

        assert exc_info.value.operation == "audit_append"
        failures = [r for r in captured_logs() if r["message"] == "record_restore_failed"]
        assert failures[0]["exc_message"] == "database went away"


# =============================================================================
# No-op and event types
# =============================================================================


class TestMutationSemantics:
    def test_identical_request_is_noop(self, service, make_record, actor, audit_store):
        record = make_record("pending", cost=100)

        outcome = service.update(
            record.id, TransitionRequest(record.id, "pending", fields={"cost": 100}), actor,
        )

        assert isinstance(outcome, Applied)
        assert not outcome.changed
        assert outcome.event is None
        assert len(audit_store) == 0

    def test_second_identical_update_is_noop(self, service, make_record, actor, audit_store):
        record = make_record()
        request = TransitionRequest(record.id, fields={"order_number": "PO-1"})

        first = service.update(record.id, request, actor)
        second = service.update(record.id, request, actor)

        assert first.changed
        assert not second.changed
        assert len(audit_store) == 1

    def test_blank_string_is_not_a_change(self, service, make_record, actor, audit_store):
        record = make_record(order_number="PO-1")
        outcome = service.update(
            record.id, TransitionRequest(record.id, fields={"order_number": "  "}), actor,
        )
        assert not outcome.changed
        assert service.records.get(record.id).order_number == "PO-1"

    def test_field_update_event(self, service, make_record, actor):
        record = make_record()
        outcome = service.update(
            record.id, TransitionRequest(record.id, fields={"cost": 0}), actor,
        )
        assert outcome.diff == {"cost": ScalarChange(before=None, after=0)}
        assert outcome.event.event_type is AuditEventType.UPDATED
        assert outcome.event.actor_id == actor.actor_id
        assert outcome.event.actor_role == actor.actor_role

    def test_event_uses_injected_clock(self, service, make_record, actor, clock):
        record = make_record()
        outcome = service.update(
            record.id, TransitionRequest(record.id, fields={"notes": "hello"}), actor,
        )
        assert outcome.event.created_at == clock.now()

    def test_annotations_share_one_event(self, service, make_record, actor, audit_store):
        record = make_record(tags=("VIP",))

        outcome = service.update(
            record.id,
            TransitionRequest(record.id, "in_progress"),
            actor,
            annotations=Annotations(note="Called customer", add_tags=("Follow-up",), comment="ok"),
        )

        assert set(outcome.diff) == {"status", "notes", "tags", "comment"}
        assert outcome.diff["comment"] == ScalarChange(before=None, after="ok")
        assert len(audit_store) == 1
        stored = service.records.get(record.id)
        assert stored.tags == ("VIP", "Follow-up")
        assert stored.notes == "Called customer"

    def test_comment_alone_records_an_event(self, service, make_record, actor, audit_store):
        record = make_record()
        outcome = service.update(
            record.id,
            TransitionRequest(record.id),
            actor,
            annotations=Annotations(comment="looked at it"),
        )
        assert set(outcome.diff) == {"comment"}
        assert len(audit_store) == 1
        assert service.records.get(record.id) == record


# =============================================================================
# Creation, tags, history
# =============================================================================


class TestCreationAndHistory:
    def test_register_created(self, service, actor, audit_store):
        record = CertificateRecord(
            id=uuid4(), record_number="CERT-NEW", status="pending", cost=10, tags=("a",),
        )

        outcome = service.register_created(record, actor)

        assert outcome.event.event_type is AuditEventType.CREATED
        assert outcome.diff["record_number"] == ScalarChange(None, "CERT-NEW")
        assert service.records.get(record.id) == record
        assert len(audit_store) == 1

    def test_update_tags_unchanged_set(self, service, make_record, actor, audit_store):
        record = make_record(tags=("a", "b"))
        outcome = service.update_tags(record.id, ["b", "a", "a"], actor)
        assert not outcome.changed
        assert len(audit_store) == 0

    def test_history_in_time_order(self, service, make_record, actor, clock):
        record = make_record()
        service.update(record.id, TransitionRequest(record.id, "in_progress"), actor)
        clock.advance(60)
        service.update(record.id, TransitionRequest(record.id, fields={"cost": 5}), actor)

        events = service.history(record.id)

        assert [e.event_type for e in events] == [
            AuditEventType.STATUS_CHANGED,
            AuditEventType.UPDATED,
        ]
        assert events[0].created_at < events[1].created_at


# =============================================================================
# Logging
# =============================================================================


class TestLogging:
    def test_rejection_logged(self, service, make_record, actor, captured_logs):
        record = make_record()
        outcome = service.update(record.id, TransitionRequest(record.id, "paid"), actor)
        assert isinstance(outcome, Rejected)

        logs = captured_logs()
        rejected = [r for r in logs if r["message"] == "transition_rejected"]
        assert rejected
        assert rejected[0]["missing_fields"] == ["payment-date"]
        assert rejected[0]["record_id"] == str(record.id)

    def test_conflict_logged_as_warning(self, service, make_record, actor, captured_logs):
        record = make_record()
        service.update(record.id, TransitionRequest(record.id, "disputed"), actor)
        logs = captured_logs()
        conflict = [r for r in logs if r["message"] == "confirmation_statement_conflict"]
        assert conflict and conflict[0]["level"] == "WARNING"

    def test_blocked_logged(self, service, make_record, actor, captured_logs):
        record = make_record("locked")
        outcome = service.update(record.id, TransitionRequest(record.id, "pending"), actor)
        assert isinstance(outcome, Blocked)
        assert any(r["message"] == "transition_blocked" for r in captured_logs())

    def test_update_logged_with_record_context(self, service, make_record, actor, captured_logs):
        record = make_record()
        service.update(record.id, TransitionRequest(record.id, "in_progress"), actor)
        updated = [r for r in captured_logs() if r["message"] == "certificate_updated"]
        assert updated[0]["fields"] == ["status"]
        assert updated[0]["actor_id"] == actor.actor_id
