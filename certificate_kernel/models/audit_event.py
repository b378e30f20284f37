"""
Module: certificate_kernel.models.audit_event
Responsibility: ORM persistence for the certificate audit trail.
Architecture position: Kernel > Models.

Invariants enforced:
    - Rows are append-only; UPDATE and DELETE are rejected by the listeners
      in db/immutability.py.
    - ``record_seq`` orders events within one record and is unique per
      record, so events stamped with the same instant keep append order.
    - ``payload_hash`` is the SHA-256 of the canonical JSON of the change
      payload, for tamper detection on export.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from certificate_kernel.db.base import Base, UUIDString
from certificate_kernel.domain.audit import AuditEvent, AuditEventType
from certificate_kernel.domain.diff import changes_from_payload, to_json_safe
from certificate_kernel.utils.hashing import hash_payload


class AuditEventModel(Base):
    """
    Contract:
        One row per AuditEvent.  ``changes`` holds the loose serialized
        form (``{"before", "after"}`` or ``{"added", "removed"}`` per field).

    Non-goals:
        Does not compute diffs; the AuditRecorder hands over finished events.
    """

    __tablename__ = "certificate_audit_events"

    __table_args__ = (
        UniqueConstraint("record_id", "record_seq", name="uq_audit_record_seq"),
        Index("ix_audit_events_record", "record_id", "record_seq"),
        Index("ix_audit_events_type", "event_type"),
    )

    record_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    record_seq: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    actor_role: Mapped[str] = mapped_column(String(50), nullable=False)
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    changes: Mapped[dict] = mapped_column(JSON, nullable=False)
    context: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_dto(self) -> AuditEvent:
        created_at = self.created_at
        if created_at.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC.
            created_at = created_at.replace(tzinfo=timezone.utc)
        return AuditEvent(
            id=self.id,
            record_id=self.record_id,
            actor_id=self.actor_id,
            actor_role=self.actor_role,
            event_type=AuditEventType(self.event_type),
            changes=changes_from_payload(self.changes),
            created_at=created_at,
            context=dict(self.context or {}),
        )

    @classmethod
    def from_dto(cls, dto: AuditEvent, record_seq: int) -> AuditEventModel:
        changes = dto.changes_payload()
        return cls(
            id=dto.id,
            record_id=dto.record_id,
            record_seq=record_seq,
            actor_id=dto.actor_id,
            actor_role=dto.actor_role,
            event_type=dto.event_type.value,
            changes=changes,
            context=to_json_safe(dict(dto.context)) or None,
            payload_hash=hash_payload(changes),
            created_at=dto.created_at.astimezone(timezone.utc),
        )

    def __repr__(self) -> str:
        return f"<AuditEventModel {self.event_type} on {self.record_id} #{self.record_seq}>"
