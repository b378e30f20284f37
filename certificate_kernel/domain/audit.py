"""
Audit event value objects.

An AuditEvent is the only source of historical truth for a record's
timeline.  Once appended it is never mutated or deleted.  Changes are held
as typed FieldChange values and serialized only when handed to a store.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from certificate_kernel.domain.diff import (
    FieldChange,
    LabelSetChange,
    changes_from_payload,
    changes_to_payload,
)


class AuditEventType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
    TAGS_UPDATED = "tags_updated"


def classify_changes(changes: Mapping[str, FieldChange]) -> AuditEventType:
    """
    Event type for a single mutation.

    Only the status changed -> status_changed.  Only the tags changed ->
    tags_updated.  Anything else, including status or tags alongside other
    fields, folds into one ``updated`` event.
    """
    names = set(changes)
    if names == {"status"}:
        return AuditEventType.STATUS_CHANGED
    if names == {"tags"} and isinstance(changes["tags"], LabelSetChange):
        return AuditEventType.TAGS_UPDATED
    return AuditEventType.UPDATED


@dataclass(frozen=True)
class AuditEvent:
    id: UUID
    record_id: UUID
    actor_id: str
    actor_role: str
    event_type: AuditEventType
    changes: Mapping[str, FieldChange]
    created_at: datetime
    context: Mapping[str, Any] = field(default_factory=dict)

    def changes_payload(self) -> dict[str, dict[str, Any]]:
        return changes_to_payload(self.changes)

    def to_payload(self) -> dict[str, Any]:
        """Loose JSON-compatible form for stores and APIs."""
        return {
            "id": str(self.id),
            "record_id": str(self.record_id),
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "event_type": self.event_type.value,
            "changes": self.changes_payload(),
            "created_at": self.created_at.isoformat(),
            "context": dict(self.context),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AuditEvent":
        return cls(
            id=UUID(str(payload["id"])),
            record_id=UUID(str(payload["record_id"])),
            actor_id=payload["actor_id"],
            actor_role=payload["actor_role"],
            event_type=AuditEventType(payload["event_type"]),
            changes=changes_from_payload(payload.get("changes") or {}),
            created_at=datetime.fromisoformat(payload["created_at"]),
            context=dict(payload.get("context") or {}),
        )
