"""
certificate_batch.domain.types -- Frozen value objects for bulk mutation.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - GlobalPatch only carries values for fields a caller may override,
      and only fields flagged active take part in precedence.
    - BulkOutcome buckets (applied / blocked / failed) are disjoint and
      together cover every unique requested record id.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from certificate_kernel.domain.diff import FieldChange
from certificate_kernel.domain.outcomes import Rejected
from certificate_kernel.domain.records import OVERRIDABLE_FIELDS
from certificate_kernel.exceptions import UnknownFieldError

# Fields the bulk precedence rule applies to.  ``target_status`` is
# overridable exactly like a data field.
BULK_FIELDS: tuple[str, ...] = ("target_status", *OVERRIDABLE_FIELDS)


# =============================================================================
# Status enums
# =============================================================================


class BulkRunStatus(str, Enum):
    COMPLETED = "completed"  # Every record applied
    PARTIALLY_COMPLETED = "partially_completed"  # Some blocked or failed
    FAILED = "failed"  # Nothing applied
    CANCELLED = "cancelled"  # Stopped early; applied records stay applied


class BulkItemStatus(str, Enum):
    APPLIED = "applied"
    BLOCKED = "blocked"
    FAILED = "failed"


# Failure codes that are not exception or rejection codes.
RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
CANCELLED = "CANCELLED"
UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"


# =============================================================================
# Request DTOs
# =============================================================================


def _check_fields(names) -> None:
    for name in names:
        if name not in BULK_FIELDS:
            raise UnknownFieldError(name, BULK_FIELDS)


@dataclass(frozen=True)
class GlobalPatch:
    """
    Values applied to every record, gated per field by ``active``.

    A value present in ``values`` but not named in ``active`` is ignored.
    This is the "apply to all" switch: an active global value beats the
    per-record value, which beats leaving the field unchanged.
    """

    values: Mapping[str, Any] = field(default_factory=dict)
    active: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        _check_fields(self.values)
        _check_fields(self.active)
        object.__setattr__(self, "values", dict(self.values))
        object.__setattr__(self, "active", frozenset(self.active))

    @classmethod
    def all_active(cls, **values: Any) -> GlobalPatch:
        return cls(values=values, active=frozenset(values))

    def provides(self, name: str) -> bool:
        return name in self.active


@dataclass(frozen=True)
class RecordPatch:
    """
    Per-record overrides.  ``confirmed`` / ``confirmation_text`` of None
    fall back to the bulk-level confirmation.
    """

    target_status: str | None = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    confirmed: bool | None = None
    confirmation_text: str | None = None

    def __post_init__(self) -> None:
        _check_fields(self.fields)
        object.__setattr__(self, "fields", dict(self.fields))

    def provides(self, name: str) -> bool:
        if name == "target_status":
            return bool((self.target_status or "").strip())
        return name in self.fields

    def value(self, name: str) -> Any:
        if name == "target_status":
            return self.target_status
        return self.fields[name]


# =============================================================================
# Result DTOs
# =============================================================================


@dataclass(frozen=True)
class BulkItemResult:
    """Outcome for one record in a bulk run."""

    index: int  # Position among the unique requested ids
    record_id: UUID
    record_number: str | None
    status: BulkItemStatus
    reason: str | None = None
    code: str | None = None
    rejection: Rejected | None = None
    diff: Mapping[str, FieldChange] = field(default_factory=dict)
    audit_event_id: UUID | None = None
    duration_ms: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.diff)


@dataclass(frozen=True)
class BulkOutcome:
    """
    Result of ``BulkMutationOrchestrator.apply_bulk()``.

    ``applied``, ``blocked`` and ``failed`` are each in request order.
    ``results`` holds every item in request order.
    """

    batch_id: UUID
    status: BulkRunStatus
    requested: int
    results: tuple[BulkItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    def _bucket(self, status: BulkItemStatus) -> tuple[BulkItemResult, ...]:
        return tuple(r for r in self.results if r.status is status)

    @property
    def applied(self) -> tuple[BulkItemResult, ...]:
        return self._bucket(BulkItemStatus.APPLIED)

    @property
    def blocked(self) -> tuple[BulkItemResult, ...]:
        return self._bucket(BulkItemStatus.BLOCKED)

    @property
    def failed(self) -> tuple[BulkItemResult, ...]:
        return self._bucket(BulkItemStatus.FAILED)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "applied": len(self.applied),
            "blocked": len(self.blocked),
            "failed": len(self.failed),
        }
