"""
In-memory stores.

Dict-backed implementations of RecordStore, RuleStore and AuditStore.
Each guards its maps with a lock so thread-pooled bulk runs can share
them.  Writes are last-write-wins; there is no per-record versioning.
"""

import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any
from uuid import UUID

from certificate_kernel.domain.audit import AuditEvent
from certificate_kernel.domain.records import CertificateRecord
from certificate_kernel.domain.status import (
    StatusDefinition,
    ValidationRequirement,
    normalize_status_name,
)
from certificate_kernel.exceptions import RecordNotFoundError


class InMemoryRecordStore:
    def __init__(self, records: Iterable[CertificateRecord] = ()):
        self._lock = threading.Lock()
        self._records: dict[UUID, CertificateRecord] = {r.id: r for r in records}

    def get(self, record_id: UUID) -> CertificateRecord:
        with self._lock:
            try:
                return self._records[record_id]
            except KeyError:
                raise RecordNotFoundError(str(record_id)) from None

    def update(self, record_id: UUID, patch: Mapping[str, Any]) -> CertificateRecord:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFoundError(str(record_id))
            updated = current.with_changes(patch)
            self._records[record_id] = updated
            return updated

    def list_by_ids(self, record_ids: Sequence[UUID]) -> list[CertificateRecord]:
        with self._lock:
            return [self._records[i] for i in record_ids if i in self._records]

    def add(self, record: CertificateRecord) -> CertificateRecord:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Record {record.id} already exists")
            self._records[record.id] = record
            return record


class InMemoryRuleStore:
    """Statuses and requirements held in plain dicts; ``put_*`` replaces."""

    def __init__(
        self,
        statuses: Iterable[StatusDefinition] = (),
        requirements: Iterable[ValidationRequirement] = (),
    ):
        self._lock = threading.Lock()
        self._statuses: dict[str, StatusDefinition] = {}
        self._requirements: dict[str, list[ValidationRequirement]] = {}
        for status in statuses:
            self.put_status(status)
        for requirement in requirements:
            self.add_requirement(requirement)

    def put_status(self, status: StatusDefinition) -> None:
        with self._lock:
            self._statuses[status.name] = status

    def add_requirement(self, requirement: ValidationRequirement) -> None:
        with self._lock:
            self._requirements.setdefault(requirement.status_name, []).append(requirement)

    def requirements_for_status(self, name: str) -> list[ValidationRequirement]:
        with self._lock:
            return list(self._requirements.get(normalize_status_name(name), ()))

    def get_status(self, name: str) -> StatusDefinition | None:
        with self._lock:
            return self._statuses.get(normalize_status_name(name))

    def list_statuses(self) -> list[StatusDefinition]:
        with self._lock:
            return list(self._statuses.values())


class InMemoryAuditStore:
    """Append-only.  Reads return copies; nothing can be removed."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def append(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_by_record(self, record_id: UUID) -> list[AuditEvent]:
        with self._lock:
            events = [e for e in self._events if e.record_id == record_id]
        return sorted(events, key=lambda e: e.created_at)

    def all_events(self) -> tuple[AuditEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
