"""
Collaborator contracts consumed by the kernel.

The kernel never embeds persistence.  It is handed implementations of
these protocols; see ``certificate_kernel.stores`` for the in-memory and
SQLAlchemy adapters.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol
from uuid import UUID

from certificate_kernel.domain.audit import AuditEvent
from certificate_kernel.domain.records import CertificateRecord
from certificate_kernel.domain.status import StatusDefinition, ValidationRequirement


class RecordStore(Protocol):
    def get(self, record_id: UUID) -> CertificateRecord:
        """Raises RecordNotFoundError when absent."""
        ...

    def update(self, record_id: UUID, patch: Mapping[str, Any]) -> CertificateRecord:
        ...

    def list_by_ids(self, record_ids: Sequence[UUID]) -> list[CertificateRecord]:
        """Missing ids are skipped, not raised."""
        ...

    def add(self, record: CertificateRecord) -> CertificateRecord:
        ...


class RuleStore(Protocol):
    def requirements_for_status(self, name: str) -> list[ValidationRequirement]:
        ...

    def get_status(self, name: str) -> StatusDefinition | None:
        ...

    def list_statuses(self) -> list[StatusDefinition]:
        ...


class AuditStore(Protocol):
    def append(self, event: AuditEvent) -> None:
        ...

    def list_by_record(self, record_id: UUID) -> list[AuditEvent]:
        """Events for one record, oldest first."""
        ...
