"""
SQLAlchemy-backed stores.

Contract:
    Each store wraps a caller-owned ``Session``.  Stores ``flush()`` and
    never ``commit()``; the caller decides transaction boundaries (see
    ``db.engine.session_scope``).

Failure modes:
    - RecordNotFoundError when an id is unknown.
    - StoreWriteError wrapping any SQLAlchemyError raised by a write.
"""

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from certificate_kernel.domain.audit import AuditEvent
from certificate_kernel.domain.records import CertificateRecord
from certificate_kernel.domain.status import (
    StatusDefinition,
    ValidationRequirement,
    normalize_status_name,
)
from certificate_kernel.exceptions import RecordNotFoundError, StoreWriteError
from certificate_kernel.logging_config import get_logger
from certificate_kernel.models.audit_event import AuditEventModel
from certificate_kernel.models.certificate import CertificateModel
from certificate_kernel.models.status import StatusModel, ValidationRequirementModel

logger = get_logger("stores.sql")


class SqlRecordStore:
    def __init__(self, session: Session, actor_id: str = "system"):
        self._session = session
        self._actor_id = actor_id

    def _load(self, record_id: UUID) -> CertificateModel:
        model = self._session.get(CertificateModel, record_id)
        if model is None:
            raise RecordNotFoundError(str(record_id))
        return model

    def get(self, record_id: UUID) -> CertificateRecord:
        return self._load(record_id).to_dto()

    def update(self, record_id: UUID, patch: Mapping[str, Any]) -> CertificateRecord:
        model = self._load(record_id)
        try:
            model.apply_patch(dict(patch), updated_by_id=self._actor_id)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError("update", str(record_id), str(exc)) from exc
        return model.to_dto()

    def list_by_ids(self, record_ids: Sequence[UUID]) -> list[CertificateRecord]:
        if not record_ids:
            return []
        rows = self._session.execute(
            select(CertificateModel).where(CertificateModel.id.in_(list(record_ids)))
        ).scalars()
        by_id = {row.id: row for row in rows}
        return [by_id[i].to_dto() for i in record_ids if i in by_id]

    def add(self, record: CertificateRecord) -> CertificateRecord:
        model = CertificateModel.from_dto(record, created_by_id=self._actor_id)
        try:
            self._session.add(model)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError("add", str(record.id), str(exc)) from exc
        return model.to_dto()


class SqlRuleStore:
    def __init__(self, session: Session):
        self._session = session

    def requirements_for_status(self, name: str) -> list[ValidationRequirement]:
        rows = self._session.execute(
            select(ValidationRequirementModel)
            .where(ValidationRequirementModel.status_name == normalize_status_name(name))
            .order_by(ValidationRequirementModel.validation_name)
        ).scalars()
        return [row.to_dto() for row in rows]

    def get_status(self, name: str) -> StatusDefinition | None:
        row = self._session.execute(
            select(StatusModel).where(StatusModel.name == normalize_status_name(name))
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def list_statuses(self) -> list[StatusDefinition]:
        rows = self._session.execute(
            select(StatusModel).order_by(StatusModel.display_order, StatusModel.name)
        ).scalars()
        return [row.to_dto() for row in rows]

    def load(
        self,
        statuses: Sequence[StatusDefinition],
        requirements: Sequence[ValidationRequirement],
        created_by_id: str = "system",
    ) -> None:
        """Insert a catalog (e.g. from certificate_config) into empty tables."""
        for status in statuses:
            self._session.add(StatusModel.from_dto(status, created_by_id=created_by_id))
        for requirement in requirements:
            self._session.add(
                ValidationRequirementModel.from_dto(requirement, created_by_id=created_by_id)
            )
        self._session.flush()
        logger.info(
            "rule_catalog_loaded",
            extra={"statuses": len(statuses), "requirements": len(requirements)},
        )


class SqlAuditStore:
    """Append-only.  Rows are protected by the db/immutability listeners."""

    def __init__(self, session: Session):
        self._session = session

    def append(self, event: AuditEvent) -> None:
        try:
            last_seq = self._session.execute(
                select(func.max(AuditEventModel.record_seq)).where(
                    AuditEventModel.record_id == event.record_id
                )
            ).scalar()
            model = AuditEventModel.from_dto(event, record_seq=(last_seq or 0) + 1)
            self._session.add(model)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError("audit_append", str(event.record_id), str(exc)) from exc

    def list_by_record(self, record_id: UUID) -> list[AuditEvent]:
        rows = self._session.execute(
            select(AuditEventModel)
            .where(AuditEventModel.record_id == record_id)
            .order_by(AuditEventModel.created_at, AuditEventModel.record_seq)
        ).scalars()
        return [row.to_dto() for row in rows]
