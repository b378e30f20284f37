"""
Module: certificate_kernel.models.certificate
Responsibility: ORM persistence for certificate records.
Architecture position: Kernel > Models.

Money columns hold integer minor units.  Tags are a JSON list of labels.
Priority is stored as its token (``normal`` / ``urgent``).
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import JSON, BigInteger, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from certificate_kernel.db.base import TrackedBase
from certificate_kernel.domain.records import CertificateRecord, Priority

# Record attributes that map 1:1 onto columns.
_COLUMN_FIELDS = (
    "record_number",
    "status",
    "cost",
    "additional_cost",
    "order_number",
    "payment_date",
    "payment_type_id",
    "notes",
    "certificate_type",
    "parties_name",
    "owner_id",
)


class CertificateModel(TrackedBase):
    __tablename__ = "certificates"

    __table_args__ = (
        Index("ix_certificates_status", "status"),
    )

    record_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    cost: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    additional_cost: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    order_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_type_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="normal")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    certificate_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parties_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def to_dto(self) -> CertificateRecord:
        values = {name: getattr(self, name) for name in _COLUMN_FIELDS}
        return CertificateRecord(
            id=self.id,
            priority=Priority(self.priority),
            tags=tuple(self.tags or ()),
            **values,
        )

    @classmethod
    def from_dto(cls, dto: CertificateRecord, created_by_id: str) -> CertificateModel:
        values = {name: getattr(dto, name) for name in _COLUMN_FIELDS}
        return cls(
            id=dto.id,
            priority=dto.priority.value,
            tags=list(dto.tags),
            created_by_id=created_by_id,
            **values,
        )

    def apply_patch(self, patch: dict[str, Any], updated_by_id: str) -> None:
        for name, value in patch.items():
            if name == "priority":
                value = Priority(value).value
            elif name == "tags":
                value = list(value or ())
            elif name not in _COLUMN_FIELDS:
                raise AttributeError(f"CertificateModel has no column {name!r}")
            setattr(self, name, value)
        self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<CertificateModel {self.record_number} status={self.status}>"
