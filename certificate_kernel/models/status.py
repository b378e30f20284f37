"""
Module: certificate_kernel.models.status
Responsibility: ORM persistence for status definitions and the validation
    requirements attached to them.
Architecture position: Kernel > Models.  Imports from db/base.py and the
    domain value objects it converts to.

Status names are stored normalized (trimmed, lower-cased) and are unique.
Requirements reference statuses by name.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from certificate_kernel.db.base import TrackedBase
from certificate_kernel.domain.status import (
    RequiredField,
    StatusDefinition,
    ValidationRequirement,
)


class StatusModel(TrackedBase):
    __tablename__ = "certificate_statuses"

    __table_args__ = (
        Index("ix_certificate_statuses_display_order", "display_order"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#6B7280")
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    can_edit_certificate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_final: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dto(self) -> StatusDefinition:
        return StatusDefinition(
            name=self.name,
            display_name=self.display_name,
            description=self.description,
            color=self.color,
            display_order=self.display_order,
            is_active=self.is_active,
            can_edit_certificate=self.can_edit_certificate,
            is_final=self.is_final,
        )

    @classmethod
    def from_dto(cls, dto: StatusDefinition, created_by_id: str) -> StatusModel:
        return cls(
            name=dto.name,
            display_name=dto.display_name,
            description=dto.description,
            color=dto.color,
            display_order=dto.display_order,
            is_active=dto.is_active,
            can_edit_certificate=dto.can_edit_certificate,
            is_final=dto.is_final,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<StatusModel {self.name} final={self.is_final} editable={self.can_edit_certificate}>"


class ValidationRequirementModel(TrackedBase):
    __tablename__ = "certificate_status_validations"

    __table_args__ = (
        UniqueConstraint(
            "status_name", "validation_name", name="uq_status_validation",
        ),
        Index("ix_status_validations_status", "status_name"),
    )

    status_name: Mapped[str] = mapped_column(String(50), nullable=False)
    validation_name: Mapped[str] = mapped_column(String(100), nullable=False)
    validation_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_field: Mapped[str | None] = mapped_column(String(30), nullable=True)
    confirmation_statement: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> ValidationRequirement:
        return ValidationRequirement(
            status_name=self.status_name,
            validation_name=self.validation_name,
            validation_description=self.validation_description,
            required_field=(
                RequiredField.parse(self.required_field) if self.required_field else None
            ),
            confirmation_statement=self.confirmation_statement,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(
        cls, dto: ValidationRequirement, created_by_id: str,
    ) -> ValidationRequirementModel:
        return cls(
            status_name=dto.status_name,
            validation_name=dto.validation_name,
            validation_description=dto.validation_description,
            required_field=dto.required_field.value if dto.required_field else None,
            confirmation_statement=dto.confirmation_statement,
            is_active=dto.is_active,
            created_by_id=created_by_id,
        )
