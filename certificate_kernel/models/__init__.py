"""SQLAlchemy ORM models backing the SQL stores."""

from certificate_kernel.models.audit_event import AuditEventModel
from certificate_kernel.models.certificate import CertificateModel
from certificate_kernel.models.status import StatusModel, ValidationRequirementModel

__all__ = [
    "AuditEventModel",
    "CertificateModel",
    "StatusModel",
    "ValidationRequirementModel",
]
