"""Services for the certificate kernel (write side)."""

from certificate_kernel.services.audit_recorder import AuditRecorder
from certificate_kernel.services.certificate_service import CertificateUpdateService
from certificate_kernel.services.mutator import Mutation, RecordMutator

__all__ = [
    "AuditRecorder",
    "CertificateUpdateService",
    "Mutation",
    "RecordMutator",
]
