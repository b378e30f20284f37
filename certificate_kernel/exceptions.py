"""
Typed Exception Hierarchy for the Certificate Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, batch jobs, admin tooling) must react to failures
precisely. Every error raised by this package therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Evaluation results are NOT exceptions. Blocked and Rejected outcomes are
returned as values (see certificate_kernel.domain.outcomes). The exceptions
below cover the cases where the caller asked for something that cannot be
done at all: the record does not exist, the patch is malformed, the store
failed, or the bulk request is out of bounds.

Example:
    try:
        service.update(record_id, request, actor)
    except RecordNotFoundError as e:
        api_response(status=404, code=e.code, record_id=e.record_id)
    except StoreWriteError as e:
        api_response(status=503, code=e.code, operation=e.operation)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CertificateKernelError (base)
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |
    +-- PatchError
    |   +-- UnknownFieldError
    |   +-- InvalidFieldValueError
    |   +-- UnknownRequiredFieldError
    |
    +-- StoreError
    |   +-- StoreWriteError
    |
    +-- BulkError
    |   +-- BulkUpdateEmptyError
    |   +-- BulkUpdateLimitExceededError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|-----------------------------------------
Record      | RECORD_NOT_FOUND            | Record id doesn't exist in the store
------------|-----------------------------|-----------------------------------------
Patch       | UNKNOWN_FIELD               | Patch names a field that can't be set
            | INVALID_FIELD_VALUE         | Value has the wrong shape (priority)
            | UNKNOWN_REQUIRED_FIELD      | Rule names a required field kind that
            |                             | is not in the closed enumeration
------------|-----------------------------|-----------------------------------------
Store       | STORE_WRITE_FAILED          | Record/audit store raised during write
------------|-----------------------------|-----------------------------------------
Bulk        | BULK_UPDATE_EMPTY           | Bulk request with no record ids
            | BULK_UPDATE_LIMIT_EXCEEDED  | More ids than the configured maximum
------------|-----------------------------|-----------------------------------------
Immutability| IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an audit event
===============================================================================
"""

from typing import Any


class CertificateKernelError(Exception):
    """Base exception for all certificate kernel errors."""

    code: str = "CERTIFICATE_KERNEL_ERROR"


# Record-related exceptions


class RecordError(CertificateKernelError):
    """Base exception for record-related errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """Record with the given id does not exist."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Certificate record not found: {record_id}")


# Patch-related exceptions


class PatchError(CertificateKernelError):
    """Base exception for malformed field patches."""

    code: str = "PATCH_ERROR"


class UnknownFieldError(PatchError):
    """Patch refers to a field that is not overridable."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, field_name: str, allowed: tuple[str, ...] = ()):
        self.field_name = field_name
        self.allowed = allowed
        super().__init__(
            f"Field '{field_name}' cannot be set on a certificate"
            + (f" (allowed: {', '.join(allowed)})" if allowed else "")
        )


class InvalidFieldValueError(PatchError):
    """Patch carries a value of the wrong shape for its field."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field_name: str, value: Any, reason: str):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for '{field_name}': {value!r} ({reason})")


class UnknownRequiredFieldError(PatchError):
    """A validation rule names a required-field kind outside the closed set."""

    code: str = "UNKNOWN_REQUIRED_FIELD"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown required field kind: {value!r}")


# Store-related exceptions


class StoreError(CertificateKernelError):
    """Base exception for collaborator store failures."""

    code: str = "STORE_ERROR"


class StoreWriteError(StoreError):
    """
    The record store or audit store raised after validation passed.

    Reported per record in bulk mode, raised directly in single-record
    mode. Never retried by the kernel.
    """

    code: str = "STORE_WRITE_FAILED"

    def __init__(self, operation: str, record_id: str, reason: str):
        self.operation = operation
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Store {operation} failed for {record_id}: {reason}")


# Bulk-related exceptions


class BulkError(CertificateKernelError):
    """Base exception for bulk request validation errors."""

    code: str = "BULK_ERROR"


class BulkUpdateEmptyError(BulkError):
    """Bulk request supplied no record ids."""

    code: str = "BULK_UPDATE_EMPTY"

    def __init__(self):
        super().__init__("Bulk update requires at least one record id")


class BulkUpdateLimitExceededError(BulkError):
    """Bulk request exceeds the configured maximum number of records."""

    code: str = "BULK_UPDATE_LIMIT_EXCEEDED"

    def __init__(self, requested: int, limit: int):
        self.requested = requested
        self.limit = limit
        super().__init__(
            f"Bulk update of {requested} records exceeds the limit of {limit}"
        )


# Immutability-related exceptions


class ImmutabilityError(CertificateKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Audit events are append-only from the moment they are written.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
