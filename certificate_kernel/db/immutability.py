"""
ORM-level immutability enforcement for the audit trail.

SQLAlchemy fires ``before_update`` / ``before_delete`` mapper events before
any SQL is sent.  The listeners here reject both for AuditEventModel, so
an audit row, once flushed, can only ever be read:

    session.flush()
         |
         v
    [before_update] --> _check_audit_event_immutability() --> ImmutabilityViolationError
    [before_delete] --> _check_audit_event_delete() --------^

Usage:

    from certificate_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()   # once at startup (create_tables does it)

    unregister_immutability_listeners() # TESTS ONLY
"""

from sqlalchemy import event

from certificate_kernel.exceptions import ImmutabilityViolationError
from certificate_kernel.logging_config import get_logger
from certificate_kernel.models.audit_event import AuditEventModel

logger = get_logger("db.immutability")


def _check_audit_event_immutability(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditEvent",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditEvent",
        entity_id=str(target.id),
        reason="Audit events are immutable and cannot be modified",
    )


def _check_audit_event_delete(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditEvent",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditEvent",
        entity_id=str(target.id),
        reason="Audit events cannot be deleted",
    )


_LISTENERS = (
    ("before_update", _check_audit_event_immutability),
    ("before_delete", _check_audit_event_delete),
)


def register_immutability_listeners() -> None:
    """Register the audit listeners.  Safe to call more than once."""
    for event_name, listener in _LISTENERS:
        if not event.contains(AuditEventModel, event_name, listener):
            event.listen(AuditEventModel, event_name, listener)


def unregister_immutability_listeners() -> None:
    """Remove the audit listeners.  FOR TESTING ONLY."""
    for event_name, listener in _LISTENERS:
        if event.contains(AuditEventModel, event_name, listener):
            event.remove(AuditEventModel, event_name, listener)
