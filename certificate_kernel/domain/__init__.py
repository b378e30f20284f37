"""
Pure domain layer.

Value objects, the rule catalog view, the transition evaluator and the
audit diff.  Nothing here touches SQLAlchemy or performs I/O; stores are
reached only through the protocols in ``ports``.
"""

from certificate_kernel.domain.audit import AuditEvent, AuditEventType, classify_changes
from certificate_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from certificate_kernel.domain.diff import (
    ChangeKind,
    FieldChange,
    LabelSetChange,
    ScalarChange,
    changes_from_payload,
    changes_to_payload,
    diff,
)
from certificate_kernel.domain.evaluator import (
    DEFAULT_CONFIRMATION_STATEMENT,
    TransitionEvaluator,
)
from certificate_kernel.domain.outcomes import (
    Applied,
    Blocked,
    Permitted,
    Rejected,
    RejectionKind,
    TransitionOutcome,
)
from certificate_kernel.domain.ports import AuditStore, RecordStore, RuleStore
from certificate_kernel.domain.records import (
    OVERRIDABLE_FIELDS,
    ActorContext,
    Annotations,
    CertificateRecord,
    Priority,
    TransitionRequest,
    is_value_filled,
)
from certificate_kernel.domain.rule_catalog import RuleCatalog
from certificate_kernel.domain.status import (
    REQUIRED_FIELDS,
    RequiredField,
    StatusDefinition,
    ValidationRequirement,
)

__all__ = [
    "ActorContext",
    "Annotations",
    "Applied",
    "AuditEvent",
    "AuditEventType",
    "AuditStore",
    "Blocked",
    "CertificateRecord",
    "ChangeKind",
    "Clock",
    "DEFAULT_CONFIRMATION_STATEMENT",
    "DeterministicClock",
    "FieldChange",
    "LabelSetChange",
    "OVERRIDABLE_FIELDS",
    "Permitted",
    "Priority",
    "REQUIRED_FIELDS",
    "RecordStore",
    "Rejected",
    "RejectionKind",
    "RequiredField",
    "RuleCatalog",
    "RuleStore",
    "ScalarChange",
    "StatusDefinition",
    "SystemClock",
    "TransitionEvaluator",
    "TransitionOutcome",
    "TransitionRequest",
    "ValidationRequirement",
    "changes_from_payload",
    "changes_to_payload",
    "classify_changes",
    "diff",
    "is_value_filled",
]
