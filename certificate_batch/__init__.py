"""
certificate_batch -- Bulk mutation of certificate records.

Applies global and per-record changes to many records at once, one
independent evaluate-then-mutate per record, and reports every record as
applied, blocked or failed.

Architecture:
    certificate_batch/ is a top-level package.  Nothing in
    certificate_kernel/ imports from it.
"""

from certificate_batch.domain.types import (
    BulkItemResult,
    BulkItemStatus,
    BulkOutcome,
    BulkRunStatus,
    GlobalPatch,
    RecordPatch,
)
from certificate_batch.orchestrator import BULK_UPDATE_MAX_LIMIT, BulkMutationOrchestrator

__all__ = [
    "BULK_UPDATE_MAX_LIMIT",
    "BulkItemResult",
    "BulkItemStatus",
    "BulkMutationOrchestrator",
    "BulkOutcome",
    "BulkRunStatus",
    "GlobalPatch",
    "RecordPatch",
]
