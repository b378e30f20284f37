"""Store adapters implementing the kernel's collaborator protocols."""

from certificate_kernel.stores.memory import (
    InMemoryAuditStore,
    InMemoryRecordStore,
    InMemoryRuleStore,
)
from certificate_kernel.stores.sql import SqlAuditStore, SqlRecordStore, SqlRuleStore

__all__ = [
    "InMemoryAuditStore",
    "InMemoryRecordStore",
    "InMemoryRuleStore",
    "SqlAuditStore",
    "SqlRecordStore",
    "SqlRuleStore",
]
