"""
RuleCatalog -- read-only view of statuses and their requirements.

Contract:
    Wraps an injected RuleStore.  Lookups normalize the status name
    (trimmed, lower-cased) and drop inactive requirements.  A status with
    no requirements yields ``[]``, never an error.

Non-goals:
    No caching.  The catalog reflects whatever the store returns at the
    moment of the call; caching belongs to the store.
"""

from certificate_kernel.domain.ports import RuleStore
from certificate_kernel.domain.status import (
    StatusDefinition,
    ValidationRequirement,
    normalize_status_name,
)


class RuleCatalog:
    def __init__(self, rule_store: RuleStore):
        self._store = rule_store

    def requirements_for(self, status_name: str) -> list[ValidationRequirement]:
        name = normalize_status_name(status_name)
        if not name:
            return []
        return [
            req for req in self._store.requirements_for_status(name) if req.is_active
        ]

    def status(self, status_name: str | None) -> StatusDefinition | None:
        name = normalize_status_name(status_name)
        if not name:
            return None
        return self._store.get_status(name)

    def active_statuses(self) -> list[StatusDefinition]:
        """Active statuses in display order."""
        return sorted(
            (s for s in self._store.list_statuses() if s.is_active),
            key=lambda s: (s.display_order, s.name),
        )


def distinct_statements(requirements: list[ValidationRequirement]) -> tuple[str, ...]:
    """Distinct non-empty trimmed confirmation statements, first-seen order."""
    seen: dict[str, None] = {}
    for req in requirements:
        if req.statement is not None:
            seen.setdefault(req.statement, None)
    return tuple(seen)
