"""Tests for RuleCatalog."""

from certificate_kernel.domain.rule_catalog import RuleCatalog, distinct_statements
from certificate_kernel.domain.status import ValidationRequirement
from certificate_kernel.stores.memory import InMemoryRuleStore


class TestRuleCatalog:
    def test_empty_for_status_without_requirements(self, rule_store):
        assert RuleCatalog(rule_store).requirements_for("pending") == []

    def test_empty_for_unknown_status(self, rule_store):
        assert RuleCatalog(rule_store).requirements_for("nope") == []

    def test_empty_for_blank_name(self, rule_store):
        assert RuleCatalog(rule_store).requirements_for("  ") == []

    def test_lookup_normalizes_name(self, rule_store):
        reqs = RuleCatalog(rule_store).requirements_for("  INVOICED ")
        assert [r.validation_name for r in reqs] == [
            "cost_required",
            "order_number_required",
        ]

    def test_inactive_filtered(self):
        store = InMemoryRuleStore(
            requirements=[
                ValidationRequirement("paid", "on"),
                ValidationRequirement("paid", "off", is_active=False),
            ]
        )
        assert [r.validation_name for r in RuleCatalog(store).requirements_for("paid")] == ["on"]

    def test_reflects_latest_store_write(self):
        store = InMemoryRuleStore()
        catalog = RuleCatalog(store)
        assert catalog.requirements_for("paid") == []
        store.add_requirement(ValidationRequirement("paid", "late"))
        assert len(catalog.requirements_for("paid")) == 1

    def test_status_lookup(self, rule_store):
        catalog = RuleCatalog(rule_store)
        assert catalog.status(" Completed ").is_final
        assert catalog.status(None) is None

    def test_active_statuses_in_display_order(self, rule_store):
        names = [s.name for s in RuleCatalog(rule_store).active_statuses()]
        assert "archived" not in names
        assert names[:3] == ["pending", "in_progress", "paid"]


def test_distinct_statements_trimmed_and_ordered():
    reqs = [
        ValidationRequirement("s", "a", confirmation_statement=" B "),
        ValidationRequirement("s", "b", confirmation_statement="A"),
        ValidationRequirement("s", "c", confirmation_statement="B"),
        ValidationRequirement("s", "d", confirmation_statement="  "),
    ]
    assert distinct_statements(reqs) == ("B", "A")
