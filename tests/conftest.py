"""
Pytest fixtures for the certificate kernel test suite.

Provides:
- Structured logging setup and a ``captured_logs`` fixture
- A deterministic clock and a test actor
- A small status catalog covering editable, final and locked statuses
- In-memory stores and wired services
- An in-memory SQLite session for the SQL adapters
"""

import json
import logging
from collections.abc import Generator
from datetime import datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from certificate_batch.orchestrator import BulkMutationOrchestrator
from certificate_kernel.db.base import Base
from certificate_kernel.db.engine import enable_sqlite_savepoints
from certificate_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from certificate_kernel.domain.clock import DeterministicClock
from certificate_kernel.domain.records import ActorContext, CertificateRecord
from certificate_kernel.domain.status import (
    RequiredField,
    StatusDefinition,
    ValidationRequirement,
)
from certificate_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from certificate_kernel.services.certificate_service import CertificateUpdateService
from certificate_kernel.stores.memory import (
    InMemoryAuditStore,
    InMemoryRecordStore,
    InMemoryRuleStore,
)

import certificate_kernel.models  # noqa: F401  (registers tables on Base.metadata)

PAID_STATEMENT = "I confirm"

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture
def captured_logs():
    """
    Capture certificate_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.update(...)
            logs = captured_logs()
            assert any(r["message"] == "certificate_updated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("certificate_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(fixed_time=datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def actor() -> ActorContext:
    return ActorContext(actor_id="user-42", actor_role="operator")


def build_statuses() -> list[StatusDefinition]:
    return [
        StatusDefinition(name="pending", display_name="Pending", display_order=1),
        StatusDefinition(name="in_progress", display_name="In progress", display_order=2),
        StatusDefinition(name="paid", display_name="Paid", display_order=3),
        StatusDefinition(name="invoiced", display_name="Invoiced", display_order=4),
        StatusDefinition(
            name="completed",
            display_name="Completed",
            display_order=5,
            is_final=True,
            can_edit_certificate=False,
        ),
        StatusDefinition(
            name="locked",
            display_name="Locked for review",
            display_order=6,
            can_edit_certificate=False,
        ),
        StatusDefinition(
            name="archived", display_name="Archived", display_order=7, is_active=False,
        ),
        StatusDefinition(name="disputed", display_name="Disputed", display_order=8),
    ]


def build_requirements() -> list[ValidationRequirement]:
    return [
        ValidationRequirement(
            status_name="paid",
            validation_name="payment_date_required",
            required_field=RequiredField.PAYMENT_DATE,
            confirmation_statement=PAID_STATEMENT,
        ),
        ValidationRequirement(
            status_name="invoiced",
            validation_name="cost_required",
            required_field=RequiredField.COST,
        ),
        ValidationRequirement(
            status_name="invoiced",
            validation_name="order_number_required",
            required_field=RequiredField.ORDER_NUMBER,
        ),
        ValidationRequirement(
            status_name="disputed",
            validation_name="finance_ack",
            confirmation_statement="Finance acknowledges the dispute",
        ),
        ValidationRequirement(
            status_name="disputed",
            validation_name="legal_ack",
            confirmation_statement="Legal acknowledges the dispute",
        ),
    ]


@pytest.fixture
def rule_store() -> InMemoryRuleStore:
    return InMemoryRuleStore(build_statuses(), build_requirements())


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def make_record(record_store):
    """Factory that creates a record and puts it in the record store."""
    counter = {"n": 0}

    def _make(status: str = "pending", **fields) -> CertificateRecord:
        counter["n"] += 1
        record = CertificateRecord(
            id=uuid4(),
            record_number=fields.pop("record_number", f"CERT-{counter['n']:04d}"),
            status=status,
            **fields,
        )
        return record_store.add(record)

    return _make


@pytest.fixture
def service(record_store, rule_store, audit_store, clock) -> CertificateUpdateService:
    return CertificateUpdateService(record_store, rule_store, audit_store, clock=clock)


@pytest.fixture
def orchestrator(service, clock) -> BulkMutationOrchestrator:
    return BulkMutationOrchestrator(service, clock=clock)


# =============================================================================
# SQL fixtures
# =============================================================================


@pytest.fixture
def sqlite_session() -> Generator[Session, None, None]:
    """In-memory SQLite session with all tables and audit listeners."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    register_immutability_listeners()
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    session = factory()
    yield session
    session.close()
    unregister_immutability_listeners()
    engine.dispose()
