"""
Certificate records, transition requests and actor context.

Responsibility:
    The record shape the kernel reasons about, the ephemeral request an
    actor submits against one record, and the normalization that turns
    raw caller input into a clean field patch.

Architecture position:
    Kernel > Domain -- pure, frozen, no I/O.

Invariants enforced:
    - Money is carried in integer minor units.  ``0`` is a value.
    - "Missing" means None or a blank string (``is_value_filled``).
    - Blank strings in a patch are dropped, never written as changes.
    - A patch may only name overridable fields.

Failure modes:
    - ``UnknownFieldError`` for a field outside ``OVERRIDABLE_FIELDS``.
    - ``InvalidFieldValueError`` for a value of the wrong shape.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from certificate_kernel.domain.status import normalize_status_name
from certificate_kernel.exceptions import InvalidFieldValueError, UnknownFieldError


class Priority(str, Enum):
    NORMAL = "normal"
    URGENT = "urgent"


# Storage encoding used by legacy rows (1 = normal, 2 = urgent).
_PRIORITY_CODES = {1: Priority.NORMAL, 2: Priority.URGENT}

MAX_NOTES_LENGTH = 2000
MAX_COMMENT_LENGTH = 1000

OVERRIDABLE_FIELDS: tuple[str, ...] = (
    "cost",
    "additional_cost",
    "order_number",
    "payment_date",
    "payment_type_id",
    "priority",
    "notes",
    "tags",
)

LABEL_SET_FIELDS: frozenset[str] = frozenset({"tags"})


def is_value_filled(value: Any) -> bool:
    """True when a field value counts as supplied.  Zero is supplied."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def normalize_labels(labels: Iterable[Any] | None) -> tuple[str, ...]:
    """Strip labels, drop empties, drop duplicates keeping first-seen order."""
    seen: dict[str, None] = {}
    for label in labels or ():
        text = str(label).strip()
        if text and text not in seen:
            seen[text] = None
    return tuple(seen)


def _coerce_money(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldValueError(name, value, "expected integer minor units")
    return value


def _coerce_date(name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise InvalidFieldValueError(name, value, "expected ISO date") from exc
    raise InvalidFieldValueError(name, value, "expected a date")


def _coerce_priority(name: str, value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        if value in _PRIORITY_CODES:
            return _PRIORITY_CODES[value]
    elif isinstance(value, str):
        try:
            return Priority(value.strip().lower())
        except ValueError:
            pass
    raise InvalidFieldValueError(name, value, "expected 'normal' or 'urgent'")


def _coerce_text(name: str, value: Any, max_length: int | None = None) -> str:
    if not isinstance(value, str):
        raise InvalidFieldValueError(name, value, "expected text")
    if max_length is not None and len(value) > max_length:
        raise InvalidFieldValueError(name, value, f"longer than {max_length} characters")
    return value


def normalize_fields(raw: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Validate and normalize a raw field patch.

    None is kept (it clears the field).  Blank strings are dropped.
    """
    patch: dict[str, Any] = {}
    for name, value in (raw or {}).items():
        if name not in OVERRIDABLE_FIELDS:
            raise UnknownFieldError(name, OVERRIDABLE_FIELDS)
        if isinstance(value, str) and not value.strip():
            continue
        if name == "tags":
            patch[name] = normalize_labels(value)
            continue
        if value is None:
            if name == "priority":
                raise InvalidFieldValueError(name, value, "priority cannot be cleared")
            patch[name] = None
            continue
        if name in ("cost", "additional_cost"):
            patch[name] = _coerce_money(name, value)
        elif name == "payment_date":
            patch[name] = _coerce_date(name, value)
        elif name == "priority":
            patch[name] = _coerce_priority(name, value)
        elif name == "notes":
            patch[name] = _coerce_text(name, value, MAX_NOTES_LENGTH)
        else:
            patch[name] = _coerce_text(name, value).strip()
    return patch


@dataclass(frozen=True)
class CertificateRecord:
    """
    A lifecycle record.

    ``status`` references a StatusDefinition by name.  ``record_number``
    is the human-facing identifier used in bulk reports.
    """

    id: UUID
    record_number: str
    status: str
    cost: int | None = None
    additional_cost: int | None = None
    order_number: str | None = None
    payment_date: date | None = None
    payment_type_id: str | None = None
    priority: Priority = Priority.NORMAL
    notes: str | None = None
    tags: tuple[str, ...] = ()
    certificate_type: str | None = None
    parties_name: str | None = None
    owner_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", normalize_status_name(self.status))
        object.__setattr__(self, "tags", normalize_labels(self.tags))
        if not isinstance(self.priority, Priority):
            object.__setattr__(
                self, "priority", _coerce_priority("priority", self.priority)
            )

    def snapshot(self) -> dict[str, Any]:
        """Field -> value view used by the audit diff."""
        values = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "id"}
        values["priority"] = self.priority.value
        values["tags"] = list(self.tags)
        return values

    def with_changes(self, patch: Mapping[str, Any]) -> "CertificateRecord":
        return replace(self, **dict(patch))


SNAPSHOT_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(CertificateRecord) if f.name != "id"
)


@dataclass(frozen=True)
class ActorContext:
    """Who is acting.  Opaque to the kernel; copied onto audit events."""

    actor_id: str
    actor_role: str = "user"
    correlation_id: str | None = None


@dataclass(frozen=True)
class TransitionRequest:
    """
    A proposed change to one record.

    ``target_status`` of None (or blank) means no status transition is
    requested; the request only patches fields.
    """

    record_id: UUID
    target_status: str | None = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    confirmed: bool = False
    confirmation_text: str = ""

    def __post_init__(self) -> None:
        target = normalize_status_name(self.target_status)
        object.__setattr__(self, "target_status", target or None)
        object.__setattr__(self, "fields", normalize_fields(self.fields))
        object.__setattr__(self, "confirmation_text", self.confirmation_text or "")

    def value_for(self, record: CertificateRecord, attribute: str) -> Any:
        """The request's value for ``attribute`` if given, else the record's."""
        if attribute in self.fields:
            return self.fields[attribute]
        return getattr(record, attribute)


@dataclass(frozen=True)
class Annotations:
    """
    Note, added tags and comment merged into a mutation.

    A blank note or comment is treated as absent.  Added tags are unioned
    into the record's tag set, never replacing it.
    """

    note: str | None = None
    add_tags: tuple[str, ...] = ()
    comment: str | None = None

    def __post_init__(self) -> None:
        note = (self.note or "").strip() or None
        if note is not None:
            _coerce_text("note", note, MAX_NOTES_LENGTH)
        comment = (self.comment or "").strip() or None
        if comment is not None:
            _coerce_text("comment", comment, MAX_COMMENT_LENGTH)
        object.__setattr__(self, "note", note)
        object.__setattr__(self, "comment", comment)
        object.__setattr__(self, "add_tags", normalize_labels(self.add_tags))

    @property
    def is_empty(self) -> bool:
        return self.note is None and not self.add_tags and self.comment is None
