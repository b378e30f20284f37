"""
Field-level audit diff.

Responsibility:
    Compare two record snapshots and describe what changed, field by
    field, in a form an auditor can read.

Architecture position:
    Kernel > Domain -- pure.  Serialization to the loose JSON shape kept
    by audit stores happens only in ``changes_to_payload`` /
    ``changes_from_payload``.

Invariants enforced:
    - A field appears in a diff only if its comparable form changed.
    - Label-set fields (tags) produce added/removed facts, never a raw
      before/after pair.  Reordering a label set is not a change.
    - ``diff(a, b)[f].invert() == diff(b, a)[f]`` for every field ``f``.
    - Comparison never raises on odd values; unknown objects are
      stringified, and anything that refuses becomes ``[unserializable]``.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Union
from uuid import UUID

from certificate_kernel.utils.hashing import canonicalize_json

UNSERIALIZABLE = "[unserializable]"

DEFAULT_LABEL_SET_FIELDS: frozenset[str] = frozenset({"tags"})


class ChangeKind(str, Enum):
    SCALAR = "scalar"
    LABEL_SET = "label_set"


@dataclass(frozen=True)
class ScalarChange:
    before: Any
    after: Any

    kind = ChangeKind.SCALAR

    def invert(self) -> "ScalarChange":
        return ScalarChange(before=self.after, after=self.before)

    def to_payload(self) -> dict[str, Any]:
        return {"before": to_json_safe(self.before), "after": to_json_safe(self.after)}


@dataclass(frozen=True)
class LabelSetChange:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    kind = ChangeKind.LABEL_SET

    def invert(self) -> "LabelSetChange":
        return LabelSetChange(added=self.removed, removed=self.added)

    def to_payload(self) -> dict[str, Any]:
        return {"added": list(self.added), "removed": list(self.removed)}


FieldChange = Union[ScalarChange, LabelSetChange]


def safe_stringify(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return UNSERIALIZABLE


def comparable(value: Any) -> str:
    """
    Normalized string form used to decide whether a value changed.

    None and "" are both empty.  Sequences join their elements with "|".
    Mappings use canonical JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return comparable(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        try:
            return canonicalize_json(value)
        except (TypeError, ValueError):
            return UNSERIALIZABLE
    if isinstance(value, (Sequence, set, frozenset)) and not isinstance(value, (bytes, bytearray)):
        return "|".join(comparable(item) for item in value)
    return safe_stringify(value)


def to_json_safe(value: Any) -> Any:
    """Loose JSON-compatible form of a value, for the audit store boundary."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return to_json_safe(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {safe_stringify(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(v) for v in value]
    return safe_stringify(value)


def _labels(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    seen: dict[str, None] = {}
    for item in value:
        text = comparable(item)
        if text:
            seen.setdefault(text, None)
    return list(seen)


def label_set_change(before: Any, after: Any) -> LabelSetChange:
    """Added keeps ``after`` order; removed keeps ``before`` order."""
    old = _labels(before)
    new = _labels(after)
    old_set, new_set = set(old), set(new)
    return LabelSetChange(
        added=tuple(label for label in new if label not in old_set),
        removed=tuple(label for label in old if label not in new_set),
    )


def diff(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    label_set_fields: frozenset[str] = DEFAULT_LABEL_SET_FIELDS,
) -> dict[str, FieldChange]:
    """
    Compute the field-level diff between two snapshots.

    Fields present in only one snapshot compare against None.  Output
    order follows ``before`` then any fields new in ``after``.
    """
    changes: dict[str, FieldChange] = {}
    names = list(before) + [name for name in after if name not in before]
    for name in names:
        old = before.get(name)
        new = after.get(name)
        if name in label_set_fields:
            change = label_set_change(old, new)
            if change.added or change.removed:
                changes[name] = change
        elif comparable(old) != comparable(new):
            changes[name] = ScalarChange(before=old, after=new)
    return changes


def changes_to_payload(changes: Mapping[str, FieldChange]) -> dict[str, dict[str, Any]]:
    return {name: change.to_payload() for name, change in changes.items()}


def changes_from_payload(payload: Mapping[str, Any]) -> dict[str, FieldChange]:
    """
    Parse the loose stored form back into typed changes.

    Entries carrying ``added``/``removed`` are label-set changes.  Anything
    else is scalar; a bare value is read as a change from None.
    """
    changes: dict[str, FieldChange] = {}
    for name, entry in (payload or {}).items():
        if isinstance(entry, Mapping) and ("added" in entry or "removed" in entry):
            changes[name] = LabelSetChange(
                added=tuple(entry.get("added") or ()),
                removed=tuple(entry.get("removed") or ()),
            )
        elif isinstance(entry, Mapping) and ("before" in entry or "after" in entry):
            changes[name] = ScalarChange(before=entry.get("before"), after=entry.get("after"))
        else:
            changes[name] = ScalarChange(before=None, after=entry)
    return changes
