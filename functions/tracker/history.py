"""
Modification history for project updates.

An update payload is compared against the stored project document. Scalar
fields record old/new values; requirement arrays (EP, HU, RF, RNF) are
compared item by item using each item's `id`, since users reorder and edit
those arrays independently.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from shared.types import (
    FieldChange,
    ItemChange,
    Modification,
    RequirementCategory,
    UpdateFieldKind,
)

HISTORY_FIELD = "modificationHistory"
REQUIREMENT_FIELDS = frozenset(category.value for category in RequirementCategory)

# Stands in for a key that is absent from a document or item.
_MISSING = object()


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def values_differ(old_value: Any, new_value: Any) -> bool:
    """Structural inequality: compare canonical JSON, absent != null."""
    if old_value is _MISSING or new_value is _MISSING:
        return (old_value is _MISSING) != (new_value is _MISSING)
    return _canonical(old_value) != _canonical(new_value)


def classify_field(key: str) -> UpdateFieldKind:
    if key == HISTORY_FIELD:
        return UpdateFieldKind.HISTORY
    if key in REQUIREMENT_FIELDS:
        return UpdateFieldKind.REQUIREMENTS
    return UpdateFieldKind.SCALAR


def _present(value: Any) -> Any:
    return None if value is _MISSING else value


def diff_item_fields(old_item: Mapping, new_item: Mapping) -> Dict[str, FieldChange]:
    """
    Per-field changes between two versions of the same item. Only fields the
    new item carries are compared; a field dropped from the item is not a
    change.
    """
    changes: Dict[str, FieldChange] = {}
    for name, new_value in new_item.items():
        old_value = old_item.get(name, _MISSING)
        if values_differ(old_value, new_value):
            changes[name] = FieldChange(
                old_value=_present(old_value), new_value=new_value
            )
    return changes


def diff_items(
    old_items: Sequence[Mapping], new_items: Sequence[Mapping]
) -> List[ItemChange]:
    """
    Item-level diff keyed by `id`.

    Edits and insertions follow the order of `new_items`; removals follow,
    in the order of `old_items`.
    """
    old_by_id: Dict[str, Mapping] = {}
    for item in old_items:
        old_by_id.setdefault(_canonical(item.get("id")), item)
    new_ids = {_canonical(item.get("id")) for item in new_items}

    item_changes: List[ItemChange] = []
    for new_item in new_items:
        old_item = old_by_id.get(_canonical(new_item.get("id")))
        if old_item is None:
            item_changes.append(ItemChange.added(dict(new_item)))
            continue
        changes = diff_item_fields(old_item, new_item)
        if changes:
            item_changes.append(ItemChange(id=new_item.get("id"), changes=changes))

    for old_item in old_items:
        if _canonical(old_item.get("id")) not in new_ids:
            item_changes.append(ItemChange.removed(dict(old_item)))
    return item_changes


def diff_updates(current: Mapping, updates: Mapping) -> Dict[str, Any]:
    """Changes an update payload would make to the current document."""
    changes: Dict[str, Any] = {}
    for key, new_value in updates.items():
        kind = classify_field(key)
        if kind is UpdateFieldKind.HISTORY:
            continue
        old_value = current.get(key, _MISSING)
        if not values_differ(old_value, new_value):
            continue
        if (
            kind is UpdateFieldKind.REQUIREMENTS
            and isinstance(old_value, list)
            and isinstance(new_value, list)
        ):
            item_changes = diff_items(old_value, new_value)
            if item_changes:
                changes[key] = item_changes
        else:
            changes[key] = FieldChange(
                old_value=_present(old_value), new_value=new_value
            )
    return changes


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a `Z` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_modification(
    current: Mapping,
    updates: Mapping,
    *,
    user_id: Any,
    user_name: str = "",
    user_lastname: str = "",
    now: Optional[datetime] = None,
) -> Modification:
    moment = now or datetime.now(timezone.utc)
    return Modification(
        timestamp=format_timestamp(moment),
        user_id=user_id,
        user_name=user_name,
        user_lastname=user_lastname,
        changes=diff_updates(current, updates),
    )


def merge_history(
    current: Mapping, updates: Mapping, modification: Modification
) -> Dict[str, Any]:
    """
    Fields to write for an update.

    A client-supplied history is dropped; the stored history is only ever
    extended, and only when the modification recorded changes.
    """
    payload = {key: value for key, value in updates.items() if key != HISTORY_FIELD}
    if modification.changes:
        history = list(current.get(HISTORY_FIELD) or [])
        history.append(modification.as_dict())
        payload[HISTORY_FIELD] = history
    return payload
