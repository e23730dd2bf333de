"""Apply partial updates to a race record with per-field merge policies.

Default behaviour: primitives and lists replace, plain dicts deep-merge,
``None`` in the update means "leave as is". Fields listed in
MERGE_POLICIES override the default. Nothing here mutates its inputs.
"""

from __future__ import annotations

import copy
import json
import logging
from functools import partial
from typing import Callable

from spoilerfree.errors import ImmutableFieldError, ValidationError

logger = logging.getLogger(__name__)

IMMUTABLE_FIELD = "id"


def deep_merge(target, source):
    """Recursively merge ``source`` into a copy of ``target``."""
    if target is None:
        target = {}
    if not isinstance(target, dict) or not isinstance(source, dict):
        return copy.deepcopy(source)

    result = copy.deepcopy(target)
    for key, value in source.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def merge_by_id(existing, incoming, key: str = "id"):
    """Merge two lists of dicts keyed by ``key``.

    Existing entries keep their position and are updated in place; unseen
    entries are appended once, in incoming order.
    """
    if not incoming:
        return copy.deepcopy(existing)
    if not existing:
        existing = []

    result = copy.deepcopy(list(existing))
    positions = {
        item.get(key): i for i, item in enumerate(result)
        if isinstance(item, dict) and item.get(key) is not None
    }

    for item in incoming:
        item_id = item.get(key) if isinstance(item, dict) else None
        if item_id is None:
            # No key to match on: append unless an identical entry is present
            if item not in result:
                result.append(copy.deepcopy(item))
        elif item_id in positions:
            idx = positions[item_id]
            merged = dict(result[idx])
            merged.update(copy.deepcopy(item))
            result[idx] = merged
        else:
            positions[item_id] = len(result)
            result.append(copy.deepcopy(item))
    return result


def replace(existing, incoming):
    return copy.deepcopy(incoming)


def replace_with_caution(existing, incoming, field_name: str = "field"):
    if existing:
        logger.warning("Replacing existing %s (%d entries)", field_name, len(existing))
    return copy.deepcopy(incoming)


def default_policy(existing, incoming):
    if isinstance(incoming, dict) and isinstance(existing, dict):
        return deep_merge(existing, incoming)
    return copy.deepcopy(incoming)


MergePolicy = Callable[[object, object], object]

MERGE_POLICIES: dict[str, MergePolicy] = {
    "topRiders": merge_by_id,
    "broadcast": deep_merge,
    "raceDetails": deep_merge,
    "stages": partial(replace_with_caution, field_name="stages"),
}


def check_immutable(record: dict, updates: dict, field_name: str = IMMUTABLE_FIELD) -> None:
    attempted = updates.get(field_name)
    if attempted is not None and attempted != record.get(field_name):
        raise ImmutableFieldError(field_name, record.get(field_name), attempted)


def apply_updates(record: dict, updates: dict, policies: dict = None) -> dict:
    """Return a new record with ``updates`` applied field by field.

    Raises:
        ImmutableFieldError: if ``updates`` carries a different id
    """
    if not isinstance(updates, dict):
        raise ValidationError("Updates must be a JSON object")
    check_immutable(record, updates)

    policies = MERGE_POLICIES if policies is None else policies
    result = copy.deepcopy(record)
    for field_name, incoming in updates.items():
        if incoming is None:
            continue
        policy = policies.get(field_name, default_policy)
        result[field_name] = policy(result.get(field_name), incoming)
    return result


def parse_set_args(pairs: list[str]) -> dict:
    """Turn ``["rating=4", "platform=FloBikes"]`` into an update dict.

    Values are decoded as JSON when possible (numbers, booleans, objects)
    and kept as raw strings otherwise. ``=`` inside a value is preserved.
    """
    updates = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValidationError(f"--set expects key=value, got {pair!r}")
        try:
            updates[key] = json.loads(value)
        except json.JSONDecodeError:
            updates[key] = value
    return updates
