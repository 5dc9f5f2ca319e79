"""Crew role aliases and role-id normalization.

Role ids are compared as parsed integers, never as substrings, so a filter
for role 1 does not match a stored role of 10 or 19.
"""

import json
import re
from collections.abc import Iterable
from typing import Any

ROLE_NAMES: dict[int, str] = {
    1: "Videographer",
    2: "Photographer",
    3: "Editor",
    4: "Producer",
    5: "Director",
}

DEFAULT_ROLE_NAME = "Creative Professional"

ROLE_ALIASES: dict[str, frozenset[int]] = {
    "videographer": frozenset({1, 9}),
    "videography": frozenset({1, 9}),
    "video": frozenset({1, 9}),
    "cinematographer": frozenset({1, 9}),
    "camera operator": frozenset({1, 9}),
    "photographer": frozenset({2, 10}),
    "photography": frozenset({2, 10}),
    "photo": frozenset({2, 10}),
    "editor": frozenset({3, 11}),
    "video editor": frozenset({3, 11}),
    "editing": frozenset({3, 11}),
    "post-production": frozenset({3, 11}),
    "producer": frozenset({4}),
    "director": frozenset({5}),
}

_INT_TOKEN = re.compile(r"^[+-]?\d+$")


def _role_token(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        token = value.strip().strip("\"'")
        if _INT_TOKEN.match(token):
            return int(token)
    return None


def parse_role_ids(value: Any) -> set[int]:
    """Normalize a stored role field to a set of role ids.

    Accepts a scalar (``1`` or ``"1"``), a comma list (``"1,9"``), a JSON list
    (``"[1, 9]"``, possibly double-encoded) or a Python iterable. Tokens that
    are not integers are ignored.
    """
    if value is None:
        return set()

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return set()
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, str):
            return parse_role_ids(decoded)
        if isinstance(decoded, list):
            value = decoded
        elif decoded is not None and not isinstance(decoded, dict):
            value = [decoded]
        else:
            value = text.strip("[]").split(",")

    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        value = [value]

    role_ids = set()
    for item in value:
        role_id = _role_token(item)
        if role_id is not None:
            role_ids.add(role_id)
    return role_ids


def resolve_role_ids(inputs: Iterable[Any] | None) -> set[int]:
    """Map role names, synonyms and numeric ids to canonical role ids.

    Unknown aliases are dropped without error.
    """
    resolved: set[int] = set()
    for item in inputs or []:
        role_id = _role_token(item)
        if role_id is not None:
            resolved.add(role_id)
            continue
        if isinstance(item, str):
            resolved.update(ROLE_ALIASES.get(" ".join(item.lower().split()), ()))
    return resolved


def matches_roles(candidate_role_ids: Iterable[int], wanted: set[int]) -> bool:
    """True when any wanted id equals one of the candidate's role ids."""
    candidate_ids = set(candidate_role_ids)
    if not candidate_ids:
        return False
    return not candidate_ids.isdisjoint(wanted)


def role_name(role_ids: Iterable[int]) -> str:
    for role_id in sorted(role_ids):
        if role_id in ROLE_NAMES:
            return ROLE_NAMES[role_id]
    return DEFAULT_ROLE_NAME
