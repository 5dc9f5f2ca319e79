import json
from collections.abc import Iterable
from typing import Any, NamedTuple


class SkillScore(NamedTuple):
    count: int
    matched: list[str]


def parse_skills(value: Any) -> list[str]:
    """Normalize a stored skills field to a list of non-empty skill strings.

    Accepts a JSON list (possibly double-encoded), a comma separated string,
    a single skill or a Python iterable. Order is preserved.
    """
    if value is None:
        return []

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, str) and decoded.strip() != text:
            return parse_skills(decoded)
        if isinstance(decoded, list):
            value = decoded
        else:
            value = text.split(",")

    if not isinstance(value, Iterable):
        value = [value]

    skills = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        skill = str(item).strip()
        if skill:
            skills.append(skill)
    return skills


def _normalize(skill: str) -> str:
    return skill.strip().casefold()


def score_skills(requested: Iterable[str], candidate_skills: Iterable[str]) -> SkillScore:
    """Count candidate skills that partially match any requested skill.

    A match is a case-insensitive substring in either direction, so
    "color grading" matches "Color Grading, Davinci" and "3d" matches
    "3D Animation". Each candidate skill is counted at most once.
    """
    wanted = [term for term in (_normalize(s) for s in requested) if term]
    if not wanted:
        return SkillScore(0, [])

    matched = []
    for skill in candidate_skills:
        normalized = _normalize(skill)
        if not normalized:
            continue
        if any(term in normalized or normalized in term for term in wanted):
            matched.append(skill.strip())
    return SkillScore(len(matched), matched)
