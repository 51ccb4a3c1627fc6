"""Skill normalization and skill-based matching.

Skills arrive in several shapes: plain strings (``"python"``), profile
entries (``{"skill": "Python", "level": "Advanced"}``) and older rows that
use ``name`` instead of ``skill``. Everything here compares names
case-insensitively.

Usage:
    from sweaquity.skills import rank_matches

    matches = rank_matches(["python", "sql"], tasks)
    best = matches[0].item if matches else None
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

DEFAULT_LEVEL = "Intermediate"


@dataclass
class SkillRequirement:
    """A named skill with a proficiency level."""

    skill: str
    level: str = DEFAULT_LEVEL

    def __post_init__(self):
        self.skill = self.skill.strip()
        if not self.skill:
            raise ValueError("Skill name cannot be empty")
        if not self.level:
            self.level = DEFAULT_LEVEL

    @property
    def key(self) -> str:
        return self.skill.lower()

    def to_dict(self) -> dict:
        return {"skill": self.skill, "level": self.level}


@dataclass
class SkillMatch:
    """A candidate scored against a set of skills."""

    item: Any
    score: float
    matching_skills: List[str] = field(default_factory=list)


def to_skill_requirement(value: Any, default_level: str = DEFAULT_LEVEL) -> SkillRequirement:
    """Coerce a string, mapping or SkillRequirement into a SkillRequirement."""
    if isinstance(value, SkillRequirement):
        return value
    if isinstance(value, str):
        return SkillRequirement(skill=value, level=default_level)
    if isinstance(value, dict):
        name = value.get("skill") or value.get("name") or ""
        return SkillRequirement(skill=name, level=value.get("level") or default_level)
    raise ValueError(f"Unsupported skill value: {value!r}")


def skill_name(value: Any) -> str:
    """Lowercased name of a skill in any supported shape."""
    return to_skill_requirement(value).key


def skill_names(skills: Optional[Iterable[Any]]) -> List[str]:
    """Lowercased names, skipping blank entries."""
    names = []
    for s in skills or []:
        try:
            names.append(skill_name(s))
        except ValueError:
            continue
    return names


def skills_equal(a: Any, b: Any) -> bool:
    return skill_name(a) == skill_name(b)


def unique_skills(
    skills: Iterable[Any], default_level: str = DEFAULT_LEVEL, skip_invalid: bool = False
) -> List[SkillRequirement]:
    """Deduplicate skills by name, keeping the first occurrence.

    With ``skip_invalid``, blank or unreadable entries are dropped instead of
    raising ``ValueError``.
    """
    seen = set()
    result = []
    for s in skills:
        try:
            req = to_skill_requirement(s, default_level)
        except ValueError:
            if skip_invalid:
                continue
            raise
        if req.key in seen:
            continue
        seen.add(req.key)
        result.append(req)
    return result


def _required_skills(item: Any) -> List[str]:
    """Required skill names of a project/task (object or row dict)."""
    if isinstance(item, dict):
        raw = item.get("skill_requirements") or item.get("skills_required") or []
    else:
        raw = getattr(item, "skill_requirements", None) or getattr(item, "skills_required", None) or []
    return skill_names(raw)


def _text(item: Any, attr: str) -> str:
    value = item.get(attr) if isinstance(item, dict) else getattr(item, attr, None)
    return (value or "").lower()


def extract_unique_skills(items: Iterable[Any]) -> List[str]:
    """Sorted unique skill names required across projects or tasks."""
    names = set()
    for item in items:
        names.update(_required_skills(item))
    return sorted(names)


def filter_opportunities(
    items: Iterable[Any],
    search_term: Optional[str] = None,
    skill: Optional[str] = None,
) -> List[Any]:
    """Filter by free-text search on title/description AND a required skill."""
    term = (search_term or "").strip().lower()
    wanted = (skill or "").strip().lower()
    result = []
    for item in items:
        if term and term not in _text(item, "title") and term not in _text(item, "description"):
            continue
        if wanted and wanted not in _required_skills(item):
            continue
        result.append(item)
    return result


def match_score(user_skills: Iterable[Any], required: Iterable[Any]) -> float:
    """Fraction of required skills the user has (0.0 when nothing is required)."""
    required_names = set(skill_names(required))
    if not required_names:
        return 0.0
    have = set(skill_names(user_skills))
    return len(required_names & have) / len(required_names)


def rank_matches(
    user_skills: Sequence[Any],
    candidates: Iterable[Any],
    min_score: float = 0.0,
) -> List[SkillMatch]:
    """Score candidates against the user's skills, best first.

    Only candidates scoring strictly above ``min_score`` are returned.
    """
    have = set(skill_names(user_skills))
    matches = []
    for item in candidates:
        required = _required_skills(item)
        score = match_score(have, required)
        if score <= min_score:
            continue
        matching = [s for s in required if s in have]
        matches.append(SkillMatch(item=item, score=score, matching_skills=matching))
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches
