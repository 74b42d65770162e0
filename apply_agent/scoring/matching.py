"""Text matching helpers: whole-word term search, experience and title checks."""
from __future__ import annotations

import functools
import re
from typing import Iterable

from apply_agent.models import ExperienceRequirement
from apply_agent.scoring.rules import (
    BLOCKED_COMPANIES,
    MAX_EXPERIENCE_YEARS,
    MIN_EXPERIENCE_YEARS,
    TITLE_CONFLICT_PENALTY,
    TITLE_TARGET_BONUS,
)

_EXPERIENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(\d+)\s*(?:to|-)\s*(\d+)\s*years?\s*(?:of\s*)?experience", re.IGNORECASE),
    re.compile(r"(\d+)\+?\s*years?\s*(?:of\s*)?experience", re.IGNORECASE),
    re.compile(r"minimum\s*(\d+)\s*years?\s*(?:of\s*)?experience", re.IGNORECASE),
    re.compile(r"at\s*least\s*(\d+)\s*years?\s*(?:of\s*)?experience", re.IGNORECASE),
)

_TITLE_TARGET = re.compile(r"react\s*js(?:\s+(?:frontend|web))?\s*developer", re.IGNORECASE)
_TITLE_CONFLICT = re.compile(r"node[.\s]*js(?:\s+(?:backend|server))?\s*developer", re.IGNORECASE)

_COMBINED_STACK_TITLE = re.compile(r"\b(fullstack|full stack|mern)\b", re.IGNORECASE)
_FULLSTACK_ROLE_TITLE = re.compile(r"fullstack\s*(developer|engineer)", re.IGNORECASE)
_NODE_KEYWORDS: tuple[str, ...] = ("node", "node.js", "nodejs")

_WEB_DEV_TITLES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bweb\s+develop(er|ment)\b", re.IGNORECASE),
    re.compile(r"\bfront\s*(-|\s)?\s*end\s+develop(er|ment|ing)|front\s*(-|\s)?\s*end\s+engineer\b", re.IGNORECASE),
    re.compile(r"\breact(\s*\.?\s*js)?\s+develop(er|ment|ing)|react(\s*\.?\s*js)?\s+engineer\b", re.IGNORECASE),
    re.compile(r"\bnext(\s*\.?\s*js)?\s+develop(er|ment|ing)|next(\s*\.?\s*js)?\s+engineer\b", re.IGNORECASE),
)


@functools.lru_cache(maxsize=None)
def term_pattern(term: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive pattern; the term is matched literally."""
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def term_in(term: str, text: str) -> bool:
    return term_pattern(term).search(text) is not None


def any_term_in(terms: Iterable[str], texts: Iterable[str]) -> bool:
    texts = list(texts)
    return any(term_in(term, text) for term in terms for text in texts)


def blocked_company_match(company: str) -> str | None:
    name = (company or "").lower().strip()
    if not name:
        return None
    for pattern in BLOCKED_COMPANIES:
        if pattern in name:
            return pattern
    return None


def extract_experience_requirement(description: str) -> ExperienceRequirement:
    """Pull the minimum years asked for; no experience text counts as satisfied."""
    if not description:
        return ExperienceRequirement(is_valid=True, reason="No description provided")

    for pattern in _EXPERIENCE_PATTERNS:
        match = pattern.search(description)
        if not match:
            continue
        min_years = int(match.group(1))
        max_years = int(match.group(2)) if pattern.groups > 1 else None
        ok = MIN_EXPERIENCE_YEARS <= min_years <= MAX_EXPERIENCE_YEARS
        return ExperienceRequirement(
            is_valid=ok,
            reason="Experience requirement matched" if ok else "Experience requirement NOT matched",
            min_years=min_years,
            max_years=max_years,
            original_match=match.group(0),
        )

    return ExperienceRequirement(is_valid=True, reason="No experience requirement mentioned")


def title_bonus(title: str) -> int:
    bonus = 0
    if _TITLE_TARGET.search(title):
        bonus += TITLE_TARGET_BONUS
    if _TITLE_CONFLICT.search(title):
        bonus -= TITLE_CONFLICT_PENALTY
    return bonus


def is_combined_stack_title(title: str) -> bool:
    return _COMBINED_STACK_TITLE.search(title) is not None


def fullstack_has_node(title: str, description: str, chips: Iterable[str]) -> bool:
    """A 'Fullstack Developer/Engineer' title must mention a Node runtime somewhere."""
    if not _FULLSTACK_ROLE_TITLE.search(title):
        return True
    desc = description.lower()
    chips = [c.lower() for c in chips]
    return any(kw in desc or any(kw in chip for chip in chips) for kw in _NODE_KEYWORDS)


def is_web_dev_title(title: str) -> bool:
    return any(p.search(title) for p in _WEB_DEV_TITLES)
