"""Data models for postings, scores, counters and application records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class JobPosting:
    link: str
    title: str
    company: str
    location: str = ""
    description: str = ""
    skill_chips: tuple[str, ...] = ()
    applicants_count: int | None = None
    openings_count: int = 1
    key_skills_match: bool = True
    work_experience_mismatch: bool = False

    def __post_init__(self) -> None:
        if not self.link:
            raise ValueError("JobPosting.link cannot be empty")
        if not self.title:
            raise ValueError("JobPosting.title cannot be empty")
        if not self.company:
            raise ValueError("JobPosting.company cannot be empty")
        object.__setattr__(self, "skill_chips", tuple(self.skill_chips))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobPosting:
        """Build a posting from the scraped JSON shape (camelCase keys)."""
        applicants = data.get("applicantsCount", data.get("applicants_count"))
        # The scraper's workExperienceMatch flag is set by the portal's cross icon
        mismatch = data.get(
            "workExperienceMismatch",
            data.get("work_experience_mismatch", data.get("workExperienceMatch", False)),
        )
        return cls(
            link=data.get("link", ""),
            title=data.get("title", ""),
            company=data.get("company", ""),
            location=data.get("location") or "",
            description=data.get("description") or "",
            skill_chips=tuple(data.get("skillChips", data.get("skill_chips")) or ()),
            applicants_count=int(applicants) if applicants is not None else None,
            openings_count=int(data.get("openingsCount", data.get("openings_count")) or 1),
            key_skills_match=bool(data.get("keySkillsMatch", data.get("key_skills_match", True))),
            work_experience_mismatch=bool(mismatch),
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    total: float
    max: float
    job_required_score: float
    demand_based_pct: float | None = None
    bonus: float = 0.0


@dataclass(frozen=True)
class ScoreResult:
    match_percentage: float
    is_eligible: bool
    matched_skills: tuple[str, ...] = ()
    reason: str = ""
    score: ScoreBreakdown | None = None
    initial_match_percentage: float | None = None

    @classmethod
    def rejected(cls, reason: str, **kwargs: Any) -> ScoreResult:
        kwargs.setdefault("match_percentage", 0.0)
        return cls(is_eligible=False, reason=reason, **kwargs)


@dataclass(frozen=True)
class ExperienceRequirement:
    is_valid: bool
    reason: str
    min_years: int | None = None
    max_years: int | None = None
    original_match: str | None = None


class ApplyStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    ALREADY_APPLIED = "already_applied"


@dataclass
class ApplicationRecord:
    job: JobPosting
    status: ApplyStatus
    reason: str = ""
    applied_at: str = "N/A"
    match_percentage: float | None = None
    matched_skills: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.job.title,
            "company": self.job.company,
            "location": self.job.location or "N/A",
            "link": self.job.link,
            "status": self.status.value,
            "reason": self.reason or "N/A",
            "appliedAt": self.applied_at,
            "matchPercentage": (
                round(self.match_percentage, 2) if self.match_percentage is not None else None
            ),
            "matchedSkills": list(self.matched_skills),
        }


@dataclass
class ApplyOutcome:
    """Result of one submit attempt; expected failures are values, not exceptions."""

    success: bool
    reason: str = ""
    status: ApplyStatus = ApplyStatus.SKIPPED


@dataclass
class BatchResult:
    applied: list[ApplicationRecord] = field(default_factory=list)
    skipped: list[ApplicationRecord] = field(default_factory=list)

    @property
    def total_applied_jobs_count(self) -> int:
        return len(self.applied)


@dataclass
class DailyCounter:
    successfully_applied: int = 0
    successfully_applied_till_now: int = 0
    last_reset_date: str = ""
    should_send_email_counter: int = 0
    last_counter_reset_date: str = ""

    @classmethod
    def fresh(cls, today: date) -> DailyCounter:
        iso = today.isoformat()
        return cls(last_reset_date=iso, last_counter_reset_date=iso)

    @classmethod
    def from_json(cls, data: dict[str, Any], today: date) -> DailyCounter:
        iso = today.isoformat()
        return cls(
            successfully_applied=int(data.get("successfullyApplied") or 0),
            successfully_applied_till_now=int(data.get("successfullyAppliedTillNow") or 0),
            last_reset_date=data.get("lastResetDate") or iso,
            should_send_email_counter=int(data.get("shouldSendEmailCounter") or 0),
            last_counter_reset_date=data.get("lastCounterResetDate") or iso,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "successfullyApplied": self.successfully_applied,
            "successfullyAppliedTillNow": self.successfully_applied_till_now,
            "lastResetDate": self.last_reset_date,
            "shouldSendEmailCounter": self.should_send_email_counter,
            "lastCounterResetDate": self.last_counter_reset_date,
        }


@dataclass(frozen=True)
class SessionToken:
    cookies: tuple[dict[str, Any], ...] = ()

    def to_json(self) -> dict[str, Any]:
        return {"cookies": [dict(c) for c in self.cookies]}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> SessionToken:
        return cls(cookies=tuple(dict(c) for c in data.get("cookies", [])))
