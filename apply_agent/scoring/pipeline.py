"""
Rule-based skill match scoring.

The scorer runs an ordered list of named stages over a shared
``ScoringContext``. A stage either updates the context and returns ``None``
or ends scoring by returning a ``ScoreResult``. Stage order is the rule
precedence: company blocklist, portal experience badge, weighted skills,
competing-stack tags, bonus keywords, title adjustment, percentage,
core-stack and applicant checks, threshold, then the secondary filters and
the key-skills badge.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from apply_agent.log import get_logger
from apply_agent.models import JobPosting, ScoreBreakdown, ScoreResult
from apply_agent.scoring import matching, rules

log = get_logger(__name__)


@dataclass
class ScoringContext:
    job: JobPosting
    description: str
    chips: list[str]
    total_score: float = 0.0
    total_skill_score: float = 0.0
    job_required_score: float = 0.0
    max_possible_score: float = float(rules.MAX_POSSIBLE_SCORE)
    matched_skills: list[str] = field(default_factory=list)
    core_stack_count: int = 0
    disqualifying_tag_count: int = 0
    java_stack_hits: int = 0
    bonus: float = 0.0
    raw_pct: float = 0.0
    demand_based_pct: float | None = None
    percentage: float = 0.0
    core_stack_ok: bool = True
    applicant_cap: int = rules.MIN_APPLICANT_CAP
    saturated: bool = False
    threshold: float = rules.LOOSE_MATCH_THRESHOLD

    @classmethod
    def for_job(cls, job: JobPosting) -> ScoringContext:
        return cls(
            job=job,
            description=(job.description or "").lower(),
            chips=[c.lower().strip() for c in job.skill_chips],
        )

    @property
    def demand_met(self) -> bool:
        return self.job_required_score >= rules.MIN_JOB_REQUIRED_SCORE

    @property
    def disqualified_by_tags(self) -> bool:
        return self.disqualifying_tag_count >= rules.DISQUALIFYING_CHIP_LIMIT

    @property
    def java_stack(self) -> bool:
        return self.java_stack_hits >= rules.JAVA_STACK_LIMIT

    def breakdown(self) -> ScoreBreakdown:
        uncapped = (
            self.total_skill_score / self.job_required_score * 100 if self.demand_met else None
        )
        return ScoreBreakdown(
            total=round(self.total_score, 4),
            max=self.max_possible_score,
            job_required_score=self.job_required_score,
            demand_based_pct=uncapped,
            bonus=round(self.bonus, 4),
        )

    def result(
        self,
        eligible: bool,
        reason: str = "",
        *,
        percentage: float | None = None,
        skills: Sequence[str] | None = None,
        initial: float | None = None,
    ) -> ScoreResult:
        return ScoreResult(
            match_percentage=self.percentage if percentage is None else percentage,
            is_eligible=eligible,
            matched_skills=tuple(self.matched_skills if skills is None else skills),
            reason="" if eligible else reason,
            score=self.breakdown(),
            initial_match_percentage=initial,
        )


Stage = Callable[[ScoringContext], "ScoreResult | None"]


def _clamp(pct: float) -> float:
    return max(0.0, min(pct, 100.0))


# ── Gates and accumulators, in evaluation order ─────────────────────────


def blocked_company_gate(ctx: ScoringContext) -> ScoreResult | None:
    pattern = matching.blocked_company_match(ctx.job.company)
    if pattern is None:
        return None
    return ScoreResult.rejected(
        f'Company "{ctx.job.company}" matched blocked company pattern: {pattern}'
    )


def work_experience_gate(ctx: ScoringContext) -> ScoreResult | None:
    if ctx.job.work_experience_mismatch:
        return ScoreResult.rejected("Work experience does not match the job requirements")
    return None


def accumulate_skills(ctx: ScoringContext) -> None:
    haystack = [ctx.description, *ctx.chips]
    for skill in rules.SKILL_DEFINITIONS:
        # Skills the posting never asks for still count toward max_possible_score
        if not matching.any_term_in(skill.required_terms, haystack):
            continue
        ctx.job_required_score += skill.weight

        primary_in_chips = matching.any_term_in(skill.primary, ctx.chips)
        primary_in_desc = matching.any_term_in(skill.primary, [ctx.description])
        if primary_in_chips or primary_in_desc:
            base = float(skill.weight)
            bonus = base * rules.PRIMARY_TAG_BONUS if primary_in_chips else 0.0
            ctx.total_score += base + bonus
            ctx.total_skill_score += base
            ctx.matched_skills.append(skill.name)
            if skill.name in rules.CORE_STACK:
                ctx.core_stack_count += 1
            continue

        related_in_chips = matching.any_term_in(skill.related, ctx.chips)
        related_in_desc = matching.any_term_in(skill.related, [ctx.description])
        if related_in_chips or related_in_desc:
            base = skill.weight * rules.RELATED_WEIGHT
            bonus = base * rules.RELATED_TAG_BONUS if related_in_chips else 0.0
            ctx.total_score += base + bonus
            ctx.total_skill_score += base
            ctx.matched_skills.append(f"{skill.name} (related)")
    return None


def count_disqualifying_tags(ctx: ScoringContext) -> None:
    count = sum(
        1 for marker in rules.DISQUALIFYING_CHIPS if any(marker in chip for chip in ctx.chips)
    )
    if any(chip in rules.BARE_LANGUAGE_CHIPS for chip in ctx.chips):
        count += 1
    ctx.disqualifying_tag_count = count
    ctx.java_stack_hits = sum(
        1 for term in rules.JAVA_STACK_TERMS if matching.term_in(term, ctx.description)
    )
    return None


def bonus_keywords(ctx: ScoringContext) -> None:
    for keyword, bonus in rules.BONUS_KEYWORDS:
        if keyword in ctx.description:
            ctx.bonus += bonus
    for triplet in rules.KEYWORD_TRIPLETS:
        if all(term in ctx.description for term in triplet):
            ctx.bonus += rules.TRIPLET_BONUS
    return None


def title_adjustment(ctx: ScoringContext) -> None:
    ctx.bonus += matching.title_bonus(ctx.job.title)
    ctx.total_score += ctx.bonus
    return None


def compute_percentage(ctx: ScoringContext) -> None:
    denominator = ctx.max_possible_score + len(rules.KEYWORD_TRIPLETS)
    ctx.raw_pct = ctx.total_score / denominator * 100
    if ctx.demand_met:
        ctx.demand_based_pct = min(ctx.total_skill_score / ctx.job_required_score * 100, 100.0)
    if ctx.demand_based_pct is not None and ctx.demand_based_pct >= 0:
        ctx.percentage = _clamp(ctx.demand_based_pct)
    else:
        ctx.percentage = _clamp(ctx.raw_pct)
    return None


def core_stack_check(ctx: ScoringContext) -> None:
    if matching.is_combined_stack_title(ctx.job.title):
        ctx.core_stack_ok = ctx.core_stack_count >= rules.MIN_CORE_STACK_MATCHES
    return None


def applicant_saturation(ctx: ScoringContext) -> None:
    ctx.applicant_cap = max(
        rules.APPLICANTS_PER_OPENING * ctx.job.openings_count, rules.MIN_APPLICANT_CAP
    )
    count = ctx.job.applicants_count
    # An unreported count is unbounded
    ctx.saturated = count is None or count >= ctx.applicant_cap
    return None


def select_threshold(ctx: ScoringContext) -> None:
    ctx.threshold = (
        rules.DEMAND_MATCH_THRESHOLD if ctx.demand_met else rules.LOOSE_MATCH_THRESHOLD
    )
    return None


def stack_mismatch_gate(ctx: ScoringContext) -> ScoreResult | None:
    if ctx.java_stack:
        return ctx.result(False, "Job is Java/J2EE/Spring stack (not MERN/React/Node)", skills=())
    if ctx.disqualified_by_tags:
        return ctx.result(False, "Job key skills are heavily non-MERN (e.g. Angular/Vue/PHP/Java)")
    return None


def fullstack_runtime_gate(ctx: ScoringContext) -> ScoreResult | None:
    if matching.fullstack_has_node(ctx.job.title, ctx.description, ctx.chips):
        return None
    return ctx.result(False, "Fullstack job lacks Node.js requirement")


def experience_gate(ctx: ScoringContext) -> ScoreResult | None:
    requirement = matching.extract_experience_requirement(ctx.description)
    if requirement.is_valid:
        return None
    return ctx.result(False, f"Experience requirement not suitable: {requirement.reason}")


def _saturation_reason(ctx: ScoringContext) -> str:
    count = ctx.job.applicants_count
    shown = "unknown" if count is None else count
    return f"applied members:{shown} are greater than the limit:{ctx.applicant_cap}"


def key_skills_badge(ctx: ScoringContext) -> ScoreResult | None:
    """The portal's own key-skills badge decides the final branch.

    Both branches return, so ``default_result`` is only reached when this
    stage is left out of the pipeline.
    """
    initial = ctx.percentage
    if not ctx.job.key_skills_match:
        eligible = initial >= rules.BADGE_MATCH_THRESHOLD
        return ctx.result(eligible, "Key skills do not match the job requirements", skills=())

    pct = initial
    if matching.is_web_dev_title(ctx.job.title) and initial < rules.LOW_MATCH_CEILING:
        if initial < 20:
            pct += 20
        elif 20 < initial < 30:
            pct += 15
        else:
            pct += 10
    pct = _clamp(pct)

    eligible = pct >= rules.BADGE_MATCH_THRESHOLD and ctx.core_stack_ok and not ctx.saturated
    if not ctx.core_stack_ok:
        reason = _core_stack_reason()
    elif ctx.saturated:
        reason = _saturation_reason(ctx)
    else:
        reason = f"Match {pct:.1f}% below threshold {rules.BADGE_MATCH_THRESHOLD:.0f}%"
    return ctx.result(eligible, reason, percentage=pct, initial=initial)


def _core_stack_reason() -> str:
    return (
        "Fullstack/MERN title but profile has fewer than 2 core MERN skills "
        "(React, Node, Express, MongoDB)"
    )


def default_result(ctx: ScoringContext) -> ScoreResult:
    eligible = (
        ctx.percentage >= ctx.threshold
        and ctx.core_stack_ok
        and not ctx.disqualified_by_tags
        and not ctx.java_stack
        and not ctx.saturated
    )
    reason = ""
    if ctx.java_stack:
        reason = "Job is Java/J2EE/Spring stack (not MERN/React/Node)"
    elif ctx.disqualified_by_tags:
        reason = "Job key skills are heavily non-MERN (e.g. Angular/Vue/PHP/Java)"
    elif not ctx.core_stack_ok:
        reason = _core_stack_reason()
    elif ctx.percentage < ctx.threshold:
        if ctx.demand_met:
            reason = (
                f"Demand-based match {ctx.percentage:.1f}% below threshold "
                f"{rules.DEMAND_MATCH_THRESHOLD:.0f}%"
            )
        else:
            reason = f"Match {ctx.percentage:.1f}% below threshold"
    elif ctx.saturated:
        reason = _saturation_reason(ctx)
    return ctx.result(eligible, reason)


DEFAULT_STAGES: tuple[tuple[str, Stage], ...] = (
    ("blocked_company", blocked_company_gate),
    ("work_experience", work_experience_gate),
    ("skills", accumulate_skills),
    ("disqualifying_tags", count_disqualifying_tags),
    ("bonus_keywords", bonus_keywords),
    ("title", title_adjustment),
    ("percentage", compute_percentage),
    ("core_stack", core_stack_check),
    ("applicants", applicant_saturation),
    ("threshold", select_threshold),
    ("stack_mismatch", stack_mismatch_gate),
    ("fullstack_runtime", fullstack_runtime_gate),
    ("experience", experience_gate),
    ("key_skills_badge", key_skills_badge),
)


class SkillMatchScorer:
    """Deterministic rule-based scorer: ``score(job) -> ScoreResult``."""

    def __init__(self, stages: Sequence[tuple[str, Stage]] = DEFAULT_STAGES) -> None:
        self.stages = tuple(stages)

    @property
    def stage_names(self) -> list[str]:
        return [name for name, _ in self.stages]

    def score(self, job: JobPosting) -> ScoreResult:
        ctx = ScoringContext.for_job(job)
        try:
            for name, stage in self.stages:
                result = stage(ctx)
                if result is not None:
                    log.debug("%s @ %s settled at stage %s", job.title, job.company, name)
                    return result
            return default_result(ctx)
        except Exception as exc:
            log.exception("Skill matching failed for %s: %s", job.link, exc)
            return ScoreResult.rejected("Error in skill matching")


_default_scorer = SkillMatchScorer()


def score(job: JobPosting) -> ScoreResult:
    return _default_scorer.score(job)
