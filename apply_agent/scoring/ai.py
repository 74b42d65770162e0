"""LLM-backed job matcher used by the alternate apply flow."""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from apply_agent.errors import MatcherUnavailable, RateLimited
from apply_agent.log import get_logger
from apply_agent.models import JobPosting, ScoreResult
from apply_agent.retry import retry

log = get_logger(__name__)

_SYSTEM_PROMPT = """\
You are an expert technical recruiter. Analyze a resume for a React JS / MERN
developer against a job description.

Scoring weights:
- React ecosystem (hooks, component architecture, performance): 40%
- JavaScript / TypeScript mastery: 25%
- State management (Redux, Context API): 15%
- Other frontend technologies (CSS frameworks, build tools): 10%
- Soft skills: 10%

Return ONLY a JSON object with keys:
  "skillMatchPercentage": number 0-100,
  "skillAlignment": [skills present in both],
  "profileGaps": [skills the job needs that the resume lacks],
  "recommendationStrength": "Strong" | "Neutral" | "Weak"
"""


def load_resume_text(path: Path) -> str:
    """Plain-text resume only; collapses blank runs and strips odd symbols."""
    if path.suffix.lower() not in (".txt", ".md"):
        raise ValueError(f"Unsupported resume format: {path.suffix} (export the resume as .txt)")
    text = path.read_text(encoding="utf-8", errors="ignore")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[^\w\s.,()+#/-]", "", text)
    return text.strip()


class JobMatcher(ABC):
    """Same contract as the rule-based scorer: ``analyze(job) -> ScoreResult``."""

    @abstractmethod
    def analyze(self, job: JobPosting) -> ScoreResult:
        """Raise MatcherUnavailable when no verdict can be produced."""


class OpenAIJobMatcher(JobMatcher):
    def __init__(
        self,
        resume_text: str,
        api_key: str = "",
        *,
        model: str = "gpt-3.5-turbo",
        min_match_percentage: float = 50,
        client: Any = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise MatcherUnavailable("OPENAI_API_KEY is not set")
            from openai import OpenAI

            client = OpenAI(api_key=api_key)
        self.client = client
        self.resume_text = resume_text
        self.model = model
        self.min_match_percentage = min_match_percentage

    @retry(
        max_attempts=6,
        base_delay=1.0,
        backoff_factor=2.0,
        retryable=(RateLimited,),
        giveup=MatcherUnavailable,
    )
    def _complete(self, job: JobPosting) -> dict[str, Any]:
        from openai import APIError, RateLimitError

        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": (
                            f"RESUME:\n{self.resume_text[:6000]}\n\n"
                            f"JOB TITLE: {job.title}\nCOMPANY: {job.company}\n"
                            f"JOB DESCRIPTION:\n{job.description[:6000]}"
                        ),
                    },
                ],
                temperature=0.3,
                max_tokens=1500,
            )
        except RateLimitError as exc:
            raise RateLimited(str(exc)) from exc
        except APIError as exc:
            raise MatcherUnavailable(f"Matcher API error: {exc}") from exc

        raw = (resp.choices[0].message.content or "").strip()
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MatcherUnavailable("Matcher did not return valid JSON") from exc

    def analyze(self, job: JobPosting) -> ScoreResult:
        analysis = self._complete(job)
        try:
            pct = float(analysis.get("skillMatchPercentage") or 0)
        except (TypeError, ValueError) as exc:
            raise MatcherUnavailable("skillMatchPercentage is not a number") from exc
        pct = max(0.0, min(pct, 100.0))
        eligible = pct >= self.min_match_percentage
        log.info("AI match for %s @ %s: %.1f%%", job.title, job.company, pct)
        return ScoreResult(
            match_percentage=pct,
            is_eligible=eligible,
            matched_skills=tuple(str(s) for s in analysis.get("skillAlignment") or ()),
            reason="" if eligible else f"Low match score: {pct:.2f}%",
        )
