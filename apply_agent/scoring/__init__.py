from .ai import JobMatcher, OpenAIJobMatcher, load_resume_text
from .matching import extract_experience_requirement
from .pipeline import SkillMatchScorer, score

__all__ = [
    "JobMatcher", "OpenAIJobMatcher", "SkillMatchScorer",
    "extract_experience_requirement", "load_resume_text", "score",
]
