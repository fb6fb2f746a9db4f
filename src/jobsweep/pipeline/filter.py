# src/jobsweep/pipeline/filter.py
import re
from typing import Iterable, Optional

from jobsweep.models import CanonicalJob

# Plain substring match: "no ai" also fires inside longer words. Kept that way on purpose.
NO_AI_PATTERNS = (
    "no ai",
    "no a.i",
    "no-ai",
    "no artificial intelligence",
    "without ai",
    "ai-free",
)

_AGE = re.compile(r"(\d+)\s*\+?\s*(minute|hour|day|week|month|year)s?", re.IGNORECASE)
_UNIT_DAYS = {"minute": 0, "hour": 0, "day": 1, "week": 7, "month": 30, "year": 365}


def is_policy_excluded(title: str, snippet_or_description: str) -> bool:
    """True when the title or description carries "no AI" wording."""
    text = f"{title or ''} {snippet_or_description or ''}".lower()
    return any(p in text for p in NO_AI_PATTERNS)


def source_allowed(job: CanonicalJob, allowed_sources: Optional[Iterable[str]]) -> bool:
    if not allowed_sources:
        return True
    return job.source in set(allowed_sources)


def posted_age_days(posted_at: str) -> Optional[int]:
    """
    Rough age in days of a relative "posted" string.

    "5 hours ago" -> 0, "3 days ago" -> 3, "2 weeks ago" -> 14, "a month ago" -> 30.
    Returns None when the string can't be read.
    """
    text = (posted_at or "").strip().lower()
    if not text:
        return None
    m = _AGE.search(text)
    if m:
        return int(m.group(1)) * _UNIT_DAYS[m.group(2).lower()]
    # "a day ago", "an hour ago", "a month ago"
    for unit, days in _UNIT_DAYS.items():
        if re.search(rf"\ban?\s+{unit}\b", text):
            return days
    if "today" in text or "just posted" in text:
        return 0
    if "yesterday" in text:
        return 1
    return None


def is_recent(posted_at: str, max_age_days: Optional[int]) -> bool:
    """Unknown ages count as recent."""
    if max_age_days is None:
        return True
    age = posted_age_days(posted_at)
    return age is None or age <= max_age_days
