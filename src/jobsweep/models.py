# src/jobsweep/models.py
"""
Data shapes that flow through the sweep pipeline.

Raw search results stay plain dicts, wrapped in one small dataclass per feed so
the normalizer can dispatch on the type instead of probing for fields.
Everything downstream of the normalizer works with CanonicalJob.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class JobSource(str, Enum):
    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    ASHBY = "ashby"
    WORKABLE = "workable"
    LINKEDIN = "linkedin"
    OTHER = "other"


class JobStatus(str, Enum):
    # Every scraped job waits for a human before anyone applies.
    REVIEW_REQUIRED = "review_required"


class PolicyMode(str, Enum):
    """What to do with a posting that carries "no AI" wording."""

    DROP = "drop"
    FLAG = "flag"


# ---- Raw results (one wrapper per feed shape) --------------------------------

@dataclass(frozen=True)
class JobEngineResult:
    """One item of SerpAPI google_jobs `jobs_results`."""

    data: Dict[str, Any]


@dataclass(frozen=True)
class WebSearchResult:
    """One item of SerpAPI google `organic_results` (title/link/snippet/date)."""

    data: Dict[str, Any]


@dataclass(frozen=True)
class AdzunaResult:
    """One item of Adzuna's `results` array."""

    data: Dict[str, Any]


RawResult = Union[JobEngineResult, WebSearchResult, AdzunaResult]


# ---- Canonical record --------------------------------------------------------

@dataclass
class CanonicalJob:
    """
    Source-agnostic job posting, ready to be deduplicated and written to the sheet.

    `company` + `title` (lower-cased) is the identity key; `url` is the
    secondary key. A job without a url never gets built.
    """

    title: str
    company: str
    url: str
    source: str = JobSource.OTHER.value

    # "Remote" when the feed had nothing and the run is remote-oriented
    location: str = ""

    # Free-form, straight from the feed ("3 days ago", "2025-09-24", ...)
    posted_at: str = ""

    # When we normalized it, not when it was posted
    scraped_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    status: JobStatus = JobStatus.REVIEW_REQUIRED
    policy_flag: bool = False

    # Snippet or description; used for policy checks and search previews, never written to the sheet
    description: str = ""

    # e.g. "Full-time" from google_jobs detected_extensions
    schedule_type: str = ""

    @property
    def identity_key(self) -> str:
        return f"{self.company.lower()}|{self.title.lower()}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "url": self.url,
            "source": self.source,
            "postedAt": self.posted_at,
            "scrapedAt": self.scraped_at.isoformat(timespec="seconds"),
            "status": self.status.value,
            "policyFlag": self.policy_flag,
            "scheduleType": self.schedule_type,
            "description": self.description,
        }


# ---- Search paging -----------------------------------------------------------

@dataclass
class SearchPage:
    """
    One page handed back by a search collaborator.

    `next_cursor` is an offset, a page number or an opaque token depending on
    the search mode; None means there are no further pages.
    """

    items: List[RawResult]
    next_cursor: Optional[Union[int, str]] = None


# ---- Run result --------------------------------------------------------------

@dataclass
class RunSummary:
    profile: str = ""
    total_fetched: int = 0
    new_jobs_added: int = 0
    skipped_no_url: int = 0
    skipped_malformed: int = 0
    skipped_source: int = 0
    skipped_stale: int = 0
    policy_excluded: int = 0
    policy_flagged: int = 0
    duplicates: int = 0
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        # camelCase keys; totalFetched/newJobsAdded are what callers rely on
        return {
            "success": self.success,
            "profile": self.profile,
            "totalFetched": self.total_fetched,
            "newJobsAdded": self.new_jobs_added,
            "skippedNoUrl": self.skipped_no_url,
            "skippedMalformed": self.skipped_malformed,
            "skippedSource": self.skipped_source,
            "skippedStale": self.skipped_stale,
            "policyExcluded": self.policy_excluded,
            "policyFlagged": self.policy_flagged,
            "duplicates": self.duplicates,
        }
