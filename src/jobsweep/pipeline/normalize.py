# src/jobsweep/pipeline/normalize.py
"""
Turn raw search results into CanonicalJob records.

Each feed has its own little normalizer; `normalize` picks one by the type of
the RawResult wrapper. A result without a usable url comes back as None and is
simply dropped by the caller.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from jobsweep.models import (
    AdzunaResult,
    CanonicalJob,
    JobEngineResult,
    JobSource,
    RawResult,
    WebSearchResult,
)

UNKNOWN_COMPANY = "Unknown"

# Priority order matters: first board whose marker appears in the url wins.
BOARD_MARKERS: Tuple[Tuple[str, str], ...] = (
    (JobSource.GREENHOUSE.value, "greenhouse.io"),
    (JobSource.LEVER.value, "lever.co"),
    (JobSource.ASHBY.value, "ashbyhq.com"),
    (JobSource.WORKABLE.value, "workable.com"),
)

# Link aggregators: the company lives in the title, not the url
AGGREGATOR_MARKERS: Tuple[Tuple[str, str], ...] = (
    (JobSource.LINKEDIN.value, "linkedin.com"),
)

# Hosts whose first path segment is the company slug
_COMPANY_PATH_HOSTS = (
    "boards.greenhouse.io",
    "job-boards.greenhouse.io",
    "jobs.lever.co",
    "jobs.ashbyhq.com",
    "apply.workable.com",
)

_TITLE_SUFFIXES = (" | LinkedIn", " - LinkedIn", " - Greenhouse", " - Lever", " - Ashby", " - Workable")
_TITLE_PREFIXES = ("Job Application for ",)
# Greedy title: the last " at " splits ("Designer at Large at Acme")
_AT_COMPANY = re.compile(r"^(?P<title>.+)\s+at\s+(?P<company>.+?)\s*$", re.IGNORECASE)


# ---- Source tagging ----------------------------------------------------------

def detect_source(urls: Iterable[str]) -> str:
    """
    Tag a posting by the first known board found in any of its urls.

    Boards are checked in priority order across all urls, so an apply link on
    Greenhouse beats a LinkedIn share link regardless of url order.
    """
    haystack = " ".join(u for u in urls if u).lower()
    for source, marker in BOARD_MARKERS + AGGREGATOR_MARKERS:
        if marker in haystack:
            return source
    return JobSource.OTHER.value


def company_from_url(url: str) -> str:
    """boards.greenhouse.io/acme/jobs/123 -> "acme". Empty string when the host is not a known board."""
    if not url:
        return ""
    parsed = urlparse(url)
    host = (parsed.netloc or "").lower()
    if host.startswith("www."):
        host = host[4:]
    if host not in _COMPANY_PATH_HOSTS:
        return ""
    segments = [s for s in parsed.path.split("/") if s]
    if not segments:
        return ""
    # greenhouse embed urls carry the slug in ?for=acme instead of the path
    if segments[0] == "embed":
        return ""
    return segments[0]


def clean_title(title: str) -> str:
    out = (title or "").strip()
    for prefix in _TITLE_PREFIXES:
        if out.startswith(prefix):
            out = out[len(prefix):]
    for suffix in _TITLE_SUFFIXES:
        if out.endswith(suffix):
            out = out[: -len(suffix)]
    return out.strip()


def split_title_company(title: str) -> Tuple[str, str]:
    """
    Best-effort split of a free-text result title into (title, company).

    "Product Designer at Acme"   -> ("Product Designer", "Acme")
    "Product Designer - Acme"    -> ("Product Designer", "Acme")
    anything else                -> (title, "")
    """
    m = _AT_COMPANY.match(title)
    if m:
        return m.group("title").strip(), m.group("company").strip()
    if " - " in title:
        head, _, tail = title.rpartition(" - ")
        if head.strip() and tail.strip():
            return head.strip(), tail.strip()
    return title, ""


def _location(value: Any, remote_default: bool) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return "Remote" if remote_default else ""


def _now(now: Optional[dt.datetime]) -> dt.datetime:
    return now if now is not None else dt.datetime.now(dt.timezone.utc)


# ---- Per-feed normalizers ----------------------------------------------------

def _job_engine_urls(x: Dict[str, Any]) -> List[str]:
    urls = [opt.get("link", "") for opt in (x.get("apply_options") or [])]
    urls.append(x.get("share_url") or "")
    urls.extend(link.get("link", "") for link in (x.get("related_links") or []))
    return [u for u in urls if u]


def normalize_job_engine(raw: JobEngineResult, *, remote_default: bool = False, now=None) -> Optional[CanonicalJob]:
    x = raw.data
    apply_options = x.get("apply_options") or []
    related = x.get("related_links") or []
    url = (
        (apply_options[0].get("link") if apply_options else "")
        or x.get("share_url")
        or (related[0].get("link") if related else "")
        or ""
    )
    if not url:
        return None

    ext = x.get("detected_extensions") or {}
    return CanonicalJob(
        title=(x.get("title") or "").strip(),
        company=(x.get("company_name") or "").strip() or UNKNOWN_COMPANY,
        url=url,
        source=detect_source(_job_engine_urls(x)),
        location=_location(x.get("location"), remote_default),
        posted_at=ext.get("posted_at") or "",
        scraped_at=_now(now),
        description=x.get("description") or "",
        schedule_type=ext.get("schedule_type") or "",
    )


def normalize_web_result(raw: WebSearchResult, *, remote_default: bool = False, now=None) -> Optional[CanonicalJob]:
    x = raw.data
    url = (x.get("link") or "").strip()
    if not url:
        return None

    title = clean_title(x.get("title") or "")
    company = company_from_url(url)
    parsed_title, parsed_company = split_title_company(title)
    if company:
        # The url already names the company; only drop a matching " at X" tail.
        if parsed_company:
            title = parsed_title
    else:
        title, company = parsed_title, parsed_company

    return CanonicalJob(
        title=title,
        company=company or UNKNOWN_COMPANY,
        url=url,
        source=detect_source([url]),
        location=_location(x.get("location"), remote_default),
        posted_at=x.get("date") or "",
        scraped_at=_now(now),
        description=x.get("snippet") or "",
    )


def _created_ymd(raw: Optional[str]) -> str:
    # Adzuna format: "2025-09-26T07:20:13Z"
    if not raw:
        return ""
    return raw.split("T", 1)[0]


def normalize_adzuna(raw: AdzunaResult, *, remote_default: bool = False, now=None) -> Optional[CanonicalJob]:
    x = raw.data
    url = x.get("redirect_url") or ""
    if not url:
        return None

    return CanonicalJob(
        title=(x.get("title") or "").strip(),
        # Adzuna nests company/location as {"display_name": ...}
        company=((x.get("company") or {}).get("display_name") or "").strip() or UNKNOWN_COMPANY,
        url=url,
        source=detect_source([url]),
        location=_location((x.get("location") or {}).get("display_name"), remote_default),
        posted_at=_created_ymd(x.get("created")),
        scraped_at=_now(now),
        description=x.get("description") or "",
    )


_NORMALIZERS: Dict[type, Callable[..., Optional[CanonicalJob]]] = {
    JobEngineResult: normalize_job_engine,
    WebSearchResult: normalize_web_result,
    AdzunaResult: normalize_adzuna,
}


def normalize(raw: RawResult, *, remote_default: bool = False, now: Optional[dt.datetime] = None) -> Optional[CanonicalJob]:
    """Normalize one raw result; None when it has no usable url."""
    try:
        fn = _NORMALIZERS[type(raw)]
    except KeyError:
        raise TypeError(f"Unsupported raw result type: {type(raw).__name__}") from None
    return fn(raw, remote_default=remote_default, now=now)
