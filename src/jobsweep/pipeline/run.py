# src/jobsweep/pipeline/run.py
"""
One sweep: load known jobs → fetch pages → normalize → filter → dedupe → append.

The search and storage sides are passed in, so the same run works against
SerpAPI, Adzuna, a real sheet or test fakes:

    search.fetch(cursor, count) -> SearchPage
    store.read_all() -> list[dict]
    store.append_rows(list[CanonicalJob]) -> int
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from jobsweep.config import ScrapeProfile
from jobsweep.errors import EmptyTableError, SearchError
from jobsweep.models import CanonicalJob, PolicyMode, RawResult, RunSummary, SearchPage
from jobsweep.pipeline.dedupe import KnownJobIndex, accept_if_new
from jobsweep.pipeline.filter import is_policy_excluded, is_recent, source_allowed
from jobsweep.pipeline.normalize import normalize

log = logging.getLogger(__name__)

# Errors that mean "this record is junk", not "the run is broken"
MALFORMED_RECORD_ERRORS = (KeyError, TypeError, AttributeError, IndexError, ValueError)


class SearchSource(Protocol):
    def fetch(self, cursor: Optional[Union[int, str]] = None, count: Optional[int] = None) -> SearchPage: ...


class JobStore(Protocol):
    def read_all(self) -> List[Dict[str, Any]]: ...

    def append_rows(self, jobs: List[CanonicalJob]) -> int: ...


def load_index(store: JobStore) -> KnownJobIndex:
    """Full table read. An empty/uninitialized sheet is just zero known jobs; anything else propagates."""
    try:
        rows = store.read_all()
    except EmptyTableError as e:
        log.info("No existing jobs (%s); starting with an empty index", e)
        rows = []
    index = KnownJobIndex.from_rows(rows)
    log.info("Found %d existing jobs in the sheet", len(rows))
    return index


def fetch_all(
    search: SearchSource,
    *,
    total_results: int,
    results_per_page: int,
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RawResult]:
    """
    Page through the search source until the budget is hit or pages run out.

    Sleeps between calls but not after the last one. A failed page is logged
    and ends the loop; whatever was gathered so far is returned.
    """
    raw: List[RawResult] = []
    cursor: Optional[Union[int, str]] = None
    page_no = 0

    while len(raw) < total_results:
        page_no += 1
        want = min(results_per_page, total_results - len(raw))
        log.info("Fetching page %d (cursor=%r)...", page_no, cursor)
        try:
            page = search.fetch(cursor, want)
        except SearchError as e:
            log.error("Error fetching page %d: %s; continuing with %d results", page_no, e, len(raw))
            break
        except Exception:
            log.exception("Unexpected error fetching page %d; continuing with %d results", page_no, len(raw))
            break

        raw.extend(page.items[: total_results - len(raw)])
        log.info("Fetched %d results (total: %d)", len(page.items), len(raw))

        if page.next_cursor is None:
            log.info("No more pages available")
            break
        if len(raw) >= total_results:
            break

        cursor = page.next_cursor
        if delay_seconds:
            log.debug("Waiting %.1fs before next request...", delay_seconds)
            sleep(delay_seconds)

    return raw


def select_new_jobs(
    raw_results: List[RawResult],
    index: KnownJobIndex,
    profile: ScrapeProfile,
    summary: RunSummary,
    *,
    now: Optional[dt.datetime] = None,
) -> List[CanonicalJob]:
    """Run every raw result, in fetch order, through normalize → filters → dedupe."""
    new_jobs: List[CanonicalJob] = []

    for item in raw_results:
        try:
            job = normalize(item, remote_default=profile.remote, now=now)
        except MALFORMED_RECORD_ERRORS as e:
            log.debug("Dropping malformed record: %s", e)
            summary.skipped_malformed += 1
            continue

        if job is None:
            summary.skipped_no_url += 1
            continue

        if not source_allowed(job, profile.allowed_sources):
            summary.skipped_source += 1
            continue

        if not is_recent(job.posted_at, profile.max_age_days):
            summary.skipped_stale += 1
            continue

        if is_policy_excluded(job.title, job.description):
            if profile.policy_mode is PolicyMode.DROP:
                log.info("Filtered out (no AI): %s at %s", job.title, job.company)
                summary.policy_excluded += 1
                continue
            job.policy_flag = True
            summary.policy_flagged += 1

        if not accept_if_new(job, index):
            summary.duplicates += 1
            continue

        new_jobs.append(job)

    return new_jobs


def run_pipeline(
    profile: ScrapeProfile,
    search: SearchSource,
    store: JobStore,
    *,
    sleep: Callable[[float], None] = time.sleep,
    now: Optional[dt.datetime] = None,
) -> RunSummary:
    """
    Run one sweep end to end and return its summary.

    Errors reading the sheet (other than an empty sheet) and errors appending
    to it propagate; search errors only cut the fetch loop short.
    """
    log.info("Starting job sweep %r: %r", profile.name, profile.query)
    summary = RunSummary(profile=profile.name)

    index = load_index(store)

    raw = fetch_all(
        search,
        total_results=profile.total_results,
        results_per_page=profile.results_per_page,
        delay_seconds=profile.delay_seconds,
        sleep=sleep,
    )
    summary.total_fetched = len(raw)
    log.info("Total results fetched: %d", len(raw))

    new_jobs = select_new_jobs(raw, index, profile, summary, now=now)
    log.info(
        "New unique jobs: %d (duplicates=%d, policy excluded=%d, flagged=%d)",
        len(new_jobs), summary.duplicates, summary.policy_excluded, summary.policy_flagged,
    )

    if new_jobs:
        store.append_rows(new_jobs)
    else:
        log.info("No new jobs to add")

    summary.new_jobs_added = len(new_jobs)
    log.info("Job sweep %r completed", profile.name)
    return summary
