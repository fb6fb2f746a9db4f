# src/jobsweep/service.py
"""Builds the real search source and sheet store for a profile and runs the sweep."""

from __future__ import annotations

from typing import List, Optional

from jobsweep.clients.adzuna import AdzunaSearch
from jobsweep.clients.serpapi import GoogleJobsSearch, WebSearch
from jobsweep.config import ScrapeProfile, Settings, extract_spreadsheet_id
from jobsweep.io.sheets import SheetStore, service_account_client
from jobsweep.models import CanonicalJob, RunSummary, SearchPage
from jobsweep.pipeline.normalize import normalize
from jobsweep.pipeline.run import MALFORMED_RECORD_ERRORS, JobStore, SearchSource, run_pipeline


def build_search(profile: ScrapeProfile, settings: Settings) -> SearchSource:
    where = profile.where or None
    if profile.search_mode == "adzuna":
        app_id, app_key = settings.require_adzuna()
        return AdzunaSearch(
            app_id,
            app_key,
            profile.query,
            country=settings.adzuna_country,
            results_per_page=profile.results_per_page,
            where=where,
        )
    api_key = settings.require_serpapi()
    if profile.search_mode == "web":
        return WebSearch(api_key, profile.query, location=where, extra_params=profile.extra_params)
    paging = "token" if profile.search_mode == "jobs_token" else "offset"
    return GoogleJobsSearch(
        api_key, profile.query, paging=paging, location=where, extra_params=profile.extra_params
    )


def build_store(settings: Settings) -> SheetStore:
    client = service_account_client(settings.google_credentials, settings.service_account_file)
    return SheetStore(client, extract_spreadsheet_id(settings.spreadsheet_id), settings.sheet_name)


def run_profile(
    profile: ScrapeProfile,
    settings: Settings,
    *,
    store: Optional[JobStore] = None,
) -> RunSummary:
    search = build_search(profile, settings)
    return run_pipeline(profile, search, store if store is not None else build_store(settings))


def preview_jobs(page: SearchPage, limit: int) -> List[CanonicalJob]:
    """Normalize one search page for display; unusable results are skipped."""
    jobs = []
    for item in page.items[:limit]:
        try:
            job = normalize(item)
        except MALFORMED_RECORD_ERRORS:
            continue
        if job is not None:
            jobs.append(job)
    return jobs
