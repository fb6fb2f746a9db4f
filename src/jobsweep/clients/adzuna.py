# src/jobsweep/clients/adzuna.py

"""
Plain-function client for Adzuna's Jobs API, plus a small paging adapter.

- All HTTP details (URL, timeouts, retries) live here.
- `adzuna_search` returns Adzuna's raw JSON page.
- `AdzunaSearch` wraps it as a search source for the sweep pipeline.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from jobsweep.errors import SearchError
from jobsweep.models import AdzunaResult, SearchPage

log = logging.getLogger(__name__)


def _base_url(country: str, page: int) -> str:
    """Adzuna paginates with integer pages: /search/1, /search/2, ..."""
    return f"https://api.adzuna.com/v1/api/jobs/{country}/search/{page}"


def _default_headers() -> Dict[str, str]:
    return {"User-Agent": "jobsweep/0.1"}


@retry(
    # 1s, 2s, 4s ... up to 16s between attempts; give up after 5.
    wait=wait_exponential(min=1, max=16),
    stop=stop_after_attempt(5),
    retry=retry_if_exception_type(httpx.HTTPError),
    reraise=True,
)
def _get_json(url: str, params: Dict[str, str]) -> Dict:
    with httpx.Client(timeout=20, headers=_default_headers()) as client:
        resp = client.get(url, params=params)
        resp.raise_for_status()  # httpx.HTTPStatusError for 4xx/5xx
        return resp.json()


def adzuna_search(
    app_id: str,
    app_key: str,
    query: str,
    *,
    country: str = "us",
    page: int = 1,
    results_per_page: int = 50,
    where: Optional[str] = None,
    category: Optional[str] = None,
) -> Dict:
    """
    Fetch ONE page of Adzuna results and return the raw JSON (dict).

    - page: 1-based results page.
    - where: optional location filter (e.g., "San Francisco, CA").
    - category: optional Adzuna category code (e.g., "it-jobs").
    """
    params: Dict[str, str] = {
        "app_id": app_id,
        "app_key": app_key,
        "what": query,
        "results_per_page": str(results_per_page),
    }
    if where:
        params["where"] = where
    if category:
        params["category"] = category

    return _get_json(_base_url(country=country, page=page), params)


class AdzunaSearch:
    """Search source over Adzuna pages. Cursor is the 1-based page number."""

    def __init__(
        self,
        app_id: str,
        app_key: str,
        query: str,
        *,
        country: str = "us",
        results_per_page: int = 50,
        where: Optional[str] = None,
    ):
        self.app_id = app_id
        self.app_key = app_key
        self.query = query
        self.country = country
        self.results_per_page = results_per_page
        self.where = where

    def fetch(self, cursor: Optional[Union[int, str]] = None, count: Optional[int] = None) -> SearchPage:
        page = int(cursor or 1)
        try:
            data = adzuna_search(
                self.app_id,
                self.app_key,
                self.query,
                country=self.country,
                page=page,
                # Adzuna pages are fixed-size, so the page size never shrinks for the last call
                results_per_page=self.results_per_page,
                where=self.where,
            )
        except httpx.HTTPError as e:
            raise SearchError(f"Adzuna page {page} failed: {e}") from e
        except ValueError as e:
            raise SearchError(f"Adzuna page {page} is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise SearchError(f"Adzuna page {page} returned {type(data).__name__}, expected a JSON object")

        results = data.get("results") or []
        log.debug("Adzuna page %s returned %d results", page, len(results))
        # Stop paging once Adzuna hands back an empty page
        next_cursor = page + 1 if results else None
        return SearchPage(items=[AdzunaResult(r) for r in results], next_cursor=next_cursor)
