# src/jobsweep/clients/serpapi.py

"""
SerpAPI client: one GET helper with retries, and two search sources on top.

- GoogleJobsSearch: engine=google_jobs, paged by offset (`start`) or by
  `next_page_token`.
- WebSearch: engine=google organic results, paged by offset.

Both return SearchPage objects whose items are wrapped raw results; the
pipeline never sees SerpAPI's JSON layout.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from jobsweep.errors import ConfigError, SearchError
from jobsweep.models import JobEngineResult, SearchPage, WebSearchResult

log = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
PAGING_MODES = ("offset", "token")


@retry(
    wait=wait_exponential(min=1, max=16),
    stop=stop_after_attempt(5),
    retry=retry_if_exception_type(httpx.HTTPError),
    reraise=True,
)
def _get_json(params: Dict[str, str]) -> Dict:
    with httpx.Client(timeout=30) as client:
        resp = client.get(SERPAPI_URL, params=params)
        resp.raise_for_status()
        return resp.json()


def serpapi_search(params: Dict[str, str]) -> Dict:
    """
    Run one SerpAPI request and return the JSON body.

    Raises SearchError for transport failures (after retries), for bodies that
    are not a JSON object, and for SerpAPI's own {"error": "..."} payloads.
    """
    try:
        data = _get_json(params)
    except httpx.HTTPError as e:
        raise SearchError(f"SerpAPI request failed: {e}") from e
    except ValueError as e:
        raise SearchError(f"SerpAPI returned a body that is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise SearchError(f"SerpAPI returned {type(data).__name__}, expected a JSON object")
    if data.get("error"):
        # "Google hasn't returned any results for this query." is SerpAPI's way of saying "empty page"
        if "hasn't returned any results" in str(data["error"]):
            return {}
        raise SearchError(f"SerpAPI error: {data['error']}")
    return data


class GoogleJobsSearch:
    """Search source over the google_jobs engine."""

    def __init__(
        self,
        api_key: str,
        query: str,
        *,
        paging: str = "token",
        location: Optional[str] = None,
        extra_params: Optional[Dict[str, str]] = None,
    ):
        if not api_key:
            raise ConfigError("SerpAPI key is required")
        if paging not in PAGING_MODES:
            raise ConfigError(f"paging must be one of {PAGING_MODES}, got {paging!r}")
        self.api_key = api_key
        self.query = query
        self.paging = paging
        self.location = location
        self.extra_params = dict(extra_params or {})

    def _params(self, cursor: Optional[Union[int, str]], count: Optional[int]) -> Dict[str, str]:
        params = {
            "engine": "google_jobs",
            "q": self.query,
            "api_key": self.api_key,
            **self.extra_params,
        }
        if self.location:
            params["location"] = self.location
        if self.paging == "token":
            if cursor:
                params["next_page_token"] = str(cursor)
        else:
            params["start"] = str(int(cursor or 0))
            if count:
                params["num"] = str(count)
        return params

    def fetch(self, cursor: Optional[Union[int, str]] = None, count: Optional[int] = None) -> SearchPage:
        data = serpapi_search(self._params(cursor, count))
        results = data.get("jobs_results") or []
        items = [JobEngineResult(r) for r in results]

        if self.paging == "token":
            next_cursor = (data.get("serpapi_pagination") or {}).get("next_page_token")
        else:
            next_cursor = int(cursor or 0) + len(results) if results else None
        return SearchPage(items=items, next_cursor=next_cursor or None)


class WebSearch:
    """Search source over plain Google results (title/link/snippet/date)."""

    def __init__(
        self,
        api_key: str,
        query: str,
        *,
        location: Optional[str] = None,
        extra_params: Optional[Dict[str, str]] = None,
    ):
        if not api_key:
            raise ConfigError("SerpAPI key is required")
        self.api_key = api_key
        self.query = query
        self.location = location
        self.extra_params = dict(extra_params or {})

    def fetch(self, cursor: Optional[Union[int, str]] = None, count: Optional[int] = None) -> SearchPage:
        start = int(cursor or 0)
        params = {
            "engine": "google",
            "q": self.query,
            "api_key": self.api_key,
            "start": str(start),
            **self.extra_params,
        }
        if count:
            params["num"] = str(count)
        if self.location:
            params["location"] = self.location

        data = serpapi_search(params)
        results = data.get("organic_results") or []
        has_next = bool((data.get("serpapi_pagination") or {}).get("next"))
        next_cursor = start + len(results) if results and has_next else None
        return SearchPage(items=[WebSearchResult(r) for r in results], next_cursor=next_cursor)
