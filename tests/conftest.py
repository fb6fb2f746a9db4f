from __future__ import annotations

import datetime as dt

import pytest

from jobsweep.config import ScrapeProfile
from jobsweep.models import JobEngineResult, SearchPage

NOW = dt.datetime(2026, 10, 1, 12, 0, tzinfo=dt.timezone.utc)


class FakeSearch:
    """Hands out pre-baked pages in order. An exception in the list is raised instead."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.calls = []

    def fetch(self, cursor=None, count=None):
        self.calls.append((cursor, count))
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


class FakeStore:
    def __init__(self, rows=None, read_error=None, append_error=None):
        self.rows = rows or []
        self.read_error = read_error
        self.append_error = append_error
        self.append_calls = []

    def read_all(self):
        if self.read_error is not None:
            raise self.read_error
        return list(self.rows)

    def append_rows(self, jobs):
        if self.append_error is not None:
            raise self.append_error
        self.append_calls.append(list(jobs))
        return len(jobs)


def engine(title, company, url=None, **extra):
    data = {"title": title, "company_name": company, **extra}
    if url:
        data["share_url"] = url
    return JobEngineResult(data)


def one_page(*items):
    return SearchPage(items=list(items), next_cursor=None)


@pytest.fixture
def profile():
    return ScrapeProfile(
        name="test",
        query="product designer remote",
        search_mode="jobs_token",
        total_results=80,
        results_per_page=10,
        delay_seconds=2.0,
    )

