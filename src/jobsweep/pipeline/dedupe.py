# src/jobsweep/pipeline/dedupe.py
"""
Duplicate suppression against jobs already in the sheet.

A KnownJobIndex is built once per run from the persisted rows, then grows as
jobs are accepted so a batch never emits the same job twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Set

from jobsweep.models import CanonicalJob


def company_title_key(company: str, title: str) -> str:
    return f"{(company or '').lower()}|{(title or '').lower()}"


@dataclass
class KnownJobIndex:
    urls: Set[str] = field(default_factory=set)
    company_title_keys: Set[str] = field(default_factory=set)

    @classmethod
    def from_rows(cls, rows: Iterable[Dict]) -> "KnownJobIndex":
        """Build from stored rows; each row needs at least title, company and url."""
        index = cls()
        for row in rows:
            index.add(
                url=str(row.get("url") or ""),
                company=str(row.get("company") or ""),
                title=str(row.get("title") or ""),
            )
        return index

    def add(self, *, url: str, company: str, title: str) -> None:
        if url:
            self.urls.add(url.lower())
        # a row with neither company nor title would key every blank job as "|"
        if company or title:
            self.company_title_keys.add(company_title_key(company, title))

    def register(self, job: CanonicalJob) -> None:
        self.add(url=job.url, company=job.company, title=job.title)

    def __len__(self) -> int:
        return len(self.company_title_keys)


def is_duplicate(job: CanonicalJob, index: KnownJobIndex) -> bool:
    """Either key is enough: same url, or same company|title."""
    if job.url and job.url.lower() in index.urls:
        return True
    return job.identity_key in index.company_title_keys


def accept_if_new(job: CanonicalJob, index: KnownJobIndex) -> bool:
    """
    Return True and register the job when it is not a duplicate.

    Registration happens right away, so of two results that resolve to the
    same job in one batch only the first one gets through.
    """
    if is_duplicate(job, index):
        return False
    index.register(job)
    return True
