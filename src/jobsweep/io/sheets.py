# src/jobsweep/io/sheets.py
"""
Google Sheet as the job datastore.

Rows are only ever appended. Reading gives back every stored job as a dict with
snake_case keys (title, company, url, ...), which is all the dedupe index needs.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import gspread
import pandas as pd

from jobsweep.errors import ConfigError, EmptyTableError, StorageError
from jobsweep.models import CanonicalJob

log = logging.getLogger(__name__)

HEADERS = [
    "Timestamp",
    "Title",
    "Company",
    "Location",
    "Apply_URL",
    "Source",
    "Posted",
    "Status",
    "Policy Flag",
    "Needs User Review",
    "Notes",
]

# Sheet header -> row key. "URL", "Posted At", "Scraped At" and "Schedule Type" are
# the columns of older sheets.
COLUMN_KEYS = {
    "Timestamp": "scraped_at",
    "Scraped At": "scraped_at",
    "Title": "title",
    "Company": "company",
    "Location": "location",
    "Apply_URL": "url",
    "URL": "url",
    "Source": "source",
    "Posted": "posted_at",
    "Posted At": "posted_at",
    "Schedule Type": "schedule_type",
    "Status": "status",
    "Policy Flag": "policy_flag",
    "Needs User Review": "needs_user_review",
    "Notes": "notes",
}

ROW_KEYS = ["scraped_at", "title", "company", "location", "url", "source", "posted_at", "status", "policy_flag"]


def service_account_client(credentials_json: str = "", filename: str = "service_account.json") -> gspread.Client:
    """Authorize with inline service-account JSON if given, else with the key file."""
    if credentials_json:
        try:
            info = json.loads(credentials_json)
        except json.JSONDecodeError as e:
            raise ConfigError("GOOGLE_CREDENTIALS is not valid JSON") from e
        return gspread.service_account_from_dict(info)
    try:
        return gspread.service_account(filename=filename)
    except FileNotFoundError as e:
        raise ConfigError(f"Service account key file not found: {filename}") from e


def job_to_record(job: CanonicalJob) -> Dict[str, str]:
    """Cell values for one job, keyed like COLUMN_KEYS values."""
    notes = []
    if job.policy_flag:
        notes.append("no-AI policy wording")
    if job.schedule_type:
        notes.append(job.schedule_type)
    return {
        "scraped_at": job.scraped_at.isoformat(timespec="seconds"),
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "url": job.url,
        "source": job.source,
        "posted_at": job.posted_at,
        "status": job.status.value,
        "policy_flag": "TRUE" if job.policy_flag else "FALSE",
        "needs_user_review": "TRUE",
        "schedule_type": job.schedule_type,
        "notes": "; ".join(notes),
    }


def job_to_row(job: CanonicalJob, header: Optional[List[str]] = None) -> List[str]:
    """Lay a job out in the column order of `header` (HEADERS by default); unknown columns stay blank."""
    record = job_to_record(job)
    return [record.get(COLUMN_KEYS.get(h, ""), "") for h in (header or HEADERS)]


def rows_from_values(values: List[List[str]]) -> List[Dict[str, Any]]:
    """
    Turn raw sheet values (header row first) into row dicts.

    Unknown columns are ignored; missing ones come back as "".
    """
    header, body = values[0], values[1:]
    if not body:
        return []
    width = len(header)
    # Sheets trims trailing empty cells, so pad every row to the header width
    padded = [(r + [""] * width)[:width] for r in body]
    df = pd.DataFrame(padded, columns=header)
    df = df.loc[:, [c for c in df.columns if c in COLUMN_KEYS]]
    df = df.loc[:, ~df.columns.duplicated()]
    df = df.rename(columns=COLUMN_KEYS)
    df = df.loc[:, ~df.columns.duplicated()]
    df = df.reindex(columns=ROW_KEYS, fill_value="").fillna("").astype(str)
    return df.to_dict(orient="records")


class SheetStore:
    """Append-only job table in one worksheet of a spreadsheet."""

    def __init__(self, client: gspread.Client, spreadsheet_id: str, sheet_name: str = "Sheet1"):
        self.client = client
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    def _spreadsheet(self):
        try:
            return self.client.open_by_key(self.spreadsheet_id)
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Could not open spreadsheet {self.spreadsheet_id}: {e}") from e

    def _worksheet(self, create: bool = False):
        sh = self._spreadsheet()
        try:
            return sh.worksheet(self.sheet_name)
        except gspread.WorksheetNotFound:
            if not create:
                raise EmptyTableError(f"Worksheet {self.sheet_name!r} does not exist yet") from None
            log.info("Creating worksheet %r", self.sheet_name)
            return sh.add_worksheet(title=self.sheet_name, rows=1000, cols=len(HEADERS))
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Could not open worksheet {self.sheet_name!r}: {e}") from e

    def read_all(self) -> List[Dict[str, Any]]:
        ws = self._worksheet()
        try:
            values = ws.get_all_values()
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Could not read {self.sheet_name!r}: {e}") from e
        if not values or not any(values[0]):
            raise EmptyTableError(f"Worksheet {self.sheet_name!r} is empty")
        return rows_from_values(values)

    def append_rows(self, jobs: List[CanonicalJob]) -> int:
        """
        Append jobs in one call and return the number of rows written.

        Rows follow the sheet's own header row, so sheets with the older column
        layout keep reading back correctly. A sheet with no header gets HEADERS.
        """
        if not jobs:
            return 0
        ws = self._worksheet(create=True)
        try:
            header = ws.row_values(1)
            out = []
            if not any(header):
                log.info("Sheet %r has no header row; writing it", self.sheet_name)
                header = HEADERS
                out.append(HEADERS)
            elif "url" not in {COLUMN_KEYS.get(h) for h in header}:
                raise StorageError(f"Sheet {self.sheet_name!r} has no URL column in its header: {header}")
            out.extend(job_to_row(j, header) for j in jobs)
            ws.append_rows(out, value_input_option="RAW", insert_data_option="INSERT_ROWS")
        except gspread.exceptions.GSpreadException as e:
            raise StorageError(f"Could not append to {self.sheet_name!r}: {e}") from e
        log.info("Appended %d rows to %r", len(jobs), self.sheet_name)
        return len(jobs)

    def headers(self) -> List[str]:
        return self._worksheet().row_values(1)


class DryRunStore:
    """Reads through to a real store but never writes; keeps what would have been appended."""

    def __init__(self, inner: Optional[SheetStore] = None):
        self.inner = inner
        self.appended: List[CanonicalJob] = []

    def read_all(self) -> List[Dict[str, Any]]:
        if self.inner is None:
            raise EmptyTableError("No sheet configured for dry run")
        return self.inner.read_all()

    def append_rows(self, jobs: List[CanonicalJob]) -> int:
        self.appended.extend(jobs)
        return len(jobs)
