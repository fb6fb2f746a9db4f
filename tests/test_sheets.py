from __future__ import annotations

import gspread
import pytest

from conftest import NOW
from jobsweep.errors import EmptyTableError, StorageError
from jobsweep.io.sheets import HEADERS, DryRunStore, SheetStore, job_to_row, rows_from_values
from jobsweep.models import CanonicalJob
from jobsweep.pipeline.dedupe import KnownJobIndex, is_duplicate


class FakeWorksheet:
    def __init__(self, values=None, fail=False):
        self.values = [list(r) for r in (values or [])]
        self.fail = fail
        self.append_calls = []

    def get_all_values(self):
        if self.fail:
            raise gspread.exceptions.GSpreadException("backend error")
        return [list(r) for r in self.values]

    def row_values(self, row):
        return list(self.values[row - 1]) if len(self.values) >= row else []

    def append_rows(self, rows, value_input_option=None, insert_data_option=None):
        if self.fail:
            raise gspread.exceptions.GSpreadException("backend error")
        self.append_calls.append((rows, value_input_option))
        self.values.extend(rows)


class FakeSpreadsheet:
    def __init__(self, worksheets):
        self.worksheets_by_title = dict(worksheets)

    def worksheet(self, title):
        try:
            return self.worksheets_by_title[title]
        except KeyError:
            raise gspread.WorksheetNotFound(title) from None

    def add_worksheet(self, title, rows, cols):
        ws = FakeWorksheet()
        self.worksheets_by_title[title] = ws
        return ws


class FakeClient:
    def __init__(self, spreadsheet):
        self.spreadsheet = spreadsheet

    def open_by_key(self, key):
        return self.spreadsheet


def _store(**worksheets):
    sh = FakeSpreadsheet(worksheets)
    return SheetStore(FakeClient(sh), "sheet-id", "Sheet1"), sh


def _job(**kw):
    base = dict(title="Designer", company="Acme", url="https://acme.com/1", source="other",
                location="Remote", posted_at="2 days ago", scraped_at=NOW)
    base.update(kw)
    return CanonicalJob(**base)


def test_read_all_maps_headers_to_keys():
    ws = FakeWorksheet([
        HEADERS,
        ["2026-01-01T00:00:00+00:00", "Designer", "Acme", "Remote", "https://acme.com/1"],
    ])
    store, _ = _store(Sheet1=ws)

    [row] = store.read_all()

    assert row["title"] == "Designer"
    assert row["company"] == "Acme"
    assert row["url"] == "https://acme.com/1"
    # trailing cells trimmed by Sheets come back empty
    assert row["status"] == ""


def test_read_all_accepts_legacy_url_header():
    rows = rows_from_values([
        ["Title", "Company", "Location", "URL", "Posted At"],
        ["Designer", "Acme", "Remote", "https://acme.com/1", "today"],
    ])
    assert rows[0]["url"] == "https://acme.com/1"


def test_header_only_sheet_has_no_rows():
    store, _ = _store(Sheet1=FakeWorksheet([HEADERS]))
    assert store.read_all() == []


@pytest.mark.parametrize("values", [[], [[]], [["", ""]]])
def test_empty_sheet_raises_empty_table(values):
    store, _ = _store(Sheet1=FakeWorksheet(values))
    with pytest.raises(EmptyTableError):
        store.read_all()


def test_missing_worksheet_raises_empty_table():
    store, _ = _store()
    with pytest.raises(EmptyTableError):
        store.read_all()


def test_backend_read_error_is_a_storage_error():
    store, _ = _store(Sheet1=FakeWorksheet([HEADERS], fail=True))
    with pytest.raises(StorageError) as exc_info:
        store.read_all()
    assert not isinstance(exc_info.value, EmptyTableError)


def test_append_writes_header_and_rows_in_one_call():
    ws = FakeWorksheet()
    store, _ = _store(Sheet1=ws)

    assert store.append_rows([_job(), _job(title="Lead Designer", url="https://acme.com/2")]) == 2

    [(rows, option)] = ws.append_calls
    assert option == "RAW"
    assert rows[0] == HEADERS
    assert rows[1][1:5] == ["Designer", "Acme", "Remote", "https://acme.com/1"]
    assert len(rows) == 3


def test_append_skips_header_when_present():
    ws = FakeWorksheet([HEADERS])
    store, _ = _store(Sheet1=ws)
    store.append_rows([_job()])
    [(rows, _)] = ws.append_calls
    assert rows[0][0] == NOW.isoformat(timespec="seconds")


LEGACY_HEADER = ["Title", "Company", "Location", "URL", "Posted At", "Schedule Type", "Scraped At"]


def test_append_follows_legacy_header_and_reads_back_as_duplicate():
    ws = FakeWorksheet([LEGACY_HEADER])
    store, _ = _store(Sheet1=ws)

    store.append_rows([_job(schedule_type="Full-time")])

    assert ws.values[-1] == [
        "Designer", "Acme", "Remote", "https://acme.com/1", "2 days ago", "Full-time", "2026-10-01T12:00:00+00:00",
    ]
    [row] = store.read_all()
    assert (row["title"], row["company"], row["url"]) == ("Designer", "Acme", "https://acme.com/1")
    assert is_duplicate(_job(url="https://acme.com/other"), KnownJobIndex.from_rows([row]))


def test_append_leaves_unknown_columns_blank():
    ws = FakeWorksheet([["Apply_URL", "Recruiter", "Title"]])
    store, _ = _store(Sheet1=ws)
    store.append_rows([_job()])
    assert ws.values[-1] == ["https://acme.com/1", "", "Designer"]


def test_append_refuses_header_without_url_column():
    ws = FakeWorksheet([["Name", "Notes"]])
    store, _ = _store(Sheet1=ws)
    with pytest.raises(StorageError):
        store.append_rows([_job()])
    assert ws.append_calls == []


def test_append_creates_missing_worksheet():
    store, sh = _store()
    store.append_rows([_job()])
    assert sh.worksheets_by_title["Sheet1"].append_calls


def test_append_nothing_makes_no_call():
    ws = FakeWorksheet([HEADERS])
    store, _ = _store(Sheet1=ws)
    assert store.append_rows([]) == 0
    assert ws.append_calls == []


def test_append_error_is_a_storage_error():
    store, _ = _store(Sheet1=FakeWorksheet([HEADERS], fail=True))
    with pytest.raises(StorageError):
        store.append_rows([_job()])


def test_job_to_row_layout():
    row = job_to_row(_job(policy_flag=True, schedule_type="Full-time"))
    assert dict(zip(HEADERS, row)) == {
        "Timestamp": "2026-10-01T12:00:00+00:00",
        "Title": "Designer",
        "Company": "Acme",
        "Location": "Remote",
        "Apply_URL": "https://acme.com/1",
        "Source": "other",
        "Posted": "2 days ago",
        "Status": "review_required",
        "Policy Flag": "TRUE",
        "Needs User Review": "TRUE",
        "Notes": "no-AI policy wording; Full-time",
    }


def test_dry_run_store_never_writes():
    ws = FakeWorksheet([HEADERS, ["t", "Designer", "Acme", "Remote", "https://acme.com/1"]])
    store, _ = _store(Sheet1=ws)
    dry = DryRunStore(store)

    assert dry.read_all()[0]["company"] == "Acme"
    dry.append_rows([_job()])
    assert len(dry.appended) == 1
    assert ws.append_calls == []
