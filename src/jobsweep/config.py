# src/jobsweep/config.py
"""
Runtime configuration.

- Settings: credentials and deployment knobs, read from the environment (the CLI loads .env first).
- ScrapeProfile: how one sweep searches (query, paging mode, budget, delay, filters).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from jobsweep.errors import ConfigError
from jobsweep.models import PolicyMode


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def extract_spreadsheet_id(value: str) -> str:
    """
    Accept a bare spreadsheet id or a full Google Sheets URL and return the id.

    https://docs.google.com/spreadsheets/d/{ID}/edit#gid=0 -> {ID}
    """
    if not value or not value.strip():
        raise ConfigError("SPREADSHEET_ID is not set")
    value = value.strip()
    if "/" not in value:
        return value
    match = re.search(r"/spreadsheets/d/([a-zA-Z0-9-_]+)", value)
    if match:
        return match.group(1)
    raise ConfigError(f"Invalid SPREADSHEET_ID format: {value!r}")


def parse_policy_mode(value: Optional[str]) -> PolicyMode:
    if not value:
        return PolicyMode.DROP
    try:
        return PolicyMode(value.strip().lower())
    except ValueError as e:
        raise ConfigError(f"POLICY_MODE must be 'drop' or 'flag', got {value!r}") from e


@dataclass
class Settings:
    serpapi_key: str = ""
    adzuna_app_id: str = ""
    adzuna_app_key: str = ""
    adzuna_country: str = "us"

    # Bare id or full URL; see extract_spreadsheet_id
    spreadsheet_id: str = ""
    sheet_name: str = "Sheet1"

    # Service account: inline JSON wins over the key file
    google_credentials: str = ""
    service_account_file: str = "service_account.json"

    scrape_query: str = ""
    # None leaves each profile's own policy mode alone
    policy_mode: Optional[PolicyMode] = None
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        policy_mode = os.getenv("POLICY_MODE", "").strip()
        return cls(
            serpapi_key=os.getenv("SERPAPI_KEY", ""),
            adzuna_app_id=os.getenv("ADZUNA_APP_ID", ""),
            adzuna_app_key=os.getenv("ADZUNA_APP_KEY", ""),
            adzuna_country=os.getenv("ADZUNA_COUNTRY", "us"),
            spreadsheet_id=os.getenv("SPREADSHEET_ID", ""),
            sheet_name=os.getenv("SHEET_NAME", "Sheet1"),
            google_credentials=os.getenv("GOOGLE_CREDENTIALS", ""),
            service_account_file=os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE", "service_account.json"),
            scrape_query=os.getenv("SCRAPE_QUERY", ""),
            policy_mode=parse_policy_mode(policy_mode) if policy_mode else None,
            port=_env_int("PORT", 3000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_serpapi(self) -> str:
        if not self.serpapi_key:
            raise ConfigError("Set SERPAPI_KEY (in .env).")
        return self.serpapi_key

    def require_adzuna(self) -> Tuple[str, str]:
        if not self.adzuna_app_id or not self.adzuna_app_key:
            raise ConfigError("Set ADZUNA_APP_ID and ADZUNA_APP_KEY env vars (in .env).")
        return self.adzuna_app_id, self.adzuna_app_key


# ---- Sweep profiles ----------------------------------------------------------

SEARCH_MODES = ("jobs_token", "jobs_offset", "web", "adzuna")


@dataclass(frozen=True)
class ScrapeProfile:
    name: str
    query: str

    # jobs_token | jobs_offset (google_jobs), web (google organic), adzuna
    search_mode: str = "jobs_token"

    # Stop fetching once this many raw results are in hand
    total_results: int = 80
    results_per_page: int = 10
    delay_seconds: float = 2.0

    policy_mode: PolicyMode = PolicyMode.DROP

    # None = any source
    allowed_sources: Optional[Tuple[str, ...]] = None

    # None = no recency filter
    max_age_days: Optional[int] = None

    # Location fallback "Remote" when the feed has none
    remote: bool = True

    where: str = ""
    extra_params: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.search_mode not in SEARCH_MODES:
            raise ConfigError(f"Unknown search mode {self.search_mode!r}; expected one of {SEARCH_MODES}")
        if self.total_results <= 0 or self.results_per_page <= 0:
            raise ConfigError("total_results and results_per_page must be positive")
        if self.delay_seconds < 0:
            raise ConfigError("delay_seconds cannot be negative")

    def with_overrides(
        self,
        *,
        query: Optional[str] = None,
        policy_mode: Optional[PolicyMode] = None,
    ) -> "ScrapeProfile":
        changes = {}
        if query:
            changes["query"] = query
        if policy_mode is not None:
            changes["policy_mode"] = policy_mode
        return replace(self, **changes) if changes else self


PROFILES: Dict[str, ScrapeProfile] = {
    # Board-restricted sweep: only jobs whose links point at the ATS boards we apply through
    "filtered": ScrapeProfile(
        name="filtered",
        query="product designer design system remote",
        search_mode="jobs_token",
        total_results=80,
        delay_seconds=2.0,
        allowed_sources=("greenhouse", "lever", "ashby", "linkedin"),
        max_age_days=14,
    ),
    # Wider pool, any source
    "general": ScrapeProfile(
        name="general",
        query="product designer remote",
        search_mode="jobs_offset",
        total_results=150,
        delay_seconds=3.0,
    ),
    # Plain web search straight at the ATS boards
    "boards": ScrapeProfile(
        name="boards",
        query=(
            "product designer remote "
            "(site:boards.greenhouse.io OR site:jobs.lever.co OR site:jobs.ashbyhq.com)"
        ),
        search_mode="web",
        total_results=80,
        delay_seconds=2.0,
    ),
    "adzuna": ScrapeProfile(
        name="adzuna",
        query="product designer",
        search_mode="adzuna",
        total_results=100,
        results_per_page=50,
        delay_seconds=2.0,
    ),
}


def get_profile(name: str, settings: Optional[Settings] = None) -> ScrapeProfile:
    """Look up a named profile and apply SCRAPE_QUERY / POLICY_MODE from settings."""
    try:
        profile = PROFILES[name]
    except KeyError:
        raise ConfigError(f"Unknown profile {name!r}; choose from {', '.join(PROFILES)}") from None
    if settings is None:
        return profile
    return profile.with_overrides(query=settings.scrape_query or None, policy_mode=settings.policy_mode)
