# src/jobsweep/cli.py
"""
Command-line interface for the job sweeper.

This module provides CLI commands to:
- Run a sweep (search → filter → dedupe → append to the sheet)
- Run a sweep from cron (logs instead of failing)
- Preview one page of search results
- Serve the HTTP endpoints
- Debug the Google Sheets connection and header row
"""

from dotenv import load_dotenv
load_dotenv(override=True)  # automatically looks for a .env file in the project root

import json
import logging
import os
from dataclasses import replace
from typing import Optional

import typer

from jobsweep.config import PROFILES, Settings, get_profile, parse_policy_mode
from jobsweep.errors import JobSweepError
from jobsweep.io.sheets import DryRunStore
from jobsweep.service import build_search, build_store, preview_jobs, run_profile
from jobsweep.triggers import ScrapeTrigger

app = typer.Typer(help="Job sweeper")


def _settings() -> Settings:
    try:
        return Settings.from_env()
    except JobSweepError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides LOG_LEVEL"),
):
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def scrape(
    profile: str = typer.Option("filtered", "--profile", help=f"One of: {', '.join(PROFILES)}"),
    query: Optional[str] = typer.Option(None, "--query", help="Override the profile's search query"),
    policy_mode: Optional[str] = typer.Option(None, "--policy-mode", help="drop or flag 'no AI' postings"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print new jobs but do not write to Sheets"),
):
    """
    Search → normalize → drop 'no AI' → dedupe against the sheet → append new rows.
    """
    settings = _settings()
    try:
        prof = get_profile(profile, settings).with_overrides(
            query=query, policy_mode=parse_policy_mode(policy_mode) if policy_mode else None
        )
        typer.echo(f"Running {prof.name!r} sweep for query: {prof.query!r}...")

        store = DryRunStore(build_store(settings)) if dry_run else None
        summary = run_profile(prof, settings, store=store)
    except JobSweepError as e:
        typer.echo(f"Sweep failed: {e}", err=True)
        raise typer.Exit(code=1)

    out = summary.to_dict()
    if dry_run:
        out["preview_rows"] = [j.to_dict() for j in store.appended]
    typer.echo(json.dumps(out, indent=2))


@app.command()
def scheduled_run(
    profile: str = typer.Option("filtered", "--profile", help=f"One of: {', '.join(PROFILES)}"),
):
    """
    Entry point for cron: runs one sweep, logs success or failure, exits non-zero on failure.
    """
    settings = _settings()
    try:
        prof = get_profile(profile, settings)
    except JobSweepError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    trigger = ScrapeTrigger(lambda p: run_profile(p, settings))
    summary = trigger.run_scheduled(prof)
    if summary is None:
        raise typer.Exit(code=1)
    typer.echo(json.dumps(summary.to_dict(), indent=2))


@app.command()
def search(
    query: str,
    provider: str = typer.Option("serpapi", "--provider", help="serpapi or adzuna"),
    where: str = typer.Option("", "--where", help="Location filter"),
    limit: int = typer.Option(10, "--limit", help="Results to show"),
):
    """
    Quick check: one page of normalized results, nothing filtered or written.
    """
    settings = _settings()
    mode = {"serpapi": "jobs_offset", "adzuna": "adzuna"}.get(provider)
    if mode is None:
        typer.echo("--provider must be serpapi or adzuna", err=True)
        raise typer.Exit(code=1)

    base = PROFILES["adzuna" if provider == "adzuna" else "general"]
    prof = replace(base, query=query, search_mode=mode, where=where, results_per_page=limit, remote=False)
    try:
        page = build_search(prof, settings).fetch(None, limit)
    except JobSweepError as e:
        typer.echo(f"Search failed: {e}", err=True)
        raise typer.Exit(code=1)

    print(json.dumps([j.to_dict() for j in preview_jobs(page, limit)], indent=2))


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", help="Defaults to PORT or 3000"),
    host: str = typer.Option("0.0.0.0", "--host"),
):
    """
    Run the HTTP endpoints (health, scrape triggers, search).
    """
    from jobsweep.server import create_app

    settings = _settings()
    flask_app = create_app(settings)
    typer.echo(f"Job sweeper service running on port {port or settings.port}")
    flask_app.run(host=host, port=port or settings.port)


@app.command()
def sheets_debug():
    """
    List worksheet titles and IDs to verify the service account can see the spreadsheet.
    """
    settings = _settings()
    try:
        store = build_store(settings)
        sh = store.client.open_by_key(store.spreadsheet_id)
    except Exception as e:
        typer.echo(f"Could not open spreadsheet: {e}", err=True)
        raise typer.Exit(code=1)

    for ws in sh.worksheets():
        print(f"{ws.title}  gid={ws.id}")


@app.command()
def jobs_headers():
    """
    Debug: show the first row of the jobs worksheet so we can confirm headers.
    """
    settings = _settings()
    try:
        header_row = build_store(settings).headers()
    except JobSweepError as e:
        typer.echo(f"Could not read headers: {e}", err=True)
        raise typer.Exit(code=1)
    print(f"Headers in {settings.sheet_name!r} tab:", header_row)


if __name__ == "__main__":
    app()
