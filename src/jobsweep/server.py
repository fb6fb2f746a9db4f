# src/jobsweep/server.py
"""
HTTP endpoints for triggering sweeps and for one-off searches.

    GET  /health
    POST /api/scrape           filtered sweep, waits for the result
    POST /api/scrape/general   general sweep, waits for the result
    POST /api/scrape/async     filtered sweep in the background, answers at once
    POST /api/search           one page of Google Jobs results, normalized
    POST /api/search/adzuna    one page of Adzuna results, normalized
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import Callable, Optional

from flask import Flask, jsonify, request

from jobsweep.config import ScrapeProfile, Settings, get_profile
from jobsweep.errors import ConfigError, JobSweepError, RunInProgressError
from jobsweep.pipeline.run import SearchSource
from jobsweep.service import build_search, preview_jobs, run_profile
from jobsweep.triggers import ScrapeTrigger

log = logging.getLogger(__name__)

SearchFactory = Callable[[ScrapeProfile, Settings], SearchSource]


def create_app(
    settings: Optional[Settings] = None,
    trigger: Optional[ScrapeTrigger] = None,
    search_factory: SearchFactory = build_search,
) -> Flask:
    settings = settings or Settings.from_env()
    trigger = trigger or ScrapeTrigger(lambda profile: run_profile(profile, settings))

    app = Flask(__name__)

    def _error(message: str, status: int):
        return jsonify({"success": False, "error": message}), status

    def _sync_scrape(profile_name: str):
        profile = get_profile(profile_name, settings)
        log.info("Starting %s job sweep...", profile.name)
        try:
            summary = trigger.run_now(profile)
        except RunInProgressError as e:
            return _error(str(e), 409)
        except Exception as e:
            log.exception("Error in %s sweep", profile.name)
            return _error(str(e), 500)
        return jsonify(summary.to_dict())

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "timestamp": dt.datetime.now(dt.timezone.utc).isoformat()})

    @app.post("/api/scrape")
    def scrape():
        return _sync_scrape("filtered")

    @app.post("/api/scrape/general")
    def scrape_general():
        return _sync_scrape("general")

    @app.post("/api/scrape/async")
    def scrape_async():
        try:
            profile = get_profile(request.args.get("profile", "filtered"), settings)
        except ConfigError as e:
            return _error(str(e), 400)
        try:
            trigger.start_background(profile)
        except RunInProgressError as e:
            return _error(str(e), 409)
        return jsonify({"success": True, "message": f"Sweep {profile.name!r} started"}), 202

    def _search(base: str):
        body = request.get_json(silent=True) or {}
        what = str(body.get("what") or "").strip()
        if not what:
            return _error("'what' is required", 400)
        where = str(body.get("where") or "").strip()
        try:
            limit = max(1, min(int(body.get("limit") or 20), 100))
        except (TypeError, ValueError):
            return _error("'limit' must be a number", 400)

        profile = replace(PROFILE_FOR_SEARCH[base], query=what, where=where, results_per_page=limit)
        try:
            page = search_factory(profile, settings).fetch(None, limit)
        except JobSweepError as e:
            log.error("Search via %s failed: %s", base, e)
            return _error(str(e), 500)

        jobs = [j.to_dict() for j in preview_jobs(page, limit)]
        return jsonify({"success": True, "jobs": jobs, "total": len(jobs)})

    @app.post("/api/search")
    def search_serpapi():
        return _search("serpapi")

    @app.post("/api/search/adzuna")
    def search_adzuna():
        return _search("adzuna")

    app.config["SCRAPE_TRIGGER"] = trigger
    return app


PROFILE_FOR_SEARCH = {
    "serpapi": ScrapeProfile(name="search", query="-", search_mode="jobs_offset", remote=False),
    "adzuna": ScrapeProfile(name="search-adzuna", query="-", search_mode="adzuna", remote=False),
}
