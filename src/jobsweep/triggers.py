# src/jobsweep/triggers.py
"""
Ways to start a sweep, all guarded by one run lock.

Only one sweep runs at a time per process; a trigger that fires while another
sweep is in progress is rejected rather than queued.

- run_now: synchronous, raises on failure (HTTP endpoints, CLI).
- start_background: fire-and-forget thread; failures only reach the log.
- run_scheduled: synchronous, logs success/failure and never raises (cron).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from jobsweep.config import ScrapeProfile
from jobsweep.errors import JobSweepError, RunInProgressError
from jobsweep.models import RunSummary

log = logging.getLogger(__name__)

Runner = Callable[[ScrapeProfile], RunSummary]


class RunLock:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise RunInProgressError("A job sweep is already running")

    def release(self) -> None:
        self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()


class ScrapeTrigger:
    def __init__(self, runner: Runner, lock: Optional[RunLock] = None):
        self.runner = runner
        self.lock = lock or RunLock()
        self._thread: Optional[threading.Thread] = None

    def run_now(self, profile: ScrapeProfile) -> RunSummary:
        self.lock.acquire()
        try:
            return self.runner(profile)
        finally:
            self.lock.release()

    def start_background(self, profile: ScrapeProfile) -> bool:
        """Start a sweep in a daemon thread and return at once. Raises RunInProgressError if busy."""
        self.lock.acquire()
        try:
            thread = threading.Thread(
                target=self._background, args=(profile,), name=f"sweep-{profile.name}", daemon=True
            )
            thread.start()
        except RuntimeError:
            self.lock.release()
            raise
        self._thread = thread
        return True

    def _background(self, profile: ScrapeProfile) -> None:
        try:
            summary = self.runner(profile)
            log.info("Background sweep %r finished: %s", profile.name, summary.to_dict())
        except Exception:
            log.exception("Background sweep %r failed", profile.name)
        finally:
            self.lock.release()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the last background sweep (tests, shutdown)."""
        if self._thread is not None:
            self._thread.join(timeout)

    def run_scheduled(self, profile: ScrapeProfile) -> Optional[RunSummary]:
        try:
            summary = self.run_now(profile)
        except RunInProgressError:
            log.warning("Scheduled sweep %r skipped: another sweep is running", profile.name)
            return None
        except JobSweepError as e:
            log.error("Scheduled sweep %r failed: %s", profile.name, e)
            return None
        except Exception:
            log.exception("Scheduled sweep %r failed", profile.name)
            return None
        log.info(
            "Scheduled sweep %r succeeded: %d fetched, %d new",
            profile.name, summary.total_fetched, summary.new_jobs_added,
        )
        return summary
