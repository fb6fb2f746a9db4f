from __future__ import annotations

import threading

import pytest

from jobsweep.errors import RunInProgressError, StorageError
from jobsweep.models import RunSummary
from jobsweep.triggers import RunLock, ScrapeTrigger


class BlockingRunner:
    """Runner that holds the lock until released, so overlap can be tested."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def __call__(self, profile):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        return RunSummary(profile=profile.name, total_fetched=3, new_jobs_added=1)


def _failing(profile):
    raise StorageError("quota exceeded")


def test_run_now_returns_summary(profile):
    trigger = ScrapeTrigger(lambda p: RunSummary(profile=p.name, total_fetched=5, new_jobs_added=2))
    summary = trigger.run_now(profile)
    assert (summary.total_fetched, summary.new_jobs_added) == (5, 2)
    assert not trigger.lock.busy


def test_run_now_propagates_and_releases_lock(profile):
    trigger = ScrapeTrigger(_failing)
    with pytest.raises(StorageError):
        trigger.run_now(profile)
    assert not trigger.lock.busy


def test_second_trigger_is_rejected_while_running(profile):
    runner = BlockingRunner()
    trigger = ScrapeTrigger(runner)

    assert trigger.start_background(profile) is True
    assert runner.started.wait(5)

    with pytest.raises(RunInProgressError):
        trigger.run_now(profile)
    with pytest.raises(RunInProgressError):
        trigger.start_background(profile)
    assert trigger.run_scheduled(profile) is None

    runner.release.set()
    trigger.join(5)
    assert runner.calls == 1
    assert not trigger.lock.busy


def test_background_failure_only_reaches_the_log(profile, caplog):
    trigger = ScrapeTrigger(_failing)
    trigger.start_background(profile)
    trigger.join(5)

    assert not trigger.lock.busy
    assert "Background sweep 'test' failed" in caplog.text


def test_scheduled_run_logs_failure_instead_of_raising(profile, caplog):
    trigger = ScrapeTrigger(_failing)
    assert trigger.run_scheduled(profile) is None
    assert "quota exceeded" in caplog.text


def test_scheduled_run_returns_summary(profile):
    trigger = ScrapeTrigger(lambda p: RunSummary(profile=p.name, new_jobs_added=4))
    assert trigger.run_scheduled(profile).new_jobs_added == 4


def test_run_lock():
    lock = RunLock()
    lock.acquire()
    assert lock.busy
    with pytest.raises(RunInProgressError):
        lock.acquire()
    lock.release()
    assert not lock.busy
