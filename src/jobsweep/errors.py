# src/jobsweep/errors.py
"""Exceptions raised across the sweeper. Everything subclasses JobSweepError."""


class JobSweepError(Exception):
    pass


class ConfigError(JobSweepError):
    """Missing credentials or an invalid setting."""


class SearchError(JobSweepError):
    """A search page could not be fetched (after retries) or the API returned an error."""


class StorageError(JobSweepError):
    """The sheet could not be read or written."""


class EmptyTableError(StorageError):
    """The sheet (or its worksheet) has never been written to."""


class RunInProgressError(JobSweepError):
    """A sweep is already running; the new trigger was rejected."""
