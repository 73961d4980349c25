"""
Exception hierarchy for the notices scraper.

Per-page and per-item failures are caught and logged at the orchestration
seams. Store write failures and exhausted quotas propagate to the caller.
"""


class ScraperError(Exception):
    """Base class for all scraper errors."""


class ConfigError(ScraperError):
    """Invalid or missing source configuration."""


class FetchError(ScraperError):
    """A document could not be fetched or rendered."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}" if reason else f"Failed to fetch {url}")


class StoreWriteError(ScraperError):
    """A persistent store could not be written. Fatal to the run."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write store {path}: {reason}")


class QuotaExceededError(ScraperError):
    """A rate-limited collaborator kept refusing after the full backoff schedule."""

    def __init__(self, label: str, attempts: int):
        self.label = label
        self.attempts = attempts
        super().__init__(f"Quota exceeded for '{label}' after {attempts} attempts")
