"""
Exception types raised by the crawl engine.

Per-page failures (TransportFailure, HttpStatusFailure) are caught at the task
boundary and recorded in the ledger. FatalSetupFailure and ConfigError abort
the run before any page is fetched.
"""


class WebHarvestError(Exception):
    """Base class for all webharvest errors."""


class TransportFailure(WebHarvestError):
    """The transport never completed (connect/reset/DNS/timeout) after all attempts."""

    def __init__(self, url, attempts, cause):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")

    @property
    def retried(self):
        return self.attempts > 1


class HttpStatusFailure(WebHarvestError):
    """A response was received but its status is not a success."""

    def __init__(self, url, status_code, reason="", attempts=1):
        self.url = url
        self.status_code = status_code
        self.reason = reason or ""
        self.attempts = attempts
        message = f"HTTP {status_code}: {self.reason}" if self.reason else f"HTTP {status_code}"
        super().__init__(message)

    @property
    def retried(self):
        return self.attempts > 1


class FatalSetupFailure(WebHarvestError):
    """Crawl cannot start (output directory, initial robots fetch)."""


class ConfigError(WebHarvestError, ValueError):
    """Invalid option value or unreadable configuration file."""
