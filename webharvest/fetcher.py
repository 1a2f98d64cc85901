"""
HTTP fetching with retry classification and exponential backoff.
"""

import logging
import time

import requests

from webharvest.core import BACKOFF_BASE, DEFAULT_MAX_RETRIES, REQUEST_DEADLINE, REQUEST_TIMEOUT, USER_AGENT
from webharvest.errors import TransportFailure
from webharvest.models import FetchResult

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

# Exceptions meaning the transport never completed
TRANSPORT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    requests.exceptions.ChunkedEncodingError,
)

CHUNK_SIZE = 64 * 1024


class DeadlineExceeded(requests.exceptions.Timeout):
    """The response body was not fully read within the per-attempt deadline."""


class PageFetcher:
    """
    FLOW: GET with crawler headers -> read body under a wall-clock deadline ->
    retry 429/5xx and transport errors with backoff (1s, 2s, 4s, ...) ->
    return the last response, or raise TransportFailure if the transport never completed.
    """

    def __init__(self, max_retries=DEFAULT_MAX_RETRIES, user_agent=USER_AGENT,
                 timeout=REQUEST_TIMEOUT, deadline=REQUEST_DEADLINE, backoff=BACKOFF_BASE):
        self.max_retries = max_retries
        self.user_agent = user_agent
        self.timeout = timeout
        self.deadline = deadline
        self.backoff = backoff

    @property
    def headers(self):
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def backoff_delay(self, attempt: int) -> float:
        return self.backoff * (2 ** attempt)

    def fetch(self, url: str) -> FetchResult:
        start_time = time.time()

        for attempt in range(self.max_retries + 1):
            final_attempt = attempt == self.max_retries
            try:
                result = self._attempt(url, attempt + 1, start_time)
            except TRANSPORT_ERRORS as e:
                if final_attempt:
                    raise TransportFailure(url, attempt + 1, e) from e
                delay = self.backoff_delay(attempt)
                logger.warning(f"[RETRY {attempt + 1}/{self.max_retries}] {type(e).__name__} for {url}: {e}. Waiting {delay:g}s...")
                time.sleep(delay)
                continue

            if result.ok or result.status_code not in RETRYABLE_STATUS or final_attempt:
                if not result.ok and final_attempt and result.status_code in RETRYABLE_STATUS:
                    logger.error(f"{result.status_code} persisted for {url} after {self.max_retries} retries")
                return result

            delay = self.backoff_delay(attempt)
            logger.warning(f"[RETRY {attempt + 1}/{self.max_retries}] HTTP {result.status_code} for {url}. Waiting {delay:g}s...")
            time.sleep(delay)

        # Unreachable: the final attempt either returns or raises
        raise RuntimeError(f"Failed after {self.max_retries} retries: {url}")

    def _attempt(self, url, attempt, start_time) -> FetchResult:
        attempt_start = time.time()
        r = requests.get(url, headers=self.headers, timeout=self.timeout, allow_redirects=True, stream=True)
        try:
            body = self._read_body(r, attempt_start)
        finally:
            r.close()

        return FetchResult(
            url=url,
            final_url=r.url or url,
            status_code=r.status_code,
            reason=r.reason or "",
            content_type=(r.headers.get("Content-Type") or "").lower(),
            body=body,
            encoding=r.encoding,
            attempts=attempt,
            elapsed_ms=int((time.time() - start_time) * 1000),
            headers=dict(r.headers),
        )

    def _read_body(self, r, attempt_start) -> bytes:
        chunks = []
        for chunk in r.iter_content(CHUNK_SIZE):
            if chunk:
                chunks.append(chunk)
            if self.deadline and time.time() - attempt_start > self.deadline:
                raise DeadlineExceeded(f"body not received within {self.deadline:g}s")
        return b"".join(chunks)
