"""
Thread-safe frontier for the crawl engine.
Holds pending URLs in FIFO order plus the in-flight and visited sets, and is the
single admission point: every discovered link passes through admit(), which
enforces scope, extension policy, glob filters, robots rules, deduplication and
the queue capacity.
"""

import logging
import os
from collections import deque
from threading import Lock

import psutil

from webharvest.core import DEFAULT_MAX_QUEUE_SIZE, QUEUE_NOTICE_INTERVAL
from webharvest.policy import URLPolicy

logger = logging.getLogger(__name__)

# Admission statuses returned by Frontier.admit / Frontier.seed
ENQUEUED = "enqueued"
NON_HTTP = "non_http"
OFF_ORIGIN = "off_origin"
OUT_OF_SCOPE = "out_of_scope"
SKIPPED_EXTENSION = "skipped_extension"
FILTERED = "filtered"
ROBOTS_DISALLOWED = "robots_disallowed"
DUPLICATE = "duplicate"
QUEUE_FULL = "queue_full"
INVALID = "invalid"


class Frontier:
    """
    FIFO frontier. Each URL moves pending -> in_flight -> visited exactly once.
    Pass robots=None to disable robots compliance.
    """

    def __init__(self, scope, file_filter, robots=None, max_queue_size=DEFAULT_MAX_QUEUE_SIZE):
        self.scope = scope
        self.file_filter = file_filter
        self.robots = robots
        self.max_queue_size = max_queue_size

        self.state_lock = Lock()
        self.queue = deque()
        self.pending = set()
        self.in_flight = set()
        self.visited = set()

        self.stats = {}
        self._queue_full_warned = False

    def _count(self, status):
        self.stats[status] = self.stats.get(status, 0) + 1
        return status

    def seed(self, url):
        """Admit the seed directly. Glob filters do not apply to the seed; robots rules do."""
        try:
            normalized = URLPolicy.normalize(url)
        except ValueError:
            logger.warning(f"seed: unparseable URL {url!r}")
            return self._count(INVALID)
        if self.robots is not None and not self.robots.is_allowed(normalized):
            logger.warning(f"seed: {normalized} is disallowed by robots.txt")
            return self._count(ROBOTS_DISALLOWED)
        return self._push(normalized)

    def admit(self, candidate, source=None):
        """
        Resolve candidate against source and admit it if every check passes.
        Returns an admission status string; only "enqueued" changes frontier state.
        """
        try:
            url = URLPolicy.normalize(candidate, source)
        except ValueError as e:
            logger.debug(f"admit: unparseable link {candidate!r}: {e}")
            return self._count(INVALID)
        if not URLPolicy.is_http(url):
            return self._count(NON_HTTP)
        if not self.scope.same_origin(url):
            return self._count(OFF_ORIGIN)
        if not self.scope.in_subtree(url):
            return self._count(OUT_OF_SCOPE)
        if URLPolicy.is_non_document(url):
            return self._count(SKIPPED_EXTENSION)
        if not self.file_filter.should_crawl_url(url):
            logger.debug(f"admit: filtered by include/exclude patterns: {url}")
            return self._count(FILTERED)
        if self.robots is not None and not self.robots.is_allowed(url):
            logger.debug(f"admit: disallowed by robots.txt: {url}")
            return self._count(ROBOTS_DISALLOWED)
        return self._push(url)

    def _push(self, url):
        with self.state_lock:
            if url in self.pending or url in self.in_flight or url in self.visited:
                return self._count(DUPLICATE)
            if len(self.queue) >= self.max_queue_size:
                if not self._queue_full_warned:
                    self._queue_full_warned = True
                    logger.warning(f"Queue size limit ({self.max_queue_size}) reached. Dropping newly discovered URLs.")
                return self._count(QUEUE_FULL)

            self.queue.append(url)
            self.pending.add(url)
            size = len(self.queue)

        if size % QUEUE_NOTICE_INTERVAL == 0:
            memory = self.get_memory_stats()
            logger.info(f"Queue size: {size}, process memory: {memory['total_process_memory_mb']:.1f} MB")
        logger.debug(f"admit: queued {url} pending={size}")
        return self._count(ENQUEUED)

    def take(self):
        """Pop the oldest pending URL and mark it in flight. Returns None when empty."""
        with self.state_lock:
            if not self.queue:
                return None
            url = self.queue.popleft()
            self.pending.discard(url)
            self.in_flight.add(url)
        return url

    def mark_visited(self, url):
        with self.state_lock:
            self.in_flight.discard(url)
            self.visited.add(url)

    @property
    def has_pending(self):
        with self.state_lock:
            return bool(self.queue)

    @property
    def visited_count(self):
        with self.state_lock:
            return len(self.visited)

    def get_stats(self):
        with self.state_lock:
            return {
                "queue_size": len(self.queue),
                "in_flight_count": len(self.in_flight),
                "visited_count": len(self.visited),
                "discovered_count": len(self.pending) + len(self.in_flight) + len(self.visited),
                "admissions": dict(self.stats),
            }

    def get_memory_stats(self):
        """Process RSS plus a rough estimate of the frontier's own structures."""
        process = psutil.Process(os.getpid())
        total_memory = process.memory_info().rss / 1024 / 1024
        with self.state_lock:
            queue_memory = len(self.queue) * 0.1 / 1024
            visited_memory = len(self.visited) * 0.05 / 1024
        return {
            "total_process_memory_mb": total_memory,
            "frontier_memory_mb": queue_memory + visited_memory,
            "queue_memory_mb": queue_memory,
            "visited_memory_mb": visited_memory,
        }
