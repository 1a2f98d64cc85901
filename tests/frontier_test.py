"""
Frontier admission, capacity and deduplication
"""

import unittest
from unittest.mock import MagicMock, patch

from webharvest.file_filter import FileFilter
from webharvest.frontier import (
    DUPLICATE,
    ENQUEUED,
    FILTERED,
    INVALID,
    NON_HTTP,
    OFF_ORIGIN,
    OUT_OF_SCOPE,
    QUEUE_FULL,
    ROBOTS_DISALLOWED,
    SKIPPED_EXTENSION,
    Frontier,
)
from webharvest.policy import CrawlScope
from webharvest.robots import RobotsGate

SEED = "https://h/docs/"


class TestFrontierAdmission(unittest.TestCase):
    def setUp(self):
        self.scope = CrawlScope.from_seed(SEED)
        self.robots = MagicMock()
        self.robots.is_allowed.side_effect = lambda url: "/private/" not in url
        self.frontier = Frontier(self.scope, FileFilter(exclude=["docs/drafts/**"]), robots=self.robots)

    def test_statuses(self):
        cases = [
            ("guide", ENQUEUED),
            ("mailto:a@b.c", NON_HTTP),
            ("https://other/docs/x", OFF_ORIGIN),
            ("http://h/docs/x", OFF_ORIGIN),
            ("/blog/post", OUT_OF_SCOPE),
            ("/docs/logo.png", SKIPPED_EXTENSION),
            ("/docs/drafts/wip", FILTERED),
            ("/docs/private/key", ROBOTS_DISALLOWED),
            ("/docs/guide#section", DUPLICATE),
        ]
        for candidate, expected in cases:
            self.assertEqual(self.frontier.admit(candidate, SEED), expected, candidate)

    def test_admitted_urls_are_normalized_and_in_scope(self):
        for link in ("a#x", "b", "/docs/c/", "https://H/docs/d", "/outside", "../up"):
            self.frontier.admit(link, "https://h/docs/page")

        queued = list(self.frontier.queue)
        self.assertEqual(queued, ["https://h/docs/a", "https://h/docs/b", "https://h/docs/c/", "https://h/docs/d"])
        for url in queued:
            self.assertNotIn("#", url)
            self.assertTrue(self.scope.contains(url))

    def test_readmitting_is_noop(self):
        """Scenario: Re-admitting a pending, in-flight or visited URL changes nothing."""
        self.assertEqual(self.frontier.admit("/docs/a", SEED), ENQUEUED)
        self.assertEqual(self.frontier.admit("/docs/a", SEED), DUPLICATE)

        url = self.frontier.take()
        self.assertEqual(self.frontier.admit("/docs/a", SEED), DUPLICATE)

        self.frontier.mark_visited(url)
        self.assertEqual(self.frontier.admit("/docs/a", SEED), DUPLICATE)
        self.assertFalse(self.frontier.has_pending)
        self.assertEqual(self.frontier.visited, {"https://h/docs/a"})

    def test_fifo_order(self):
        for name in ("one", "two", "three"):
            self.frontier.admit(name, SEED)
        self.assertEqual(self.frontier.take(), "https://h/docs/one")
        self.assertEqual(self.frontier.take(), "https://h/docs/two")
        self.assertEqual(self.frontier.take(), "https://h/docs/three")
        self.assertIsNone(self.frontier.take())

    def test_malformed_link_is_rejected(self):
        self.assertEqual(self.frontier.admit("http://[broken/x", SEED), INVALID)
        self.assertEqual(self.frontier.admit("//h:99999/docs/x", SEED), INVALID)
        self.assertEqual(self.frontier.admit("ok", SEED), ENQUEUED)
        self.assertEqual(self.frontier.get_stats()["admissions"][INVALID], 2)

    def test_ignore_robots(self):
        frontier = Frontier(self.scope, FileFilter(), robots=None)
        self.assertEqual(frontier.admit("/docs/private/key", SEED), ENQUEUED)


class TestFrontierDefaultPort(unittest.TestCase):
    @patch("webharvest.robots.requests.get")
    def setUp(self, mock_get):
        mock_get.return_value = MagicMock(status_code=200, text="User-agent: *\nDisallow: /admin/\n")
        robots = RobotsGate()
        robots.fetch("https://h/")
        self.frontier = Frontier(CrawlScope.from_seed("https://h/"), FileFilter(), robots=robots)

    def test_explicit_default_port_is_still_disallowed(self):
        """Scenario: a page links to https://h:443/admin/secret while robots.txt disallows /admin/."""
        self.assertEqual(self.frontier.admit("https://h:443/admin/secret", "https://h/"), ROBOTS_DISALLOWED)
        self.assertFalse(self.frontier.has_pending)

    def test_explicit_default_port_is_a_duplicate(self):
        self.assertEqual(self.frontier.admit("/page", "https://h/"), ENQUEUED)
        self.assertEqual(self.frontier.admit("https://h:443/page", "https://h/"), DUPLICATE)
        self.assertEqual(list(self.frontier.queue), ["https://h/page"])


class TestFrontierSeed(unittest.TestCase):
    def test_seed_bypasses_glob_filter(self):
        scope = CrawlScope.from_seed(SEED)
        frontier = Frontier(scope, FileFilter(include=["docs/api/**"]))
        self.assertEqual(frontier.seed(SEED), ENQUEUED)
        self.assertEqual(frontier.admit("/docs/guide", SEED), FILTERED)

    def test_seed_honors_robots(self):
        robots = MagicMock()
        robots.is_allowed.return_value = False
        frontier = Frontier(CrawlScope.from_seed(SEED), FileFilter(), robots=robots)
        self.assertEqual(frontier.seed(SEED + "#top"), ROBOTS_DISALLOWED)
        self.assertFalse(frontier.has_pending)


class TestFrontierCapacity(unittest.TestCase):
    def setUp(self):
        self.frontier = Frontier(CrawlScope.from_seed(SEED), FileFilter(), max_queue_size=2)

    def test_over_capacity_is_dropped_with_one_warning(self):
        with self.assertLogs("webharvest.frontier", level="WARNING") as cm:
            statuses = [self.frontier.admit(f"/docs/p{i}", SEED) for i in range(5)]

        self.assertEqual(statuses, [ENQUEUED, ENQUEUED, QUEUE_FULL, QUEUE_FULL, QUEUE_FULL])
        self.assertEqual(len(self.frontier.queue), 2)
        self.assertEqual(len(cm.records), 1)
        self.assertEqual(self.frontier.get_stats()["admissions"][QUEUE_FULL], 3)

    def test_capacity_frees_after_take(self):
        self.frontier.admit("/docs/a", SEED)
        self.frontier.admit("/docs/b", SEED)
        self.frontier.take()
        self.assertEqual(self.frontier.admit("/docs/c", SEED), ENQUEUED)

    @patch("webharvest.frontier.QUEUE_NOTICE_INTERVAL", 2)
    def test_periodic_size_notice(self):
        with self.assertLogs("webharvest.frontier", level="INFO") as cm:
            self.frontier.admit("/docs/a", SEED)
            self.frontier.admit("/docs/b", SEED)
        self.assertTrue(any("Queue size: 2" in line for line in cm.output))


class TestFrontierStats(unittest.TestCase):
    def test_stats(self):
        frontier = Frontier(CrawlScope.from_seed(SEED), FileFilter())
        frontier.seed(SEED)
        frontier.admit("/docs/a", SEED)
        url = frontier.take()
        frontier.mark_visited(url)
        frontier.take()

        stats = frontier.get_stats()
        self.assertEqual(stats["queue_size"], 0)
        self.assertEqual(stats["in_flight_count"], 1)
        self.assertEqual(stats["visited_count"], 1)
        self.assertEqual(stats["discovered_count"], 2)

        memory = frontier.get_memory_stats()
        self.assertGreater(memory["total_process_memory_mb"], 0)


if __name__ == "__main__":
    unittest.main()
