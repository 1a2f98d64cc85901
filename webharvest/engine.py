"""
FILE DESCRIPTION: Crawl engine. Coordinates the frontier, robots gate, fetcher,
extractor, renderer and artifact writer for one seed URL.
KEY FUNCTIONS/CLASSES: WebCrawler

Concurrency model: one coordinating thread (the caller of crawl()) submits
crawl_page tasks to a ThreadPoolExecutor. Tasks only do network I/O, parsing
and file writes. Frontier admission and ledger updates happen in the
coordinating thread when a completion is processed.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from urllib.parse import urljoin, urlparse

from webharvest.config import CrawlOptions
from webharvest.errors import ConfigError, FatalSetupFailure, HttpStatusFailure
from webharvest.extractor import ContentExtractor
from webharvest.fetcher import PageFetcher
from webharvest.file_filter import FileFilter
from webharvest.frontier import ENQUEUED, Frontier
from webharvest.ledger import OutcomeLedger
from webharvest.models import PageArtifact, PageResult
from webharvest.policy import CrawlScope
from webharvest.render import MarkdownRenderer
from webharvest.robots import RobotsGate
from webharvest.storage import ArtifactWriter

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def is_html(content_type: str) -> bool:
    return any(t in (content_type or "") for t in HTML_CONTENT_TYPES)


class WebCrawler:
    """
    FLOW: Fetch robots.txt for the seed origin -> Apply Crawl-delay -> Seed the frontier ->
    Launch up to `concurrency` crawl_page tasks within the page budget -> Process each completion
    (mark visited, admit links, record outcome) -> Drain in-flight tasks -> Print summary.
    """

    def __init__(self, seed_url, options=None):
        try:
            parsed = urlparse(seed_url or "")
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(f"Invalid URL: {seed_url!r}")
            self.scope = CrawlScope.from_seed(seed_url)
        except ValueError as e:
            raise ConfigError(f"Invalid URL: {seed_url!r} ({e})") from e

        self.options = (options or CrawlOptions()).validate()
        self.delay = self.options.delay

        self.seed_url = self.scope.seed_url
        self.robots = RobotsGate()
        self.file_filter = FileFilter(self.options.include, self.options.exclude)
        self.frontier = Frontier(
            self.scope,
            self.file_filter,
            robots=None if self.options.ignore_robots else self.robots,
            max_queue_size=self.options.max_queue_size,
        )
        self.fetcher = PageFetcher(max_retries=self.options.max_retries, user_agent=self.robots.user_agent)
        self.extractor = ContentExtractor()
        self.renderer = MarkdownRenderer()
        self.writer = ArtifactWriter(self.options.output_dir, raw=self.options.raw)
        self.ledger = OutcomeLedger()

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={"context": threading.current_thread().name})

    def crawl(self) -> OutcomeLedger:
        self.log("info", f"Starting crawl from: {self.seed_url}")
        self.log("info", f"Scope: {self.scope.base_path} | max pages: {self.options.max_pages} | "
                         f"concurrency: {self.options.concurrency} | delay: {self.delay}ms")

        summary = self.file_filter.get_summary()
        if summary["has_filters"]:
            self.log("info", f"Include patterns: {summary['include_patterns'] or '(all)'}")
            self.log("info", f"Exclude patterns: {summary['exclude_patterns'] or '(none)'}")

        if self.options.ignore_robots:
            self.log("warning", "Ignoring robots.txt (--ignore-robots)")
        else:
            self.prepare_robots()

        self.writer.ensure_output_dir()

        if self.frontier.seed(self.seed_url) != ENQUEUED:
            self.log("warning", f"Seed URL was not admitted: {self.seed_url}")

        self.run_loop()

        has_failures = self.ledger.display_summary(
            self.frontier.visited_count, self.options.output_dir, self.options.ignore_errors
        )
        if has_failures and not self.options.ignore_errors:
            self.log("warning", f"Crawl finished with {len(self.ledger.failures)} failed page(s)")
        return self.ledger

    def prepare_robots(self):
        try:
            self.robots.fetch(self.seed_url)
        except Exception as e:
            raise FatalSetupFailure(f"robots.txt check failed for {self.seed_url}: {e}") from e

        if self.robots.has_robots_txt(self.seed_url):
            self.log("info", "robots.txt found and parsed")
        crawl_delay = self.robots.get_crawl_delay(self.seed_url)
        if crawl_delay is not None and crawl_delay > self.delay:
            self.log("info", f"Applying crawl-delay from robots.txt: {crawl_delay:g}ms (overriding {self.delay}ms)")
            self.delay = crawl_delay

    def run_loop(self):
        concurrency = self.options.concurrency
        max_pages = self.options.max_pages
        in_flight = {}

        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="Worker") as executor:
            while (self.frontier.has_pending or in_flight) and self.frontier.visited_count < max_pages:
                while (len(in_flight) < concurrency and self.frontier.has_pending
                       and self.frontier.visited_count + len(in_flight) < max_pages):
                    url = self.frontier.take()
                    in_flight[executor.submit(self.crawl_page, url)] = url
                    if self.delay > 0 and len(in_flight) > 1:
                        time.sleep(self.delay / 1000 / concurrency)

                if not in_flight:
                    break
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    self.handle_completion(in_flight.pop(future), future)

            # Budget reached: let remaining tasks finish, no cancellation
            if in_flight:
                wait(in_flight)
                for future, url in in_flight.items():
                    self.handle_completion(url, future)

    def handle_completion(self, url, future):
        self.frontier.mark_visited(url)
        error = future.exception()
        if error is not None:
            self.ledger.record_failure(url, str(error))
            retried = " (after retries)" if getattr(error, "retried", False) else ""
            self.log("error", f"Error crawling {url}: {error}{retried}")
            return

        result = future.result()
        self.ledger.record_success(url, result.artifact)
        admitted = sum(1 for link in result.links if self.frontier.admit(link, url) == ENQUEUED)
        if result.links:
            self.log("debug", f"{url}: {len(result.links)} links, {admitted} queued")

    def resolve_links(self, base_url, hrefs):
        links = []
        for href in hrefs:
            try:
                links.append(urljoin(base_url, href))
            except ValueError as e:
                self.log("debug", f"Skipping malformed link {href!r} on {base_url}: {e}")
        return links

    def crawl_page(self, url) -> PageResult:
        """Runs on a worker thread. Raises on fetch failure; the coordinator records it."""
        self.log("info", f"Crawling: {url}")
        fetched = self.fetcher.fetch(url)
        if not fetched.ok:
            raise HttpStatusFailure(url, fetched.status_code, fetched.reason, fetched.attempts)

        if not is_html(fetched.content_type):
            self.log("info", f"Skipping non-HTML content ({fetched.content_type or 'unknown'}): {url}")
            return PageResult(url=url, artifact=None, content_type=fetched.content_type)

        extracted = self.extractor.extract(fetched.text, url)
        content = extracted.html if self.options.raw else self.renderer.render(extracted.html)
        links = self.resolve_links(fetched.final_url, extracted.links)
        path = self.writer.write(url, content)

        artifact = PageArtifact(url=url, path=path, size=len(content.encode("utf-8")), elapsed_ms=fetched.elapsed_ms)
        self.log("info", f"Saved: {path} ({fetched.elapsed_ms}ms)")
        return PageResult(url=url, artifact=artifact, links=links, content_type=fetched.content_type)
