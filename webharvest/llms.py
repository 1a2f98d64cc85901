"""
FILE DESCRIPTION: llms.txt retrieval and generation.
KEY FUNCTIONS/CLASSES: LlmsTxtCrawler, is_llms_txt_url

Two modes:
- direct: the URL names an llms file (/llms.txt, /llms-full.txt, /llm.txt) and is saved verbatim
- probe (--llms): check /llms.txt and /llms-full.txt at the site origin; when neither exists,
  crawl the site into a temporary directory and generate both files from the Markdown
"""

import dataclasses
import logging
import os
import re
import shutil
import threading
import time
from datetime import datetime, timezone
from urllib.parse import urlparse

from webharvest.config import CrawlOptions
from webharvest.engine import WebCrawler
from webharvest.errors import ConfigError, FatalSetupFailure, HttpStatusFailure, TransportFailure
from webharvest.file_filter import FileFilter
from webharvest.fetcher import PageFetcher
from webharvest.ledger import OutcomeLedger
from webharvest.models import PageArtifact
from webharvest.policy import URLPolicy
from webharvest.robots import RobotsGate
from webharvest.storage import ArtifactWriter

logger = logging.getLogger(__name__)

LLMS_FILENAMES = ("llms.txt", "llms-full.txt", "llm.txt")
CANONICAL_LOCATIONS = ("/llms.txt", "/llms-full.txt")
PROBE_INTERVAL = 0.1  # seconds between canonical probes

TEMP_CRAWL_DIR = ".temp-crawl"
SUMMARY_KEYWORDS = ("doc", "guide", "tutorial", "getting-started", "intro")
SUMMARY_MAX_FILES = 5
INDEX_MAX_CHARS = 2000
PAGE_MAX_CHARS = 1500
TRUNCATION_NOTICE = "\n\n[Content truncated...]"

_UNSAFE_CHARS = re.compile(r'[<>:"|?*]')


def is_llms_txt_url(url) -> bool:
    try:
        path = urlparse(url or "").path
    except ValueError:
        return False
    return path.rsplit("/", 1)[-1] in LLMS_FILENAMES


def llms_output_path(url_path: str) -> str:
    """
    /llms.txt          -> llms.txt
    /docs/llm.txt      -> docs/llm.txt
    /guide             -> guide.txt
    """
    parts = [p for p in (url_path or "").split("/") if p not in ("", ".", "..")]
    if not parts:
        return "llms.txt"
    path = "/".join(parts)
    if not path.endswith(".txt"):
        path += ".txt"
    return _UNSAFE_CHARS.sub("_", path)


def truncate_content(content: str, max_length: int) -> str:
    """Cut to max_length, backing up to a line break when one is close to the limit."""
    if len(content) <= max_length:
        return content
    truncated = content[:max_length]
    last_newline = truncated.rfind("\n")
    if last_newline > max_length * 0.8:
        truncated = truncated[:last_newline]
    return truncated + TRUNCATION_NOTICE


class LlmsTxtCrawler:
    """
    FLOW (direct): Download the named llms file -> Save it under its URL path.
    FLOW (probe): Download /llms.txt and /llms-full.txt from the origin -> If none found,
    crawl the site with WebCrawler into output_dir/.temp-crawl -> Generate llms.txt and
    llms-full.txt from the crawled Markdown -> Remove the temporary crawl.
    """

    def __init__(self, url, options=None):
        try:
            parsed = urlparse(url or "")
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(f"Invalid URL: {url!r}")
            self.url = URLPolicy.normalize(url)
        except ValueError as e:
            raise ConfigError(f"Invalid URL: {url!r} ({e})") from e

        self.options = (options or CrawlOptions()).validate()
        self.origin = URLPolicy.origin_url(self.url)
        self.host = urlparse(self.url).hostname
        self.probe_mode = self.options.llms

        self.file_filter = FileFilter(self.options.include, self.options.exclude)
        self.robots = None if self.options.ignore_robots else RobotsGate()
        self.fetcher = PageFetcher(max_retries=self.options.max_retries)
        self.writer = ArtifactWriter(self.options.output_dir)
        self.ledger = OutcomeLedger()
        self.processed = set()
        self.visited_count = 0

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={"context": threading.current_thread().name})

    def crawl(self) -> OutcomeLedger:
        self.log("info", f"Starting llms.txt {'probe' if self.probe_mode else 'download'}: {self.url}")
        self.log("info", f"Output directory: {self.options.output_dir}")

        summary = self.file_filter.get_summary()
        if summary["has_filters"]:
            self.log("info", f"Include patterns: {summary['include_patterns'] or '(all)'}")
            self.log("info", f"Exclude patterns: {summary['exclude_patterns'] or '(none)'}")

        if self.robots is not None:
            try:
                self.robots.fetch(self.url)
            except Exception as e:
                raise FatalSetupFailure(f"robots.txt check failed for {self.url}: {e}") from e

        self.writer.ensure_output_dir()

        if not self.probe_mode:
            if not self.download(self.url, required=True) and not self.ledger.has_failures:
                self.log("warning", f"Nothing downloaded from {self.url}")
        else:
            found = self.probe_canonical_locations()
            if found:
                self.log("info", f"Found and downloaded {found} llms.txt file(s)")
            else:
                self.log("info", "No llms.txt files at canonical locations; crawling the site to generate them")
                self.crawl_and_generate()

        self.ledger.display_summary(self.visited_count, self.options.output_dir, self.options.ignore_errors)
        return self.ledger

    def download(self, url, required=False) -> bool:
        """
        Save one llms file verbatim. Returns True when it was written.
        A 404 is a failure only when the file was explicitly requested.
        """
        if not self.file_filter.should_crawl_url(url):
            self.log("info", f"Skipped (filtered): {url}")
            return False
        if url in self.processed:
            return False
        self.processed.add(url)
        if self.robots is not None and not self.robots.is_allowed(url):
            self.log("warning", f"Skipped (disallowed by robots.txt): {url}")
            return False

        self.log("info", f"Downloading: {url}")
        self.visited_count += 1
        try:
            fetched = self.fetcher.fetch(url)
        except TransportFailure as e:
            self.ledger.record_failure(url, str(e))
            self.log("error", f"Failed to download {url}: {e}")
            return False

        if fetched.status_code == 404 and not required:
            self.log("info", f"Not found: {url}")
            return False
        if not fetched.ok:
            failure = HttpStatusFailure(url, fetched.status_code, fetched.reason, fetched.attempts)
            self.ledger.record_failure(url, str(failure))
            self.log("error", f"Failed to download {url}: {failure}")
            return False

        path = llms_output_path(urlparse(url).path)
        content = fetched.text
        self.writer.write_path(path, content)
        artifact = PageArtifact(url=url, path=path, size=len(content.encode("utf-8")), elapsed_ms=fetched.elapsed_ms)
        self.ledger.record_success(url, artifact)
        self.log("info", f"Saved: {path} ({len(content)} chars, {fetched.elapsed_ms}ms)")
        return True

    def probe_canonical_locations(self) -> int:
        found = 0
        for i, location in enumerate(CANONICAL_LOCATIONS):
            if i:
                time.sleep(PROBE_INTERVAL)
            if self.download(self.origin + location):
                found += 1
        return found

    def crawl_and_generate(self):
        temp_dir = os.path.join(self.options.output_dir, TEMP_CRAWL_DIR)
        options = dataclasses.replace(self.options, output_dir=temp_dir, raw=False, llms=False)
        crawler = WebCrawler(self.url, options)
        try:
            crawl_ledger = crawler.crawl()
            self.visited_count += crawler.frontier.visited_count
            for url, reason in crawl_ledger.failures.items():
                self.ledger.record_failure(url, reason)
            self.generate_llms_files(temp_dir)
        finally:
            try:
                shutil.rmtree(temp_dir)
            except OSError as e:
                self.log("warning", f"Could not remove temporary directory {temp_dir}: {e}")

    def generate_llms_files(self, crawl_dir):
        files = self.collect_markdown_files(crawl_dir)
        if not files:
            self.log("warning", "No Markdown pages were crawled; llms.txt files not generated")
            return

        generated_at = datetime.now(timezone.utc).isoformat()
        for name, content in (("llms.txt", self.generate_summary(files, generated_at)),
                              ("llms-full.txt", self.generate_full(files, generated_at))):
            self.writer.write_path(name, content)
            self.ledger.artifacts.append(PageArtifact(
                url=self.url, path=name, size=len(content.encode("utf-8")), elapsed_ms=0,
            ))
            self.log("info", f"Generated: {name} ({len(content)} chars)")

    @staticmethod
    def collect_markdown_files(crawl_dir):
        """[(relative_path, content)] for every .md file under crawl_dir, in path order."""
        files = []
        for root, dirs, names in os.walk(crawl_dir):
            dirs.sort()
            for name in sorted(names):
                if not name.endswith(".md"):
                    continue
                full_path = os.path.join(root, name)
                with open(full_path, encoding="utf-8") as f:
                    content = f.read()
                files.append((os.path.relpath(full_path, crawl_dir).replace(os.sep, "/"), content))
        return files

    def _header(self, title, generated_at):
        return f"# {title}\n\nGenerated from: {self.url}\nGenerated at: {generated_at}\n\n"

    def generate_summary(self, files, generated_at) -> str:
        """Index page first, then up to five documentation-like pages, each truncated."""
        content = self._header(f"{self.host} Documentation", generated_at)

        index = next((f for f in files if f[0] == "index.md" or f[0].endswith("/index.md")
                      or "home" in f[0] or "README" in f[0]), None)
        if index is not None:
            content += f"## {index[0]}\n\n{truncate_content(index[1], INDEX_MAX_CHARS)}\n\n"

        important = [f for f in files if f is not index and any(k in f[0] for k in SUMMARY_KEYWORDS)]
        for path, body in important[:SUMMARY_MAX_FILES]:
            content += f"## {path}\n\n{truncate_content(body, PAGE_MAX_CHARS)}\n\n"
        return content

    def generate_full(self, files, generated_at) -> str:
        content = self._header(f"{self.host} Documentation (Full)", generated_at)
        for path, body in files:
            content += f"## {path}\n\n{body}\n\n---\n\n"
        return content
