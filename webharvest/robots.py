"""
Robots Exclusion Protocol gate.

Rulesets are fetched once per origin and cached on the gate instance, so each
crawler owns its own cache. Only User-agent, Disallow and Crawl-delay are
honored; Allow, Sitemap and other directives are ignored.
"""

import logging
import re
from threading import Lock
from urllib.parse import urlparse

import requests

from webharvest.core import REQUEST_TIMEOUT, USER_AGENT
from webharvest.models import RobotsRuleset
from webharvest.policy import URLPolicy

logger = logging.getLogger(__name__)


class RobotsGate:
    """
    FLOW: fetch(url) -> GET origin/robots.txt once -> parse() the group matching our
    user agent -> is_allowed(url) answers prefix/wildcard disallow checks.
    """

    def __init__(self, user_agent=USER_AGENT, timeout=REQUEST_TIMEOUT):
        self.user_agent = user_agent
        self.timeout = timeout
        self.cache = {}
        self.lock = Lock()
        self._regex_cache = {}

    def fetch(self, url) -> RobotsRuleset:
        """
        Return the cached ruleset for url's origin, fetching robots.txt on first use.
        A missing file, non-2xx status or transport error yields a permissive ruleset.
        """
        origin = URLPolicy.origin(url)
        with self.lock:
            if origin in self.cache:
                return self.cache[origin]

        robots_url = f"{URLPolicy.origin_url(url)}/robots.txt"
        try:
            r = requests.get(robots_url, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
            if 200 <= r.status_code < 300:
                rules = self.parse(r.text)
                rules.exists = True
            else:
                logger.debug(f"robots.txt returned {r.status_code} for {robots_url}; allowing all")
                rules = RobotsRuleset()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not fetch robots.txt from {robots_url}: {e}")
            rules = RobotsRuleset()

        with self.lock:
            self.cache[origin] = rules
        return rules

    def parse(self, text: str) -> RobotsRuleset:
        rules = RobotsRuleset()
        is_relevant = False
        in_agent_block = False

        for raw_line in text.splitlines():
            line = raw_line.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue
            directive, value = line.split(":", 1)
            directive = directive.strip().lower()
            value = value.strip()

            if directive == "user-agent":
                # Consecutive User-agent lines share one group
                matched = self.matches_user_agent(value.lower())
                is_relevant = (is_relevant or matched) if in_agent_block else matched
                in_agent_block = True
                continue

            in_agent_block = False
            if not is_relevant:
                continue
            if directive == "disallow":
                if value:
                    rules.disallowed_paths.append(value)
            elif directive == "crawl-delay":
                try:
                    delay = float(value)
                except ValueError:
                    continue
                if delay > 0:
                    rules.crawl_delay = delay * 1000

        return rules

    def matches_user_agent(self, pattern: str) -> bool:
        if not pattern:
            return False
        if pattern == "*":
            return True
        ours = self.user_agent.lower()
        return pattern in ours or ours.startswith(pattern)

    def is_allowed(self, url: str) -> bool:
        origin = URLPolicy.origin(url)
        with self.lock:
            rules = self.cache.get(origin)
        if rules is None:
            return True

        parsed = urlparse(url)
        path = (parsed.path or "/") + (f"?{parsed.query}" if parsed.query else "")
        return not any(self.path_matches(path, pattern) for pattern in rules.disallowed_paths)

    def path_matches(self, path: str, pattern: str) -> bool:
        if not pattern:
            return False
        if "*" not in pattern and "$" not in pattern:
            return path.startswith(pattern)
        return bool(self._compile(pattern).match(path))

    def _compile(self, pattern):
        regex = self._regex_cache.get(pattern)
        if regex is None:
            anchored = pattern.endswith("$")
            body = pattern[:-1] if anchored else pattern
            expr = "^" + ".*".join(re.escape(part) for part in body.split("*"))
            if anchored:
                expr += "$"
            regex = re.compile(expr)
            self._regex_cache[pattern] = regex
        return regex

    def get_crawl_delay(self, url):
        with self.lock:
            rules = self.cache.get(URLPolicy.origin(url))
        return rules.crawl_delay if rules else None

    def has_robots_txt(self, url) -> bool:
        with self.lock:
            rules = self.cache.get(URLPolicy.origin(url))
        return rules.exists if rules else False

    def clear_cache(self, origin=None):
        with self.lock:
            if origin:
                self.cache.pop(URLPolicy.origin(origin), None)
            else:
                self.cache.clear()
