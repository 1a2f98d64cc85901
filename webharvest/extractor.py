"""
Main-content extraction and link harvesting for crawled HTML.

Link harvesting always scans the whole document. Restricting discovery to the
detected content region starves the frontier on pages without a recognizable
landmark, so the two passes never share state.
"""

import logging

from bs4 import BeautifulSoup

from webharvest.models import ExtractedContent

logger = logging.getLogger(__name__)


def _tag(*names):
    return lambda tag: tag.name in names


def _has_class(*class_names):
    return lambda tag: any(c in class_names for c in (tag.get("class") or []))


def _has_role(role):
    return lambda tag: tag.get("role") == role


# Ordered (predicate, label) pairs; the first signal with any match wins
MAIN_CONTENT_SIGNALS = (
    (_tag("main"), "main"),
    (_has_role("main"), "[role=main]"),
    (_has_class("main-content"), ".main-content"),
    (_has_class("content"), ".content"),
    (_has_class("post-content", "entry-content", "article-content"), ".post-content"),
    (_tag("article"), "article"),
    (_has_class("documentation", "docs-content"), ".documentation"),
    (_tag("body"), "body"),
)

# Ordered (predicate, label) pairs removed from inside the content region
BOILERPLATE_SIGNALS = (
    (_tag("nav"), "nav"),
    (_tag("header", "footer"), "header/footer"),
    (_has_class("nav", "navigation", "menu", "sidebar", "breadcrumb"), "navigation"),
    (_has_class("advertisement", "ad"), "ads"),
    (_has_class("social", "share"), "social"),
    (_has_class("comments", "related"), "comments"),
    (_tag("script", "style", "noscript"), "script/style"),
    (_has_class("cookie-notice", "popup", "modal", "overlay"), "popups"),
)


def is_code_element(tag) -> bool:
    if tag.name in ("code", "pre"):
        return True
    return any("highlight" in c or c.startswith("language") for c in (tag.get("class") or []))


def contains_code(tag) -> bool:
    if any("code" in c for c in (tag.get("class") or [])):
        return True
    return tag.find(is_code_element) is not None


class ContentExtractor:
    """
    FLOW: Parse HTML -> Harvest every <a href> -> Locate main region by ordered signals ->
    Flag code samples -> Strip boilerplate (sparing code containers) -> Return fragment + links.
    """

    def __init__(self, parser="lxml"):
        self.parser = parser

    def extract(self, html: str, url: str = None) -> ExtractedContent:
        soup = BeautifulSoup(html or "", self.parser)
        links = self.extract_links(soup)

        region, label = self.find_main_region(soup)
        logger.debug(f"main content for {url}: {label}")

        self.flag_code_elements(region)
        removed = self.strip_boilerplate(region)
        if removed:
            logger.debug(f"stripped {removed} boilerplate elements from {url}")

        return ExtractedContent(html=str(region), links=links, region=label)

    @staticmethod
    def extract_links(soup):
        """All hyperlink targets in document order, hash-only links skipped, duplicates dropped."""
        seen = set()
        links = []
        for a in soup.find_all("a", href=True):
            href = a["href"].strip()
            if not href or href.startswith("#") or href in seen:
                continue
            seen.add(href)
            links.append(href)
        return links

    @staticmethod
    def find_main_region(soup):
        for predicate, label in MAIN_CONTENT_SIGNALS:
            match = soup.find(predicate)
            if match is not None:
                return match, label
        return soup, "document"

    @staticmethod
    def flag_code_elements(region):
        candidates = region.find_all(is_code_element)
        if getattr(region, "name", None) and is_code_element(region):
            candidates.insert(0, region)
        for el in candidates:
            el["data-preserve"] = "true"
            if el.name == "code" and "<" in el.get_text():
                el["data-contains-html"] = "true"

    @staticmethod
    def strip_boilerplate(region) -> int:
        removed = 0
        for predicate, _label in BOILERPLATE_SIGNALS:
            for el in region.find_all(predicate):
                if el.decomposed or contains_code(el):
                    continue
                el.decompose()
                removed += 1
        return removed
