"""
webharvest: crawl a website section and save its main content as Markdown.
"""

from webharvest.config import CrawlOptions
from webharvest.core import __version__
from webharvest.engine import WebCrawler
from webharvest.errors import ConfigError, FatalSetupFailure, HttpStatusFailure, TransportFailure, WebHarvestError
from webharvest.ledger import OutcomeLedger
from webharvest.llms import LlmsTxtCrawler

__all__ = [
    "CrawlOptions",
    "WebCrawler",
    "LlmsTxtCrawler",
    "OutcomeLedger",
    "WebHarvestError",
    "TransportFailure",
    "HttpStatusFailure",
    "FatalSetupFailure",
    "ConfigError",
    "__version__",
]
