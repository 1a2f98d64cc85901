"""
Command-line entry point.

    webharvest https://example.com/docs/ --max-pages 50 --include "docs/**"
    webharvest --config crawl.yaml
    webharvest https://example.com/llms.txt
    webharvest https://docs.example.com --llms
"""

import argparse
import logging
import sys

from webharvest.config import CONFIG_ENV_VAR, load_config, options_for_target
from webharvest.core import __version__, level_for, setup_logger
from webharvest.engine import WebCrawler
from webharvest.errors import ConfigError, FatalSetupFailure
from webharvest.llms import LlmsTxtCrawler, is_llms_txt_url

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="webharvest",
        description="Crawl a website section and save its pages as Markdown.",
    )
    parser.add_argument("url", nargs="?", help="Seed URL; omit to crawl every target in the config file")
    # Defaults are None so that only explicitly passed flags override config values
    parser.add_argument("--max-pages", type=int, help="Maximum pages to crawl (default: 100)")
    parser.add_argument("--delay", type=int, help="Delay between requests in ms (default: 1000)")
    parser.add_argument("--concurrency", type=int, help="Concurrent requests (default: 3)")
    parser.add_argument("--output-dir", help="Output directory (default: crawled-pages)")
    parser.add_argument("--raw", action="store_true", default=None, help="Save extracted HTML instead of Markdown")
    parser.add_argument("--max-queue-size", type=int, help="Maximum pending URLs (default: 10000)")
    parser.add_argument("--max-retries", type=int, help="Retries for 429/5xx and network errors (default: 3)")
    parser.add_argument("--ignore-robots", action="store_true", default=None, help="Ignore robots.txt")
    parser.add_argument("--ignore-errors", action="store_true", default=None, help="Exit 0 even if pages failed")
    parser.add_argument("--llms", action="store_true", default=None,
                        help="Fetch /llms.txt and /llms-full.txt, or generate them from a crawl")
    parser.add_argument("--include", action="append", metavar="PATTERN", help="Glob of paths to include (repeatable)")
    parser.add_argument("--exclude", action="append", metavar="PATTERN", help="Glob of paths to exclude (repeatable)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", dest="log_level", action="store_const", const="verbose", help="Debug logging")
    verbosity.add_argument("--quiet", dest="log_level", action="store_const", const="quiet", help="Warnings and errors only")
    parser.add_argument("--config", help=f"YAML config file (or set {CONFIG_ENV_VAR})")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def cli_overrides(args) -> dict:
    keys = ("max_pages", "delay", "concurrency", "output_dir", "raw", "max_queue_size", "max_retries",
            "ignore_robots", "ignore_errors", "llms", "include", "exclude", "log_level")
    return {k: getattr(args, k) for k in keys if getattr(args, k) is not None}


def resolve_targets(args, config):
    """[(url, target_dict)] to crawl, in order."""
    if args.url:
        return [(args.url, {})]
    if not config or not config["targets"]:
        raise ConfigError("No URL given and no targets found in a config file")
    return [(t["url"], t) for t in config["targets"]]


def main(argv=None):
    """
    FLOW: Parse args -> Load config -> For each target: merge options -> crawl -> Exit 1 on failures
    (unless ignore_errors) or on config/setup errors.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    cli = cli_overrides(args)

    try:
        config = load_config(args.config)
        targets = resolve_targets(args, config)
        had_failures = False
        for url, target in targets:
            options = options_for_target(config, target, cli)
            setup_logger(level=level_for(options.log_level))
            crawler_class = LlmsTxtCrawler if options.llms or is_llms_txt_url(url) else WebCrawler
            ledger = crawler_class(url, options).crawl()
            if ledger.has_failures and not options.ignore_errors:
                had_failures = True
    except (ConfigError, FatalSetupFailure) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    return 1 if had_failures else 0


if __name__ == "__main__":
    sys.exit(main())
