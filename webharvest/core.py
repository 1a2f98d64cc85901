"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, level_for
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the working directory, then from the project root
load_dotenv()
load_dotenv(Path(__file__).resolve().parents[1] / '.env')

__version__ = "1.0.0"

# User-Agent string for crawler identification (also matched against robots.txt)
USER_AGENT = os.getenv("WEBHARVEST_USER_AGENT", f"WebHarvest/{__version__}")

# Network timeouts for HTTP requests (seconds): (connect, read)
REQUEST_TIMEOUT = (
    float(os.getenv("WEBHARVEST_CONNECT_TIMEOUT", 10)),
    float(os.getenv("WEBHARVEST_READ_TIMEOUT", 30)),
)

# Wall-clock budget for a single fetch attempt, body included (seconds)
REQUEST_DEADLINE = float(os.getenv("WEBHARVEST_REQUEST_DEADLINE", 60))

# Base of the exponential backoff between retries (seconds): 1s, 2s, 4s, ...
BACKOFF_BASE = float(os.getenv("WEBHARVEST_BACKOFF_BASE", 1.0))

# Crawl defaults
DEFAULT_MAX_PAGES = int(os.getenv("WEBHARVEST_MAX_PAGES", 100))
DEFAULT_DELAY_MS = int(os.getenv("WEBHARVEST_DELAY_MS", 1000))
DEFAULT_CONCURRENCY = int(os.getenv("WEBHARVEST_CONCURRENCY", 3))
DEFAULT_OUTPUT_DIR = os.getenv("WEBHARVEST_OUTPUT_DIR", "crawled-pages")
DEFAULT_MAX_QUEUE_SIZE = int(os.getenv("WEBHARVEST_MAX_QUEUE_SIZE", 10000))
DEFAULT_MAX_RETRIES = int(os.getenv("WEBHARVEST_MAX_RETRIES", 3))

# Pending-queue size interval between progress notices
QUEUE_NOTICE_INTERVAL = 1000


# === LOGGING SECTION ===

LOG_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats as
    [ Tue Jan 06 05:32:41 AM UTC 2026 ] -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logger(name="webharvest", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if name != "webharvest":
        logger.propagate = True
        setup_logger("webharvest", log_file=log_file, level=level)
        return logger

    if logger.handlers:
        return logger

    formatter = CompanyFormatter()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def level_for(log_level: str) -> int:
    """Map a quiet/normal/verbose setting to a logging level."""
    return LOG_LEVELS.get((log_level or "normal").lower(), logging.INFO)


# Global logger instance
logger = setup_logger()
