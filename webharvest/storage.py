"""
Filesystem persistence of crawled pages.
Output paths mirror the URL path under the output directory.
"""

import logging
import os
import re
from urllib.parse import urlparse

from webharvest.errors import FatalSetupFailure

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 200
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')


class ArtifactWriter:
    """
    FLOW: ensure_output_dir() once at crawl start -> generate_filepath(url) maps the URL path
    to a .md (or .html in raw mode) file -> write() creates parent dirs and stores UTF-8 text.
    """

    def __init__(self, output_dir, raw=False):
        self.output_dir = output_dir
        self.raw = raw

    @property
    def extension(self):
        return ".html" if self.raw else ".md"

    def ensure_output_dir(self):
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise FatalSetupFailure(f"Cannot create output directory {self.output_dir}: {e}") from e

    def generate_filepath(self, url: str) -> str:
        """
        Relative artifact path for url:
        /              -> index.md
        /docs/api      -> docs/api.md
        /docs/api/     -> docs/api.md
        /search?q=x    -> search_q_x.md
        """
        parsed = urlparse(url)
        path = parsed.path.strip("/")
        if not path:
            return "index" + self.extension

        directory, _, filename = path.rpartition("/")
        if parsed.query:
            filename += "_" + parsed.query.replace("&", "_").replace("=", "_")
        filename = _UNSAFE_CHARS.sub("_", filename)[:MAX_FILENAME_LENGTH]

        parts = [p for p in directory.split("/") if p not in ("", ".", "..")]
        parts.append(filename + self.extension)
        return os.path.join(*parts)

    def write(self, url: str, content: str) -> str:
        relative_path = self.generate_filepath(url)
        full_path = self.write_path(relative_path, content)
        logger.debug(f"saved {url} -> {full_path}")
        return relative_path

    def write_path(self, relative_path: str, content: str) -> str:
        """Store content at relative_path under the output directory. Returns the full path."""
        full_path = os.path.join(self.output_dir, relative_path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w", encoding="utf-8") as f:
            f.write(content)
        return full_path
