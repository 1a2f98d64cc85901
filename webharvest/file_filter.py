"""
Include/exclude glob filtering for crawled URL paths.

Matching is delegated to wcmatch with minimatch-compatible flags:
- `**` as a whole path segment matches zero or more directories (GLOBSTAR)
- a pattern without `/` is matched against the base name (MATCHBASE)
- brace alternatives such as `*.{md,txt}` are expanded (BRACE)
A leading `/` on a pattern is ignored; URL paths are matched without one.
"""

from urllib.parse import urlparse

import bracex
from wcmatch import fnmatch, glob

GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.MATCHBASE | glob.FORCEUNIX
SEGMENT_FLAGS = fnmatch.FORCEUNIX


def _as_list(patterns):
    if not patterns:
        return []
    if isinstance(patterns, str):
        patterns = [patterns]
    return [str(p).lstrip("/") for p in patterns if p and str(p).lstrip("/")]


class FileFilter:
    """
    Exclude patterns are checked first and always win.
    Include patterns are OR-combined; no include patterns admits everything not excluded.
    """

    def __init__(self, include=None, exclude=None):
        self.include_patterns = _as_list(include)
        self.exclude_patterns = _as_list(exclude)

    def should_include(self, file_path: str) -> bool:
        path = file_path.replace("\\", "/")
        if self.exclude_patterns and glob.globmatch(path, self.exclude_patterns, flags=GLOB_FLAGS):
            return False
        if self.include_patterns:
            return glob.globmatch(path, self.include_patterns, flags=GLOB_FLAGS)
        return True

    def filter_paths(self, file_paths):
        return [p for p in file_paths if self.should_include(p)]

    def should_crawl_url(self, url: str) -> bool:
        """Apply the filter to a URL path. The site root is treated as index.html."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return True
        if not parsed.scheme or not parsed.netloc:
            return True
        relative_path = parsed.path.lstrip("/")
        if not relative_path:
            return self.should_include("index.html")
        return self.should_include(relative_path)

    def should_explore_directory(self, dir_path: str) -> bool:
        """
        Conservative subtree check for tree walkers: False only when no include
        pattern can match anything beneath dir_path.
        """
        if not self.include_patterns:
            return True
        dir_parts = [p for p in dir_path.replace("\\", "/").strip("/").split("/") if p]
        if not dir_parts:
            return True

        for include in self.include_patterns:
            for pattern in bracex.expand(include):
                if "/" not in pattern:
                    return True
                if self._prefix_could_match(pattern.split("/"), dir_parts):
                    return True
        return False

    @staticmethod
    def _prefix_could_match(pattern_parts, dir_parts):
        for i, dir_part in enumerate(dir_parts):
            if i >= len(pattern_parts):
                return False
            if pattern_parts[i] == "**":
                return True
            if not fnmatch.fnmatch(dir_part, pattern_parts[i], flags=SEGMENT_FLAGS):
                return False
        # Files beneath dir need at least one more segment in the pattern
        return len(pattern_parts) > len(dir_parts)

    def get_summary(self):
        return {
            "include_patterns": list(self.include_patterns),
            "exclude_patterns": list(self.exclude_patterns),
            "has_filters": bool(self.include_patterns or self.exclude_patterns),
        }
