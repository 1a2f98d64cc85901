"""
Centralized URL policy: normalization, crawl scope, and non-document blocking.

All extension and scope rules live here. The frontier imports URLPolicy and
CrawlScope instead of duplicating extension lists or ad-hoc checks.
"""

from dataclasses import dataclass
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

DEFAULT_PORTS = {"http": 80, "https": 443}


class URLPolicy:
    """
    Central policy for URL normalization and classification.

    Methods:
    - normalize(url, base): resolve, strip fragment, lowercase scheme/host
    - is_http(url): True for http/https
    - has_fragment(url): True if URL contains a fragment (#...)
    - is_non_document(url): True for image/media/archive/style/script/... extensions
    - origin(url): (scheme, host, port) tuple with default ports made explicit
    """

    # Extensions that never hold a crawlable document
    NON_DOCUMENT_EXTENSIONS = (
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # Images
        ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico", ".bmp", ".tiff",
        # Video/Audio
        ".mp4", ".avi", ".mov", ".mkv", ".webm", ".mp3", ".wav",
        # Archives
        ".zip", ".rar", ".tar", ".gz", ".7z",
        # Styles/Scripts/Data
        ".css", ".js", ".xml", ".json",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot",
        # Executables/Installers
        ".exe", ".msi", ".dmg",
    )

    @staticmethod
    def normalize(url: str, base: str = None) -> str:
        """
        Resolve url against base, drop the fragment, lowercase scheme and host,
        drop an explicit default port. An empty path becomes "/".
        Raises ValueError for unparseable input (bad IPv6 brackets, bad port).
        """
        url = (url or "").strip()
        if base:
            url = urljoin(base, url)
        url, _ = urldefrag(url)
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        if scheme not in ("http", "https"):
            return url
        netloc = parsed.netloc.lower()
        if parsed.port is not None and parsed.port == DEFAULT_PORTS[scheme]:
            netloc = netloc.rsplit(":", 1)[0]
        path = parsed.path or "/"
        return urlunparse((scheme, netloc, path, parsed.params, parsed.query, ""))

    @staticmethod
    def is_http(url: str) -> bool:
        return urlparse(url).scheme.lower() in ("http", "https")

    @staticmethod
    def has_fragment(url: str) -> bool:
        return bool(urlparse(url).fragment)

    @classmethod
    def is_non_document(cls, url: str) -> bool:
        path = urlparse(url).path.lower()
        return path.endswith(cls.NON_DOCUMENT_EXTENSIONS)

    @staticmethod
    def origin(url: str):
        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        try:
            port = parsed.port
        except ValueError:
            port = None
        return scheme, (parsed.hostname or "").lower(), port or DEFAULT_PORTS.get(scheme)

    @staticmethod
    def origin_url(url: str) -> str:
        """scheme://host[:port], port omitted when it is the scheme default."""
        scheme, host, port = URLPolicy.origin(url)
        if ":" in host:
            host = f"[{host}]"
        if port is None or port == DEFAULT_PORTS.get(scheme):
            return f"{scheme}://{host}"
        return f"{scheme}://{host}:{port}"


@dataclass(frozen=True)
class CrawlScope:
    """
    Origin and path subtree derived once from the seed URL.
    Nothing outside both is ever admitted to the frontier.
    """
    seed_url: str
    origin: tuple
    base_path: str

    @classmethod
    def from_seed(cls, seed_url: str) -> "CrawlScope":
        seed = URLPolicy.normalize(seed_url)
        return cls(seed_url=seed, origin=URLPolicy.origin(seed), base_path=cls.derive_base_path(urlparse(seed).path))

    @staticmethod
    def derive_base_path(path: str) -> str:
        """
        /docs/en/    -> /docs/en
        /docs/en/sub -> /docs/en   (parent directory)
        /docs        -> /docs      (single segment kept as its own root)
        /            -> /
        """
        path = path or "/"
        if path.endswith("/"):
            base = path.rstrip("/")
        else:
            segments = [s for s in path.split("/") if s]
            base = path[:path.rfind("/")] if len(segments) > 1 else path
        return base or "/"

    def same_origin(self, url: str) -> bool:
        return URLPolicy.origin(url) == self.origin

    def in_subtree(self, url: str) -> bool:
        path = urlparse(url).path or "/"
        if self.base_path == "/":
            return True
        return path == self.base_path or path.startswith(self.base_path + "/")

    def contains(self, url: str) -> bool:
        return self.same_origin(url) and self.in_subtree(url)
