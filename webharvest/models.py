from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class FetchResult:
    """
    Output of the retry executor: the last response received for a URL.
    The body is read eagerly under the per-attempt deadline.
    """
    url: str
    final_url: str
    status_code: int
    reason: str
    content_type: str
    body: bytes
    encoding: Optional[str]
    attempts: int
    elapsed_ms: int
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def retried(self) -> bool:
        return self.attempts > 1

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding or "utf-8", errors="replace")


@dataclass
class RobotsRuleset:
    """Robots rules for one origin. Crawl delay is in milliseconds."""
    disallowed_paths: List[str] = field(default_factory=list)
    crawl_delay: Optional[float] = None
    exists: bool = False


@dataclass(frozen=True)
class ExtractedContent:
    """Filtered main-content fragment plus every hyperlink in the document."""
    html: str
    links: List[str]
    region: str


@dataclass(frozen=True)
class PageArtifact:
    url: str
    path: str
    size: int
    elapsed_ms: int


@dataclass(frozen=True)
class PageResult:
    """
    Returned by a crawl task to the coordinating loop.
    artifact is None when the response was not a document.
    """
    url: str
    artifact: Optional[PageArtifact]
    links: List[str] = field(default_factory=list)
    content_type: str = ""