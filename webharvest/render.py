"""
Markdown rendering of extracted content fragments.

Code samples flagged by the extractor are converted to fenced blocks before
html2text runs; html2text would otherwise indent or re-wrap them.
"""

import re

import html2text
from bs4 import BeautifulSoup

FENCE_PLACEHOLDER = "WEBHARVESTFENCE{}X"
INLINE_FENCE_MIN_LENGTH = 50

# Fenced code block, opening fence through closing fence
FENCED_BLOCK = re.compile(r"(^```.*?^```[ \t]*$)", re.MULTILINE | re.DOTALL)


def _code_language(tag) -> str:
    for c in tag.get("class") or []:
        if c.startswith("language-"):
            return c.split("language-", 1)[1]
        if c.startswith("lang-"):
            return c.split("lang-", 1)[1]
    return ""


def cleanup_markdown(markdown: str) -> str:
    """Deterministic post-processing of rendered Markdown."""
    # Empty link artifacts
    markdown = re.sub(r"\[\]\([^)]*\)", "", markdown)
    # Trailing whitespace
    markdown = re.sub(r"[ \t]+$", "", markdown, flags=re.MULTILINE)
    # Blank-line runs
    markdown = re.sub(r"\n\s*\n\s*\n", "\n\n", markdown)
    # Tight fences
    markdown = re.sub(r"\n\n```", "\n```", markdown)
    markdown = re.sub(r"```\n\n", "```\n", markdown)
    # Headings on their own paragraph, never inside fenced code
    parts = FENCED_BLOCK.split(markdown)
    for i in range(0, len(parts), 2):
        parts[i] = re.sub(r"^(#+\s+.+)$", r"\n\1\n", parts[i], flags=re.MULTILINE)
    markdown = "".join(parts)
    markdown = re.sub(r"\n{3,}", "\n\n", markdown)
    return markdown.strip()


class MarkdownRenderer:
    """
    FLOW: Drop empty links and scripts -> Swap <pre>/flagged code for placeholders ->
    html2text conversion -> Restore fenced blocks -> cleanup_markdown.
    """

    def __init__(self, parser="lxml"):
        self.parser = parser

    def _converter(self):
        h = html2text.HTML2Text()
        h.body_width = 0
        h.ignore_links = False
        h.ignore_images = False
        h.unicode_snob = True
        h.emphasis_mark = "_"
        return h

    def render(self, fragment_html: str) -> str:
        soup = BeautifulSoup(fragment_html or "", self.parser)

        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()
        for a in soup.find_all("a"):
            href = (a.get("href") or "").strip()
            if not a.get_text(strip=True) and not a.find("img") and href in ("", "#"):
                a.decompose()

        fences = {}
        for pre in soup.find_all("pre"):
            if pre.decomposed:
                continue
            code = pre.find("code")
            source = code if code is not None else pre
            language = _code_language(source) or _code_language(pre)
            body = source.get_text().strip("\n")
            fences[self._swap(soup, pre, len(fences))] = f"\n\n```{language}\n{body}\n```\n\n"

        for code in soup.find_all("code", attrs={"data-contains-html": "true"}):
            text = code.get_text()
            if "\n" in text or len(text) > INLINE_FENCE_MIN_LENGTH:
                fences[self._swap(soup, code, len(fences))] = f"\n\n```html\n{text.strip()}\n```\n\n"

        markdown = self._converter().handle(str(soup))
        for key, fenced in fences.items():
            markdown = markdown.replace(key, fenced)
        return cleanup_markdown(markdown)

    @staticmethod
    def _swap(soup, tag, index):
        key = FENCE_PLACEHOLDER.format(index)
        holder = soup.new_tag("p")
        holder.string = key
        tag.replace_with(holder)
        return key
