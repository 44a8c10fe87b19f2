"""Readable-article extraction from raw HTML."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from readability import Document

_BLOCK_TAGS = {"p", "div", "section", "article", "blockquote", "figure", "table", "tr"}
_SKIP_TAGS = {"script", "style", "noscript", "iframe", "svg", "form", "button"}
_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclass(slots=True)
class Article:
    title: str
    markdown: str


def extract_article(html: str, base_url: str) -> Article:
    """Main content of ``html`` as markdown, links resolved against ``base_url``."""
    doc = Document(html, url=base_url)
    title = (doc.short_title() or "").strip()
    summary = doc.summary(html_partial=True)
    body = html_to_markdown(summary, base_url)
    if not body:
        # readability found nothing; fall back to the whole page text
        body = html_to_markdown(html, base_url)
    return Article(title=title, markdown=body)


def html_to_markdown(html: str, base_url: str = "") -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    root = soup.body or soup
    text = _render(root, base_url).strip()
    return _BLANK_LINES_RE.sub("\n\n", text)


def _render(node: Tag, base_url: str) -> str:
    parts: list[str] = []
    for child in node.children:
        if isinstance(child, NavigableString):
            if type(child) is NavigableString:
                parts.append(re.sub(r"\s+", " ", str(child)))
            continue
        if not isinstance(child, Tag) or child.name in _SKIP_TAGS:
            continue
        parts.append(_render_tag(child, base_url))
    return "".join(parts)


def _render_tag(tag: Tag, base_url: str) -> str:
    name = tag.name
    if name in {"h1", "h2", "h3", "h4", "h5", "h6"}:
        level = int(name[1])
        return f"\n\n{'#' * level} {_inline(tag, base_url)}\n\n"
    if name == "a":
        text = _inline(tag, base_url)
        href = tag.get("href")
        if not href or not text or str(href).startswith(("javascript:", "#")):
            return text
        return f"[{text}]({urljoin(base_url, str(href))})"
    if name == "li":
        return f"\n- {_inline(tag, base_url)}"
    if name in {"ul", "ol"}:
        return f"\n{_render(tag, base_url)}\n"
    if name == "pre":
        return f"\n\n```\n{tag.get_text()}\n```\n\n"
    if name == "code":
        return f"`{tag.get_text()}`"
    if name in {"strong", "b"}:
        text = _inline(tag, base_url)
        return f"**{text}**" if text else ""
    if name in {"em", "i"}:
        text = _inline(tag, base_url)
        return f"*{text}*" if text else ""
    if name == "br":
        return "\n"
    if name == "img":
        alt = str(tag.get("alt") or "").strip()
        src = tag.get("src")
        return f"![{alt}]({urljoin(base_url, str(src))})" if src else ""
    if name in _BLOCK_TAGS:
        return f"\n\n{_render(tag, base_url).strip()}\n\n"
    return _render(tag, base_url)


def _inline(tag: Tag, base_url: str) -> str:
    return " ".join(_render(tag, base_url).split())
