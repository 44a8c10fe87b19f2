"""Web tools: search, search_next, solve_captcha and fetch."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
from loguru import logger

from duckgate.fetch.article import extract_article, html_to_markdown
from duckgate.fetch.safety import validate_fetch_url
from duckgate.search.filters import DATE_FRAMES, REGIONS
from duckgate.search.session import SearchReply, SearchSession, SearchStateMachine
from duckgate.search.transport import browser_headers
from duckgate.tools.base import Tool

if TYPE_CHECKING:
    from duckgate.config.schema import FetchConfig


def _render(reply: SearchReply) -> str:
    return f"Error: {reply.text}" if reply.is_error else reply.text


class _SessionTool(Tool):
    """Base for tools operating on the shared search session."""

    def __init__(self, machine: SearchStateMachine, session: SearchSession):
        self._machine = machine
        self._session = session


class SearchTool(_SessionTool):
    """Start a new DuckDuckGo search."""

    name = "search"
    description = (
        "Searches DuckDuckGo and returns parsed results. Starts from page 1 every "
        "time it is called. Use the fetch tool on result URLs to read more about them."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "minLength": 1, "description": "The search query"},
            "region": {
                "type": "string",
                "description": "Optional region code such as us-en, uk-en, de-de. "
                "Unsupported codes mean no region filter.",
            },
            "dateFrame": {
                "type": "string",
                "description": "Optional time filter: d (day), w (week), m (month), y (year)",
            },
        },
        "required": ["query"],
    }

    async def execute(self, query: str, **kwargs: Any) -> str:
        region = kwargs.get("region")
        date_frame = kwargs.get("dateFrame")
        if region and region.lower() not in REGIONS:
            logger.debug("Ignoring unsupported region {!r}", region)
        if date_frame and date_frame.lower() not in DATE_FRAMES:
            logger.debug("Ignoring unsupported date frame {!r}", date_frame)
        reply = await self._machine.search(self._session, query, region=region, date_frame=date_frame)
        return _render(reply)


class SearchNextTool(_SessionTool):
    """Fetch the next page of the current search."""

    name = "search_next"
    description = (
        "Navigates to the next page of search results. Warning: Do not use more than "
        "3 times as search quality degrades with excessive pagination."
    )
    parameters = {"type": "object", "properties": {}}

    async def execute(self, **kwargs: Any) -> str:
        return _render(await self._machine.search_next(self._session))


class SolveCaptchaTool(_SessionTool):
    """Submit a human's answer to the pending CAPTCHA."""

    name = "solve_captcha"
    description = (
        "Submits the user's answer to the pending search CAPTCHA. Pass the 1-based "
        "positions of the matching tiles: the tile labelled 0 is position 1, the tile "
        "labelled 8 is position 9."
    )
    parameters = {
        "type": "object",
        "properties": {
            "indices": {
                "type": "array",
                "items": {"type": "integer"},
                "maxItems": 9,
                "description": "1-based positions of the tiles that match the instructions",
            },
        },
        "required": ["indices"],
    }

    async def execute(self, indices: list[int], **kwargs: Any) -> str:
        return _render(await self._machine.solve_challenge(self._session, list(indices)))


class FetchTool(Tool):
    """Fetch a URL and return its readable content."""

    name = "fetch"
    description = (
        "Fetches the content of a URL (GET only) and returns the main article as "
        "markdown. Set raw=true to get the HTML instead."
    )
    parameters = {
        "type": "object",
        "properties": {
            "url": {"type": "string", "minLength": 1, "description": "The URL to fetch"},
            "headers": {
                "type": "object",
                "additionalProperties": {"type": "string"},
                "description": "Optional headers to include in the request",
            },
            "raw": {"type": "boolean", "description": "Return the raw response body"},
            "maxChars": {
                "type": "integer",
                "minimum": 100,
                "description": "Maximum characters of content to return",
            },
        },
        "required": ["url"],
    }

    def __init__(self, fetch_config: FetchConfig | None = None, user_agent: str = ""):
        from duckgate.config.schema import FetchConfig

        self.config = fetch_config or FetchConfig()
        self.user_agent = user_agent

    async def execute(self, url: str, **kwargs: Any) -> str:
        ok, error = validate_fetch_url(url, allow_private_network=self.config.allow_private_network)
        if not ok:
            return f"Error: {error}"

        raw = bool(kwargs.get("raw", False))
        max_chars = min(int(kwargs.get("maxChars") or self.config.max_chars), self.config.max_chars)

        parsed = urlparse(url)
        headers = browser_headers(self.user_agent, Origin=f"{parsed.scheme}://{parsed.netloc}")
        headers.update({str(k): str(v) for k, v in (kwargs.get("headers") or {}).items()})

        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(url, headers=headers, timeout=self.config.timeout)
        except httpx.HTTPError as e:
            return f"Error: Failed to fetch {url}: {e}"

        if response.status_code >= 400:
            return f"Error: Failed to fetch {url}: {response.status_code} {response.reason_phrase}"

        final_url = str(response.url)
        content_type = response.headers.get("content-type", "")
        body = response.text
        title = ""
        extractor = "raw"

        if not raw and "html" in content_type.lower():
            try:
                article = extract_article(body, final_url)
                title, body, extractor = article.title, article.markdown, "readability"
            except Exception as e:
                logger.warning("Article extraction failed for {}: {}", final_url, e)
                body, extractor = html_to_markdown(body, final_url), "markdown"
        elif not raw and "json" in content_type.lower():
            try:
                body = json.dumps(response.json(), ensure_ascii=False, indent=2)
                extractor = "json"
            except ValueError:
                pass

        truncated = len(body) > max_chars
        text = body[:max_chars] if truncated else body
        logger.info("Fetched {} ({} chars, extractor={})", final_url, len(text), extractor)

        return json.dumps(
            {
                "url": url,
                "finalUrl": final_url,
                "status": response.status_code,
                "title": title,
                "extractor": extractor,
                "truncated": truncated,
                "length": len(text),
                "text": text,
            },
            ensure_ascii=False,
        )
