"""HTTP transport used for search requests, tile downloads and solves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx

DUCKDUCKGO_ORIGIN = "https://html.duckduckgo.com"

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:143.0) Gecko/20100101 Firefox/143.0",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,zh-CN;q=0.7,en;q=0.3",
    "Accept-Encoding": "gzip, deflate",
    "Referer": f"{DUCKDUCKGO_ORIGIN}/",
    "Sec-GPC": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "same-origin",
    "DNT": "1",
    "Priority": "u=0, i",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}


def browser_headers(user_agent: str = "", **extra: str) -> dict[str, str]:
    """Default browser header profile with optional overrides."""
    headers = dict(DEFAULT_HEADERS)
    if user_agent:
        headers["User-Agent"] = user_agent
    headers.update(extra)
    return headers


def search_headers(user_agent: str = "") -> dict[str, str]:
    """Headers for form posts to the DuckDuckGo HTML endpoint."""
    return browser_headers(
        user_agent,
        **{
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": DUCKDUCKGO_ORIGIN,
        },
    )


@dataclass(slots=True)
class TransportResponse:
    """Status and body of one HTTP exchange."""

    status: int
    reason: str = ""
    text: str = ""
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpTransport(Protocol):
    """Minimal async HTTP client interface."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: str | None = None,
    ) -> TransportResponse: ...


class HttpxTransport:
    """``HttpTransport`` backed by ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 15.0):
        self.timeout = timeout

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        data: str | None = None,
    ) -> TransportResponse:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.request(
                method,
                url,
                headers=headers,
                content=data.encode("utf-8") if data is not None else None,
                timeout=self.timeout,
            )

        return TransportResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            text=response.text,
            content=response.content,
        )
