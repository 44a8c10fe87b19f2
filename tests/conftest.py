import io
from collections import deque

import pytest
from PIL import Image

from duckgate.search.transport import TransportResponse

SEARCH_URL = "https://html.duckduckgo.com/html/"
TILE_STEMS = ["a", "b", "c", "d", "e", "f", "g", "h", "i"]


def results_html(
    items: list[tuple[str, str, str | None]],
    next_fields: list[tuple[str, str | None]] | None = None,
) -> str:
    rows = []
    for title, url, snippet in items:
        snippet_html = f'<a class="result__snippet" href="{url}">{snippet}</a>' if snippet is not None else ""
        rows.append(
            '<div class="result results_links web-result"><div class="links_main result__body">'
            f'<h2 class="result__title"><a class="result__a" href="{url}">{title}</a></h2>'
            f"{snippet_html}</div></div>"
        )
    nav = ""
    if next_fields is not None:
        inputs = "".join(
            f'<input type="hidden" name="{name}" />'
            if value is None
            else f'<input type="hidden" name="{name}" value="{value}" />'
            for name, value in next_fields
        )
        nav = (
            '<div class="nav-link"><form action="/html/" method="post">'
            f'<input type="submit" class="btn btn--alt" value="Next" />{inputs}</form></div>'
        )
    return (
        '<html><body><div class="serp__results"><div id="links" class="results">'
        f"{''.join(rows)}{nav}</div></div></body></html>"
    )


def challenge_html(stems: list[str] | None = None, submit_value: str = "tok123", error: str = "") -> str:
    stems = TILE_STEMS if stems is None else stems
    error_html = f'<div class="anomaly-modal__error">{error}</div>' if error else ""
    boxes = "".join(
        '<div class="anomaly-modal__box">'
        f'<img class="anomaly-modal__image" src="../assets/anomaly/images/challenge/{stem}.jpg" />'
        f'<input type="checkbox" name="image-check_{stem}" /></div>'
        for stem in stems
    )
    return (
        '<html><body><div class="anomaly-modal__mask"><div class="anomaly-modal__modal">'
        '<div class="anomaly-modal__title">Unfortunately, bots use DuckDuckGo too.</div>'
        '<div class="anomaly-modal__instructions">Select all squares containing a duck:</div>'
        f"{error_html}"
        '<form id="challenge-form" action="//duckduckgo.com/anomaly.js?sv=html&amp;cc=botnet" method="POST">'
        f'<div class="anomaly-modal__puzzle">{boxes}</div>'
        f'<button type="submit" name="challenge-submit" value="{submit_value}">Submit</button>'
        "</form></div></div></body></html>"
    )


def failure_html(message: str = "Incorrect answer, please try again.") -> str:
    return (
        '<html><body><form id="challenge-form-failure" action="/html/?retry=1" method="GET">'
        f'<div class="anomaly-modal__error">{message}</div>'
        '<button type="submit">Try again</button></form></body></html>'
    )


def success_html() -> str:
    return '<html><body><div id="challenge-success">Thanks for confirming.</div></body></html>'


def tile_url(stem: str) -> str:
    return f"https://html.duckduckgo.com/assets/anomaly/images/challenge/{stem}.jpg"


def png_bytes(color: tuple[int, int, int] = (200, 30, 30), size: int = 40) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeTransport:
    """Queued POST responses, GET responses keyed by URL, every call recorded."""

    def __init__(
        self,
        posts: list[TransportResponse] | None = None,
        gets: dict[str, TransportResponse] | None = None,
    ):
        self.posts = deque(posts or [])
        self.gets = dict(gets or {})
        self.calls: list[dict] = []

    async def request(self, method, url, *, headers=None, data=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data})
        if method == "GET":
            response = self.gets.get(url)
            if isinstance(response, Exception):
                raise response
            return response or TransportResponse(status=404, reason="Not Found")
        if not self.posts:
            raise AssertionError(f"unexpected POST to {url}")
        response = self.posts.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def post_calls(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "POST"]


class FakeImageServer:
    def __init__(self):
        self.published: list[bytes] = []

    def publish(self, data: bytes) -> str:
        self.published.append(data)
        return f"http://127.0.0.1:9999/captcha/token{len(self.published)}.png"


def html_response(html: str, status: int = 200) -> TransportResponse:
    return TransportResponse(status=status, reason="OK" if status == 200 else "Error", text=html)


def all_tiles(color: tuple[int, int, int] = (10, 120, 200)) -> dict[str, TransportResponse]:
    data = png_bytes(color)
    return {tile_url(stem): TransportResponse(status=200, content=data) for stem in TILE_STEMS}


@pytest.fixture
def image_server() -> FakeImageServer:
    return FakeImageServer()
