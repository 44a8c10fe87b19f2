"""Search session state machine: search, paginate and hand CAPTCHAs to a human."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import assert_never
from urllib.parse import urlencode

from loguru import logger

from duckgate.captcha.compositor import compose_puzzle, download_tiles
from duckgate.captcha.server import PuzzleImageServer
from duckgate.config.schema import CaptchaConfig, SearchConfig
from duckgate.search.challenge import classify_page
from duckgate.search.errors import (
    ChallengeActiveError,
    NoActiveChallengeError,
    PaginationExhaustedError,
    PuzzleUnavailableError,
    SearchError,
    TransportError,
    UnrecognizedDocumentError,
)
from duckgate.search.filters import normalize_date_frame, normalize_region
from duckgate.search.models import (
    ChallengeDescriptor,
    ChallengeFailedPage,
    ChallengePage,
    ChallengeResolvedPage,
    PaginationToken,
    ParseOutcome,
    ResultsPage,
    SearchResult,
    UnrecognizedPage,
)
from duckgate.search.transport import HttpTransport, browser_headers, search_headers

MORE_PAGES_TEXT = (
    "More pages available via search_next tool. "
    "Only use it if you have yet to obtain enough information."
)
NO_MORE_PAGES_TEXT = "No more pages available."
PUZZLE_BLOCKED_TEXT = (
    "Search is blocked by a CAPTCHA that cannot be displayed right now, so it "
    "cannot proceed. Try again later."
)


@dataclass(slots=True)
class SearchReply:
    """Text returned to the agent, with an error flag and optional puzzle URL."""

    text: str
    is_error: bool = False
    image_url: str | None = None


@dataclass(slots=True)
class SearchSession:
    """Mutable state of one agent's search conversation."""

    key: str = "default"
    query: str | None = None
    page_number: int = 1
    pending_token: PaginationToken = field(default_factory=PaginationToken)
    challenge: ChallengeDescriptor | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def reset(self, query: str) -> None:
        """Start over with a new query; old tokens and challenges are void."""
        self.query = query
        self.page_number = 1
        self.pending_token = PaginationToken()
        self.challenge = None


class SessionRegistry:
    """Sessions keyed by connection identity."""

    def __init__(self) -> None:
        self._sessions: dict[str, SearchSession] = {}

    def get_or_create(self, key: str = "default") -> SearchSession:
        session = self._sessions.get(key)
        if session is None:
            session = SearchSession(key=key)
            self._sessions[key] = session
        return session

    def __len__(self) -> int:
        return len(self._sessions)


class SearchStateMachine:
    """Drive a ``SearchSession`` through search, pagination and CAPTCHA states."""

    def __init__(
        self,
        transport: HttpTransport,
        image_server: PuzzleImageServer,
        search_config: SearchConfig | None = None,
        captcha_config: CaptchaConfig | None = None,
    ):
        self.transport = transport
        self.image_server = image_server
        self.config = search_config or SearchConfig()
        self.captcha_config = captcha_config or CaptchaConfig()

    async def search(
        self,
        session: SearchSession,
        query: str,
        region: str | None = None,
        date_frame: str | None = None,
    ) -> SearchReply:
        """Start a fresh query at page 1."""
        async with session.lock:
            session.reset(query)
            form = [("q", query), ("b", "")]
            kl = normalize_region(region)
            if kl:
                form.append(("kl", kl))
            df = normalize_date_frame(date_frame)
            if df:
                form.append(("df", df))

            logger.info("Search [{}]: {!r} (kl={}, df={})", session.key, query, kl or "-", df or "-")
            return await self._guarded(session, self.config.endpoint, urlencode(form))

    async def search_next(self, session: SearchSession) -> SearchReply:
        """Replay the pending pagination token to fetch the next page."""
        async with session.lock:
            try:
                if session.challenge is not None:
                    raise ChallengeActiveError(
                        "A CAPTCHA is pending. Call solve_captcha first, or start a new search."
                    )
                if not session.pending_token or session.page_number > self.config.max_pages:
                    raise PaginationExhaustedError("No next page available.")
            except SearchError as e:
                return SearchReply(str(e), is_error=True)

            body = session.pending_token.encode()
            session.pending_token = PaginationToken()
            session.page_number += 1

            logger.info("Search next [{}]: {!r} page {}", session.key, session.query, session.page_number)
            return await self._guarded(session, self.config.endpoint, body)

    async def solve_challenge(self, session: SearchSession, indices: list[int]) -> SearchReply:
        """Submit the human's answer (1-based tile positions) to the pending CAPTCHA."""
        async with session.lock:
            challenge = session.challenge
            if challenge is None:
                return SearchReply(
                    str(NoActiveChallengeError("No active CAPTCHA to solve.")),
                    is_error=True,
                )
            session.challenge = None

            form = challenge.build_submission(indices)
            logger.info(
                "Solving CAPTCHA [{}]: {} tile(s) checked",
                session.key,
                len(form) - 1,
            )
            return await self._guarded(session, challenge.action_url, urlencode(form))

    async def _guarded(self, session: SearchSession, url: str, body: str) -> SearchReply:
        try:
            return await self._submit(session, url, body)
        except TransportError as e:
            logger.warning("Search transport error: {}", e)
            return SearchReply(f"Failed to fetch search results: {e}", is_error=True)
        except SearchError as e:
            return SearchReply(f"Search failed: {e}", is_error=True)

    async def _submit(self, session: SearchSession, url: str, body: str) -> SearchReply:
        try:
            response = await self.transport.request(
                "POST",
                url,
                headers=search_headers(self.config.user_agent),
                data=body,
            )
        except Exception as e:
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.ok:
            raise TransportError(f"{response.status} {response.reason}".strip(), status=response.status)

        try:
            outcome = classify_page(response.text, base_url=url)
        except Exception as e:
            logger.exception("Failed to classify search response")
            raise SearchError(f"could not classify the search response ({e})") from e

        return await self._handle_outcome(session, outcome)

    async def _handle_outcome(self, session: SearchSession, outcome: ParseOutcome) -> SearchReply:
        match outcome:
            case ResultsPage(results=results, token=token):
                session.pending_token = token
                has_more = bool(token) and session.page_number <= self.config.max_pages
                return SearchReply(format_results(session.query or "", results, has_more))
            case ChallengePage(challenge=challenge, error=error):
                return await self._present_challenge(session, challenge, error)
            case ChallengeFailedPage(message=message, retry_url=retry_url):
                session.challenge = None
                text = (
                    f"CAPTCHA answer was not accepted: {message} "
                    "Call search again to receive a new CAPTCHA."
                )
                if retry_url:
                    text += f" (retry form: {retry_url})"
                return SearchReply(text, is_error=True)
            case ChallengeResolvedPage():
                session.challenge = None
                return SearchReply(
                    "CAPTCHA solved. Run search again with the original query "
                    f'"{session.query or ""}" to get results.'
                )
            case UnrecognizedPage(reason=reason):
                raise UnrecognizedDocumentError(f"unrecognized search response: {reason}")
            case _:
                assert_never(outcome)

    async def _present_challenge(
        self,
        session: SearchSession,
        challenge: ChallengeDescriptor,
        error: str = "",
    ) -> SearchReply:
        session.pending_token = PaginationToken()
        session.challenge = None

        if not challenge.is_well_formed():
            logger.warning(
                "Malformed CAPTCHA: {} image(s), {} checkbox name(s)",
                len(challenge.image_urls),
                len(set(challenge.checkbox_names)),
            )
            return SearchReply(PUZZLE_BLOCKED_TEXT, is_error=True)

        tiles = await download_tiles(
            self.transport,
            challenge.image_urls,
            headers=browser_headers(self.config.user_agent),
        )
        try:
            image = compose_puzzle(
                tiles,
                tile_size=self.captcha_config.tile_size,
                overlay_path=self.captcha_config.overlay_path or None,
            )
            url = self.image_server.publish(image)
        except (PuzzleUnavailableError, OSError) as e:
            logger.warning("CAPTCHA puzzle unavailable: {}", e)
            return SearchReply(PUZZLE_BLOCKED_TEXT, is_error=True)

        session.challenge = challenge
        logger.info("CAPTCHA presented [{}] at {}", session.key, url)
        text = format_challenge(challenge, url, self.captcha_config.image_ttl_seconds, error=error)
        return SearchReply(text, image_url=url)


def format_results(query: str, results: list[SearchResult], has_more: bool) -> str:
    listing = "\n\n".join(f"({r.title})[{r.url}]\n{r.snippet}" for r in results)
    more = MORE_PAGES_TEXT if has_more else NO_MORE_PAGES_TEXT
    return f'Found {len(results)} results for query "{query}". {more}\n\nResults:\n{listing}'


def format_challenge(challenge: ChallengeDescriptor, url: str, ttl_seconds: int, error: str = "") -> str:
    minutes = max(1, ttl_seconds // 60)
    instructions = challenge.instructions or "Select all matching images."
    rejected = f"The previous CAPTCHA answer was not accepted: {error}\n" if error else ""
    return (
        f"{rejected}Search was interrupted by a CAPTCHA that needs a human.\n"
        f"Ask the user to open {url} (valid for {minutes} minute(s)) and follow the "
        f'instructions: "{instructions}"\n'
        "The tiles are labelled 0-8. The user should reply with the labels of the "
        "matching images. Then call solve_captcha with those labels plus one "
        "(label 0 is position 1, label 8 is position 9)."
    )
