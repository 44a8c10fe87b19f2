"""Tool registry factory wiring the search session to its collaborators."""

from duckgate.captcha.server import PuzzleImageServer, PuzzleImageStore
from duckgate.config.schema import Config
from duckgate.search.session import SearchSession, SearchStateMachine
from duckgate.search.transport import HttpTransport, HttpxTransport
from duckgate.tools.registry import ToolRegistry
from duckgate.tools.web import FetchTool, SearchNextTool, SearchTool, SolveCaptchaTool


def build_image_server(config: Config) -> PuzzleImageServer:
    """Loopback image server for CAPTCHA puzzles (started lazily)."""
    store = PuzzleImageStore(ttl_s=config.captcha.image_ttl_seconds)
    return PuzzleImageServer(store, host=config.captcha.host, port=config.captcha.port)


def build_tool_registry(
    config: Config | None = None,
    *,
    session: SearchSession | None = None,
    transport: HttpTransport | None = None,
    image_server: PuzzleImageServer | None = None,
) -> ToolRegistry:
    """Build the registry exposing search, search_next, solve_captcha and fetch."""
    config = config or Config()
    machine = SearchStateMachine(
        transport=transport or HttpxTransport(timeout=config.search.timeout),
        image_server=image_server or build_image_server(config),
        search_config=config.search,
        captcha_config=config.captcha,
    )
    session = session or SearchSession()

    registry = ToolRegistry()
    registry.register(SearchTool(machine, session))
    registry.register(SearchNextTool(machine, session))
    registry.register(SolveCaptchaTool(machine, session))
    registry.register(FetchTool(fetch_config=config.fetch, user_agent=config.search.user_agent))
    return registry
