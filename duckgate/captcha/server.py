"""Loopback HTTP server for short-lived CAPTCHA puzzle images."""

from __future__ import annotations

import ipaddress
import re
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from loguru import logger

DEFAULT_TTL_SECONDS = 300
_PATH_RE = re.compile(r"^/captcha/([A-Za-z0-9_-]{16,})\.png$")


@dataclass(slots=True)
class _Entry:
    data: bytes
    expires_at: float


class PuzzleImageStore:
    """Thread-safe token -> PNG bytes map with a fixed time-to-live."""

    def __init__(
        self,
        ttl_s: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def put(self, data: bytes) -> str:
        """Store an image under a fresh random token."""
        with self._lock:
            self._sweep_locked()
            token = secrets.token_urlsafe(24)
            self._entries[token] = _Entry(data=data, expires_at=self._clock() + self.ttl_s)
            return token

    def get(self, token: str) -> bytes | None:
        with self._lock:
            self._sweep_locked()
            entry = self._entries.get(token)
            return entry.data if entry else None

    def sweep(self) -> int:
        """Evict expired entries; returns how many were removed."""
        with self._lock:
            return self._sweep_locked()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep_locked(self) -> int:
        now = self._clock()
        expired = [token for token, entry in self._entries.items() if entry.expires_at <= now]
        for token in expired:
            del self._entries[token]
        if expired:
            logger.debug("Evicted {} expired CAPTCHA image(s)", len(expired))
        return len(expired)


class PuzzleImageServer:
    """Serve ``PuzzleImageStore`` entries at ``/captcha/<token>.png`` on loopback."""

    def __init__(
        self,
        store: PuzzleImageStore | None = None,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        if not _is_loopback(host):
            raise ValueError(f"image server must bind a loopback address, got '{host}'")
        self.store = store if store is not None else PuzzleImageStore()
        self.host = host
        self.port = port
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    def start(self) -> None:
        """Bind and start serving on a daemon thread. Idempotent."""
        with self._start_lock:
            if self._httpd is not None:
                return
            handler = _make_handler(self.store)
            httpd = ThreadingHTTPServer((self.host, self.port), handler)
            httpd.daemon_threads = True
            self.port = httpd.server_address[1]
            self._thread = threading.Thread(
                target=httpd.serve_forever,
                name="duckgate-captcha-server",
                daemon=True,
            )
            self._thread.start()
            self._httpd = httpd
            logger.info("CAPTCHA image server listening on http://{}:{}", self.host, self.port)

    def stop(self) -> None:
        with self._start_lock:
            if self._httpd is None:
                return
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
            self._thread = None
            logger.info("CAPTCHA image server stopped")

    def publish(self, data: bytes) -> str:
        """Store an image and return its loopback URL."""
        self.start()
        token = self.store.put(data)
        return self.url_for(token)

    def url_for(self, token: str) -> str:
        return f"http://{self.host}:{self.port}/captcha/{token}.png"


def _make_handler(store: PuzzleImageStore) -> type[BaseHTTPRequestHandler]:
    class PuzzleImageHandler(BaseHTTPRequestHandler):
        server_version = "duckgate"

        def do_GET(self) -> None:  # noqa: N802
            match = _PATH_RE.match(self.path.split("?", 1)[0])
            data = store.get(match.group(1)) if match else None
            if data is None:
                self.send_error(HTTPStatus.NOT_FOUND)
                return
            self.send_response(HTTPStatus.OK)
            self.send_header("Content-Type", "image/png")
            self.send_header("Content-Length", str(len(data)))
            self.send_header("Cache-Control", "no-store")
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, format: str, *args) -> None:  # noqa: A002
            logger.debug("CAPTCHA image server: {}", format % args)

    return PuzzleImageHandler


def _is_loopback(host: str) -> bool:
    if host.lower() == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.version == 4 and address.is_loopback
