"""CAPTCHA puzzle compositing and loopback image hosting."""

from duckgate.captcha.compositor import compose_puzzle, download_tiles
from duckgate.captcha.server import PuzzleImageServer, PuzzleImageStore

__all__ = ["PuzzleImageServer", "PuzzleImageStore", "compose_puzzle", "download_tiles"]
