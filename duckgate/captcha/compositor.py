"""Assemble CAPTCHA tiles into one labelled 3x3 puzzle image."""

from __future__ import annotations

import asyncio
import io
from functools import lru_cache
from pathlib import Path

from loguru import logger
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from duckgate.search.errors import PuzzleUnavailableError
from duckgate.search.models import PUZZLE_TILE_COUNT
from duckgate.search.transport import HttpTransport

GRID_COLUMNS = 3
DEFAULT_TILE_SIZE = 160
LABEL_OFFSET = (6, 6)
LABEL_PADDING = 4
BANNER_TEXT = "Reply with the numbers of the matching images"


async def download_tiles(
    transport: HttpTransport,
    urls: list[str] | tuple[str, ...],
    headers: dict[str, str] | None = None,
) -> list[bytes | None]:
    """Fetch all tiles concurrently; a failed tile becomes ``None``."""

    async def _fetch(url: str) -> bytes | None:
        response = await transport.request("GET", url, headers=headers)
        if not response.ok:
            raise RuntimeError(f"HTTP {response.status}")
        return response.content

    outcomes = await asyncio.gather(*(_fetch(url) for url in urls), return_exceptions=True)

    tiles: list[bytes | None] = []
    failures = 0
    for url, outcome in zip(urls, outcomes):
        if isinstance(outcome, BaseException):
            failures += 1
            logger.warning("CAPTCHA tile download failed: {} ({})", url, outcome)
            tiles.append(None)
        else:
            tiles.append(outcome)
    if failures:
        logger.warning("{} of {} CAPTCHA tiles failed to download", failures, len(urls))
    return tiles


def compose_puzzle(
    tiles: list[bytes | None],
    *,
    tile_size: int = DEFAULT_TILE_SIZE,
    overlay_path: str | Path | None = None,
) -> bytes:
    """
    Lay nine tiles into a labelled 3x3 grid and encode it as PNG.

    Tiles are labelled 0-8 in row-major order, matching the order of the
    challenge's image URLs and checkbox names.

    Raises:
        PuzzleUnavailableError: fewer than nine tiles could be decoded.
    """
    images = _decode_tiles(tiles, tile_size)
    if len(images) != PUZZLE_TILE_COUNT:
        raise PuzzleUnavailableError(
            f"only {len(images)} of {PUZZLE_TILE_COUNT} CAPTCHA tiles are usable"
        )

    edge = tile_size * GRID_COLUMNS
    grid = Image.new("RGBA", (edge, edge), (255, 255, 255, 255))
    draw = ImageDraw.Draw(grid)
    font = ImageFont.load_default()

    for index, image in enumerate(images):
        row, col = divmod(index, GRID_COLUMNS)
        x, y = col * tile_size, row * tile_size
        grid.paste(image, (x, y))
        _draw_label(draw, font, str(index), (x + LABEL_OFFSET[0], y + LABEL_OFFSET[1]))

    grid.alpha_composite(_load_overlay(edge, str(overlay_path) if overlay_path else ""))

    buffer = io.BytesIO()
    grid.convert("RGB").save(buffer, format="PNG")
    return buffer.getvalue()


def _decode_tiles(tiles: list[bytes | None], tile_size: int) -> list[Image.Image]:
    images: list[Image.Image] = []
    for index, data in enumerate(tiles[:PUZZLE_TILE_COUNT]):
        if not data:
            continue
        try:
            with Image.open(io.BytesIO(data)) as raw:
                images.append(raw.convert("RGBA").resize((tile_size, tile_size)))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.warning("CAPTCHA tile {} could not be decoded: {}", index, e)
    return images


def _draw_label(
    draw: ImageDraw.ImageDraw,
    font: ImageFont.ImageFont,
    label: str,
    origin: tuple[int, int],
) -> None:
    left, top, right, bottom = draw.textbbox(origin, label, font=font)
    draw.rectangle(
        (left - LABEL_PADDING, top - LABEL_PADDING, right + LABEL_PADDING, bottom + LABEL_PADDING),
        fill=(0, 0, 0, 255),
    )
    draw.text(origin, label, fill=(255, 255, 0, 255), font=font)


@lru_cache(maxsize=8)
def _load_overlay(edge: int, overlay_path: str) -> Image.Image:
    """Static instruction graphic covering the whole grid."""
    if overlay_path:
        with Image.open(overlay_path) as raw:
            return raw.convert("RGBA").resize((edge, edge))

    overlay = Image.new("RGBA", (edge, edge), (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    font = ImageFont.load_default()
    _, top, _, bottom = draw.textbbox((0, 0), BANNER_TEXT, font=font)
    banner_height = (bottom - top) + 2 * LABEL_PADDING
    draw.rectangle((0, edge - banner_height, edge, edge), fill=(0, 0, 0, 160))
    draw.text(
        (LABEL_PADDING, edge - banner_height + LABEL_PADDING - top),
        BANNER_TEXT,
        fill=(255, 255, 255, 255),
        font=font,
    )
    # grid lines between tiles
    step = edge // GRID_COLUMNS
    for offset in range(step, edge, step):
        draw.line((offset, 0, offset, edge), fill=(255, 255, 255, 200), width=2)
        draw.line((0, offset, edge, offset), fill=(255, 255, 255, 200), width=2)
    return overlay
