"""Command-line entry point: ``python -m duckgate``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from duckgate.config.loader import get_config_path, load_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="duckgate",
        description="DuckDuckGo search MCP server with human-solved CAPTCHAs.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config JSON (default: {get_config_path()})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (DEBUG, INFO, WARNING, ...)",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    # stdout carries the MCP protocol
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)

    from duckgate.protocol.mcp_server import run_stdio

    try:
        asyncio.run(run_stdio(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
