"""Main entry point for the Raindrop.io MCP server."""
import asyncio
import logging
import sys

from raindrop_mcp.config import Config
from raindrop_mcp.errors import AuthError
from raindrop_mcp.server import main

logger = logging.getLogger("raindrop_mcp")


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run() -> None:
    config = Config.from_env()
    configure_logging(config.log_level)
    try:
        asyncio.run(main(config))
    except AuthError as e:
        logger.error("%s", e)
        raise SystemExit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
