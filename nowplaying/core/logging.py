"""
Logging utilities for the callback server, the bot gateway and background tasks.

Provides a consistent logging format and configuration.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO, which would leak the bot token in URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
