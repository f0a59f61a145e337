import logging
import sys
from typing import Optional, TextIO

from meeta_mcp_proxy.config import Settings

PACKAGE_LOGGER = "meeta_mcp_proxy"
LOG_FORMAT = "[MEETA-MCP] %(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Diagnostics are written to stderr, and only when DEBUG is enabled.
    stdout belongs to the protocol and never receives log records.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    if not settings.debug:
        logger.handlers.clear()
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return logger

    logger.handlers.clear()
    logger.propagate = True
    logging.basicConfig(
        stream=stream or sys.stderr,
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        force=True,
    )
    logger.setLevel(settings.log_level.upper())
    return logger
