"""scriptruntime.logging

Structured logging seam for the engine.

Every module obtains its logger through `get_logger(__name__)` and logs
key/value events (`logger.info("rpc_call", node_type=..., request_id=...)`).
Hosts call `configure_logging()` once at startup; without it structlog's own
defaults apply (console rendering to stdout).
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, Union

import structlog

SCRIPT_LOGGER_NAME = "scriptruntime.script"

_configured = False


def configure_logging(level: Union[int, str] = "INFO", *, json: bool = False, force: bool = False) -> None:
    """Route structlog through stdlib logging with a timestamped renderer.

    Safe to call more than once; later calls are ignored unless `force=True`.
    """
    global _configured
    if _configured and not force:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=force)
    logging.getLogger("scriptruntime").setLevel(level)

    renderer: Any = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> Any:
    return structlog.get_logger(name or "scriptruntime")
