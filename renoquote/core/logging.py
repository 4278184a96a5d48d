"""Structured logging setup shared by the web app and the CLI.

structlog renders every record, including records from stdlib loggers
(``logging.getLogger(__name__)`` in the services), so request ids bound in
the middleware show up on service log lines too.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from renoquote.config import AppConfig, get_config

QUIET_LOGGERS = ("uvicorn.access", "aiosqlite", "asyncio")


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        # Korean names and messages stay readable in the log stream
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def configure_logging(config: AppConfig | None = None) -> None:
    """Configure structlog and the stdlib root logger from ``config``.

    ``log_level`` sets the root level; ``log_format`` picks JSON lines or the
    console renderer. SQL statements are logged only when the database is
    configured with echo enabled.
    """
    config = config or get_config()
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*pre_chain, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _renderer(config.log_format),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    echo = config.db is not None and config.db.echo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if echo else logging.WARNING)
