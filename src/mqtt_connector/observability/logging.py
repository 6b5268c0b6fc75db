"""Structured logging configuration.

Connector modules log through stdlib ``logging``. Security-relevant TLS
decisions go to the structlog audit logger (:data:`AUDIT_LOGGER`) so they
stay machine-readable with the JSON renderer.
"""

import logging
import sys
from typing import Literal

import structlog

AUDIT_LOGGER = "mqtt_connector.audit"


def _renderer(format_type: Literal["json", "console"]) -> list[structlog.typing.Processor]:
    if format_type == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(
    level: str = "INFO",
    format_type: Literal["json", "console"] = "console",
) -> None:
    """Configure structlog and stdlib logging for the connector.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_type: 'json' for log shippers, 'console' for terminals.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(format_type),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # paho logs every packet at DEBUG
    logging.getLogger("paho.mqtt").setLevel(logging.WARNING)


def bind_connection(host: str, port: int, transport: str) -> None:
    """Attach the broker endpoint to every structlog event in this context."""
    structlog.contextvars.bind_contextvars(broker=f"{host}:{port}", transport=transport)


def get_logger(name: str = AUDIT_LOGGER) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, the TLS audit logger by default."""
    return structlog.get_logger(name)
