"""Structured logging for the offer service (structlog over stdlib logging).

Development gets colored console lines, every other environment gets one
JSON object per line. Two things are specific to this service:

    - ``offer_context`` binds ``offer_id`` and ``actor_id`` for the length of
      one transition, so store-level conflict logs carry them too.
    - ``stringify_domain_values`` renders UUIDs, Decimals and the status
      enums as plain strings, so callers can log domain objects directly.

Usage:
    from farmgate_offers.logging_config import get_logger, offer_context
    logger = get_logger(__name__)
    with offer_context(offer.id, actor_id):
        logger.info("offer.transitioned", new_status=OfferStatus.ACCEPTED)
"""

from __future__ import annotations

import enum
import logging
import sys
import uuid
from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping

# Chatty at INFO; we only want their warnings
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def stringify_domain_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor: turn UUID, Decimal and enum values into their string form."""
    for key, value in event_dict.items():
        if isinstance(value, enum.Enum):
            event_dict[key] = value.value
        elif isinstance(value, uuid.UUID | Decimal):
            event_dict[key] = str(value)
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Root level name (DEBUG, INFO, ...). Unknown names mean DEBUG.
        json_logs: JSON lines when True, colored console otherwise.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        stringify_domain_values,
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def offer_context(offer_id: uuid.UUID, actor_id: str | None = None) -> Iterator[None]:
    """Bind the offer (and acting user) to every log line inside the block."""
    context: dict[str, Any] = {"offer_id": str(offer_id)}
    if actor_id is not None:
        context["actor_id"] = actor_id
    with structlog.contextvars.bound_contextvars(**context):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
