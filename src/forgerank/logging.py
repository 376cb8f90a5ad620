"\"\"\"Structured JSON logging and per-request log context.\"\"\""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, TextIO

import structlog


def configure_logging(level: str = "INFO", *, stream: TextIO | None = None) -> None:
    """Render events as one JSON object per line on ``stream`` (stderr by default).

    Result files and CLI summaries own stdout, so log lines never go there.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    target = stream or sys.stderr

    logging.basicConfig(level=log_level, format="%(message)s", stream=target)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=target),
        cache_logger_on_first_use=True,
    )


@contextmanager
def request_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block.

    Tasks created inside the block copy the context, so per-candidate work
    scheduled with asyncio carries the same keys.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield
