from __future__ import annotations

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def isolated_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)
