"""Logging for drorg.

Events go to stderr through structlog so they never mix with listings on
stdout. Routine runs only show warnings; ``--verbose`` or the
``DRORG_LOG_LEVEL`` environment variable turn on the sync chatter.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import Processor

LEVEL_ENV = "DRORG_LOG_LEVEL"


class _StderrProxy:
    """Writes to whatever ``sys.stderr`` is at the time of the call.

    click's test runner swaps ``sys.stderr`` per invocation.
    """

    def write(self, s: str) -> int:
        return sys.stderr.write(s)

    def flush(self) -> None:
        sys.stderr.flush()

    def isatty(self) -> bool:
        return sys.stderr.isatty()


_stderr_proxy: TextIO = _StderrProxy()  # type: ignore[assignment]


def resolve_level(verbose: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    name = os.environ.get(LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else None
    # getLevelName hands back a string for names it does not know.
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(verbose: bool = False, json_logs: bool = False) -> None:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=_stderr_proxy.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(verbose)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_stderr_proxy),
        # Each CLI invocation may reconfigure, so loggers must not pin the old setup.
        cache_logger_on_first_use=False,
    )


@contextmanager
def account_context(email: str) -> Iterator[None]:
    """Tag every event logged inside the block with ``account=email``."""
    with structlog.contextvars.bound_contextvars(account=email):
        yield


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["LEVEL_ENV", "account_context", "configure_logging", "get_logger", "resolve_level"]
