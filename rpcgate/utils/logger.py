"""structlog setup for rpcgate.

rpcgate is a library, so it configures structlog once at import from the
environment and leaves everything else to the host:

  RPCGATE_LOG_LEVEL   DEBUG / INFO / WARNING / ERROR (default INFO)
  RPCGATE_DEBUG       "true" forces DEBUG when no level is given
  RPCGATE_JSON_LOGS   "false" switches to the console renderer

A host that owns logging calls configure_logging() itself afterwards.
While a connection event is handled, every log line carries connection_id.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping, Optional

import structlog
from structlog.types import EventDict, Processor

connection_id_var: ContextVar[Optional[str]] = ContextVar("rpcgate_connection_id", default=None)


def add_connection_id(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    connection_id = connection_id_var.get()
    if connection_id:
        event_dict["connection_id"] = connection_id
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Install the rpcgate processor chain.

    Raises:
        ValueError: log_level is not a stdlib level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level {log_level!r}")

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_connection_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_env(environ: Optional[Mapping[str, str]] = None) -> None:
    env = os.environ if environ is None else environ
    debug = env.get("RPCGATE_DEBUG", "false").lower() == "true"
    log_level = env.get("RPCGATE_LOG_LEVEL") or ("DEBUG" if debug else "INFO")
    json_output = env.get("RPCGATE_JSON_LOGS", "true").lower() == "true"
    configure_logging(log_level=log_level, json_output=json_output)


def get_logger(name: str = "rpcgate") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def log_duration(
    logger: structlog.stdlib.BoundLogger,
    event: str,
    warn_after_ms: float = 50.0,
    **fields: object,
) -> Iterator[None]:
    """Log how long the block took: DEBUG normally, WARNING when slow.

    Exceptions propagate unchanged; the caller decides how to log them.
    """
    started = time.perf_counter()
    yield
    duration_ms = round((time.perf_counter() - started) * 1000, 3)
    log = logger.warning if duration_ms > warn_after_ms else logger.debug
    log(event, duration_ms=duration_ms, **fields)


def set_connection_id(connection_id: Optional[str]) -> None:
    connection_id_var.set(connection_id)


def clear_connection_id() -> None:
    connection_id_var.set(None)


configure_logging_from_env()
