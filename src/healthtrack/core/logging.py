"""Structured logging for HealthTrack.

Uses structlog's ProcessorFormatter so every existing
``logging.getLogger(__name__)`` call site is rendered by structlog without
changes at the call site.

Two output formats:
- ``text``: Colored, human-readable console output (dev default)
- ``json``: Machine-parseable JSON lines (production / log aggregation)

The authenticated user id of the current request and the OTel trace context
are injected automatically by processors reading a ContextVar and the
current span.

Log directory layout (when ``log_root`` is set)::

    logs/
      app.log        # Application logs (JSON)
      http.log       # uvicorn / HTTP client transport logs (JSON)
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token
from pathlib import Path

import structlog
from opentelemetry import trace

# ---------------------------------------------------------------------------
# Request user context (asyncio-safe via ContextVar)
# ---------------------------------------------------------------------------

_user_context: ContextVar[int | None] = ContextVar("user_id", default=None)


def set_user_context(user_id: int | None) -> Token:
    """Bind the authenticated user id to the current async context."""
    return _user_context.set(user_id)


def reset_user_context(token: Token) -> None:
    _user_context.reset(token)


def get_user_context() -> int | None:
    return _user_context.get()


# ---------------------------------------------------------------------------
# Structlog processors
# ---------------------------------------------------------------------------


def add_user_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``user_id`` from the ContextVar into the event dict."""
    event_dict["user_id"] = _user_context.get()
    return event_dict


def add_otel_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``trace_id`` and ``span_id`` from the current OTel span."""
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx and ctx.trace_id:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    else:
        event_dict["trace_id"] = "0" * 32
        event_dict["span_id"] = "0" * 16
    return event_dict


# ---------------------------------------------------------------------------
# Noise suppression
# ---------------------------------------------------------------------------

_NOISE_LOGGERS = (
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
)

_APP_LOG_FILE = "app.log"
_HTTP_LOG_FILE = "http.log"


def _build_processors(
    time_fmt: str,
) -> list[structlog.types.Processor]:
    """Build the pre-chain processor list with the given timestamp format."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt),
        add_user_context,
        add_otel_context,
        structlog.stdlib.ExtraAdder(),
    ]


def _make_file_handler(path: Path, processors: list) -> logging.FileHandler:
    """Create a JSON file handler at *path*."""
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
        foreign_pre_chain=processors,
    )
    handler = logging.FileHandler(path)
    handler.setFormatter(formatter)
    handler.setLevel(logging.DEBUG)
    return handler


# ---------------------------------------------------------------------------
# configure_logging()
# ---------------------------------------------------------------------------


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_root: Path | str | None = None,
) -> None:
    """Configure structured logging for the process.

    Parameters
    ----------
    level:
        Root log level (e.g. "DEBUG", "INFO", "WARNING").
    fmt:
        Output format: ``"text"`` for colored console, ``"json"`` for JSON lines.
    log_root:
        Directory for JSON log files.  When set, writes ``app.log`` for
        application records and ``http.log`` for transport noise.
    """
    if fmt == "json":
        console_processors = _build_processors(time_fmt="iso")
        renderer = structlog.processors.JSONRenderer()
    else:
        console_processors = _build_processors(time_fmt="%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=console_processors,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    # Remove existing handlers to avoid duplicate output on reconfiguration
    root.handlers.clear()
    root.addHandler(console_handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if log_root is not None:
        log_root = Path(log_root)
        log_root.mkdir(parents=True, exist_ok=True)
        file_processors = _build_processors(time_fmt="iso")

        root.addHandler(_make_file_handler(log_root / _APP_LOG_FILE, file_processors))

        http_handler = _make_file_handler(log_root / _HTTP_LOG_FILE, file_processors)
        for name in _NOISE_LOGGERS:
            logging.getLogger(name).addHandler(http_handler)

    # Configure structlog itself (for direct structlog.get_logger() usage)
    structlog.configure(
        processors=[
            *console_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
