"""Structured JSON logging.

Every log record is emitted as a single JSON line to stderr, so stdout stays
free for the selected domain that install scripts capture.  Lines can be
filtered with ``jq``.

What a probe pass leaves behind:

- ``realityprobe.candidates``: where the list came from and how many entries
  were loaded or rejected; every malformed entry gets its own warning from
  ``realityprobe.hostname``.
- ``realityprobe.prober``: one line when the pass starts (port, timeout,
  concurrency), one line per candidate with ``domain``, ``position``,
  ``status`` and, on success, ``latency_ms``, then a summary with
  ``duration_ms``, ``ok``, ``failed`` and ``best``.
- ``realityprobe.session``: the operator's final pick (``domain``,
  ``selection_source``, ``verified``) or why a pass produced nothing.

``run_pass`` sets ``pass_ctx`` so every record written during a pass carries
``pass_id`` and ``attempt``; a retry shows up as a new ``pass_id``.

Usage::

    from realityprobe.logging import setup_logging, pass_ctx

    setup_logging()                                  # call once at startup
    pass_ctx.set({"pass_id": …, "attempt": 2})       # set per-pass fields
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime

# Pass-scoped context: inherited by every probe task spawned during the pass.
pass_ctx: ContextVar[dict] = ContextVar("pass_ctx")

_SEVERITY_MAP = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "thread",
        "threadName",
        "process",
        "processName",
        "msecs",
        "message",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(UTC)
        entry: dict = {
            "timestamp": now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
            "severity": _SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "logger": record.name,
            "message": record.getMessage(),
        }

        entry.update(pass_ctx.get({}))

        # Merge extra fields passed via logger.info("…", extra={…})
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_ATTRS:
                continue
            if key not in entry:
                entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str | None = None) -> None:
    """Configure root logger with JSON formatter on stderr."""
    from realityprobe.config import settings

    name = (level or settings.log_level).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, name, logging.INFO))

    # Remove any existing handlers (e.g. from basicConfig)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
