"""Logging configuration for processes that embed *notes_ai*.

Library modules only call ``logging.getLogger(__name__)``; the hosting
process calls `configure_logging` once at startup.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info and record.exc_info[1]:
            entry['exception'] = self.formatException(record.exc_info)

        extra = getattr(record, '_extra', None)
        if extra:
            entry['extra'] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(level: str | int | None = None, *, debug: bool = False, json_output: bool = False) -> None:
    """Configure the ``notes_ai`` logger tree.

    *level* defaults to ``LOG_LEVEL`` (INFO); *debug* forces DEBUG, which is
    how ``GEMINI_DEBUG`` takes effect.
    """
    if debug:
        resolved: str | int = logging.DEBUG
    elif level is not None:
        resolved = level
    else:
        resolved = os.environ.get('LOG_LEVEL', 'INFO').upper()

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))

    package_logger = logging.getLogger('notes_ai')
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(resolved)
    package_logger.propagate = False

    # Silence noisy third-party loggers
    for noisy in ('httpx', 'httpcore', 'openai'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
