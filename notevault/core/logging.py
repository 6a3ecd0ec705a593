"""
Logging for NoteVault.

structlog is configured once per process by `setup_logging()`; every module
then takes a logger from `get_logger(__name__)`. Levels, the renderer and the
optional JSONL file come from config/settings/logging.yaml.

Records carry an explicit `source` naming the part of the client that emitted
them (cli, catalog, bookmarks, upload, requests, auth, backend), so the JSONL
file can be filtered per feature:

    logger = get_logger(__name__)
    logger.info("Notes loaded", count=12, source="catalog")
    log_with_source(logger, "bookmarks", "info", "Toggle committed", note_id="42")
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import Processor

from notevault.core.config import find_project_root, get_app_config
from notevault.core.config_schema import LoggingSchema

VALID_SOURCES = frozenset({
    "cli",
    "catalog",
    "bookmarks",
    "upload",
    "requests",
    "auth",
    "backend",
    "internal",
    "unknown",
})


def _load_logging_config() -> LoggingSchema:
    return get_app_config().logging


def setup_logging(level: str | None = None, format_type: str | None = None) -> None:
    """
    Configure structlog and the root handlers.

    Args:
        level: Overrides the configured level (the CLI's --verbose/--debug)
        format_type: 'console' or 'json'; overrides the configured format
    """
    config = _load_logging_config()
    log_level = getattr(logging, (level or config.level).upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    )
    if (format_type or config.format) == "console":
        stream_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            foreign_pre_chain=shared_processors,
        )
    else:
        stream_formatter = json_formatter

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.handlers.console.enabled:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(stream_formatter)
        root_logger.addHandler(stream_handler)

    file_config = config.handlers.file
    if file_config.enabled:
        log_path = find_project_root() / file_config.path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=file_config.max_bytes,
            backupCount=file_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(json_formatter)
        root_logger.addHandler(file_handler)

    # Request lines from the HTTP stack would drown the client's own records.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log `message` tagged with `source`.

    Sources outside VALID_SOURCES are recorded as 'unknown'.

    Raises:
        AttributeError: If level is not a logger method
    """
    if source not in VALID_SOURCES:
        source = "unknown"
    getattr(logger, level.lower())(message, source=source, **kwargs)
