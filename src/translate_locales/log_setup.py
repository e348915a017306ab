"""
Logging setup for translate-locales.

Library modules log through ``logging.getLogger(__name__)`` and attach
``extra={"stage": ..., "context": {...}}`` to their records. This module wires
those records to the console (rich), a rotating log file and, optionally, the
document store's processing log.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from translate_locales.config import LoggingConfig
    from translate_locales.store.duckdb_store import DuckDBDocumentStore

PACKAGE_LOGGER = "translate_locales"


class ProcessingLogHandler(logging.Handler):
    """Persists log records into the store's ``processing_log`` table."""

    def __init__(self, store: DuckDBDocumentStore, level: int = logging.INFO):
        super().__init__(level)
        self.store = store

    def emit(self, record: logging.LogRecord) -> None:
        context = getattr(record, "context", None) or {}
        stage = getattr(record, "stage", None) or record.name.rsplit(".", 1)[-1]
        document_id = context.get("document_id")
        try:
            self.store.log(
                level=record.levelname,
                stage=stage,
                message=record.getMessage(),
                document_id=str(document_id) if document_id is not None else None,
                context=context or None,
            )
        except Exception:
            self.handleError(record)


def setup_logging(
    config: LoggingConfig,
    store: DuckDBDocumentStore | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: Logging section of the settings.
        store: Store whose processing log should receive records.
        console: Rich console for the console handler.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.console:
        rich_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(rich_handler)

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    if store is not None:
        logger.addHandler(ProcessingLogHandler(store))

    logger.propagate = False
    return logger
