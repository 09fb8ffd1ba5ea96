# -*- coding: utf-8 -*-
"""Location: ./rolegraph/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Logging Service Implementation.
This module configures process logging for the role resolver: a single
stdout/stderr handler emitting either plain text or JSON records. JSON records
carry the request ID of the link check being served.
"""

# Standard
from datetime import datetime, timezone
import logging
import os
import socket
from typing import Dict, Optional

# Third-Party
from pythonjsonlogger import json as jsonlogger

# First-Party
from rolegraph.config import settings
from rolegraph.utils.correlation_id import get_correlation_id

# Create a text formatter
text_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


class CorrelationIdJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that includes the request ID and host context."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        """Add custom fields to the log record.

        Args:
            log_record: The dictionary that will be logged as JSON
            record: The original LogRecord
            message_dict: Additional message fields
        """
        super().add_fields(log_record, record, message_dict)

        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_record["@timestamp"] = dt.isoformat().replace("+00:00", "Z")
        log_record["hostname"] = socket.gethostname()
        log_record["process_id"] = os.getpid()

        correlation_id = get_correlation_id()
        if correlation_id:
            log_record["request_id"] = correlation_id


json_formatter = CorrelationIdJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")


class LoggingService:
    """Process logging setup.

    Examples:
        >>> import logging
        >>> service = LoggingService(level="warning", log_format="text")
        >>> service.level
        'WARNING'
        >>> isinstance(service.get_logger("rolegraph.test"), logging.Logger)
        True
    """

    def __init__(self, level: Optional[str] = None, log_format: Optional[str] = None) -> None:
        """Initialize logging service.

        Args:
            level: Log level name, defaults to ``settings.log_level``
            log_format: ``json`` or ``text``, defaults to ``settings.log_format``
        """
        self._level = (level or settings.log_level).upper()
        self._format = log_format or settings.log_format
        self._loggers: Dict[str, logging.Logger] = {}
        self._handler: Optional[logging.Handler] = None

    @property
    def level(self) -> str:
        """Current log level name.

        Returns:
            str: Upper-case level name
        """
        return self._level

    async def initialize(self) -> None:
        """Install the stream handler on the root logger."""
        root_logger = logging.getLogger()
        self._loggers[""] = root_logger

        # Clear existing handlers to avoid duplicates
        root_logger.handlers.clear()

        self._handler = logging.StreamHandler()
        self._handler.setFormatter(json_formatter if self._format == "json" else text_formatter)
        root_logger.addHandler(self._handler)
        root_logger.setLevel(getattr(logging, self._level))

        logging.info(f"Logging service initialized ({self._format}, level {self._level})")

    async def shutdown(self) -> None:
        """Remove the handler installed by :meth:`initialize`."""
        if self._handler:
            logging.getLogger().removeHandler(self._handler)
            self._handler = None
        logging.info("Logging service shutdown")

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create logger instance.

        Args:
            name: Logger name

        Returns:
            Logger instance
        """
        if name not in self._loggers:
            logger = logging.getLogger(name)

            # Child loggers inherit the root handler
            logger.propagate = True
            logger.setLevel(getattr(logging, self._level))

            self._loggers[name] = logger

        return self._loggers[name]

    async def set_level(self, level: str) -> None:
        """Set the minimum log level for every logger handed out so far.

        Args:
            level: New log level name

        Raises:
            ValueError: If ``level`` is not a known level name

        Examples:
            >>> import asyncio, logging
            >>> service = LoggingService(level="INFO")
            >>> log = service.get_logger("rolegraph.level_test")
            >>> asyncio.run(service.set_level("debug"))
            >>> log.level == logging.DEBUG
            True
        """
        level_up = level.upper()
        if level_up not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {level}")
        self._level = level_up
        for logger in self._loggers.values():
            logger.setLevel(getattr(logging, level_up))
