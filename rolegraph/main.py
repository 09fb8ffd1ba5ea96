# -*- coding: utf-8 -*-
"""Location: ./rolegraph/main.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

RoleGraph application.

This module wires the link check API: logging, the catalog directory client,
the role manager and the request ID middleware. Start it with
``uvicorn rolegraph.main:app``.

Examples:
    >>> from rolegraph.main import app
    >>> app.title
    'RoleGraph'
    >>> any(getattr(r, "path", None) == "/links/check" for r in app.routes)
    True
"""

# Standard
from contextlib import asynccontextmanager
from typing import AsyncIterator

# Third-Party
from fastapi import FastAPI, status

# First-Party
from rolegraph import __version__
from rolegraph.config import settings
from rolegraph.middleware.correlation_id import CorrelationIDMiddleware
from rolegraph.routers.links import links_router
from rolegraph.schemas import LogLevelRequest
from rolegraph.services.directory_client import CatalogDirectoryClient
from rolegraph.services.logging_service import LoggingService
from rolegraph.services.role_manager import RoleManager

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Manage the application's startup and shutdown lifecycle.

    Args:
        _app (FastAPI): FastAPI app

    Yields:
        None
    """
    await logging_service.initialize()
    logger.info(f"Starting {settings.app_name} against catalog {settings.catalog_base_url}")
    settings.log_summary()

    directory = CatalogDirectoryClient()
    _app.state.role_manager = RoleManager(directory, logger=logging_service.get_logger("rolegraph.services.role_manager"))
    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.app_name}")
        await directory.aclose()
        _app.state.role_manager = None
        await logging_service.shutdown()


app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
app.add_middleware(CorrelationIDMiddleware)
app.include_router(links_router)


@app.get("/health")
async def healthcheck():
    """
    Report process liveness.

    Returns:
        A dictionary with the health status.
    """
    return {"status": "healthy"}


@app.post("/logging/setLevel", status_code=status.HTTP_204_NO_CONTENT)
async def set_log_level(payload: LogLevelRequest) -> None:
    """
    Update the log level at runtime, e.g. to trace hierarchy traversal.

    Args:
        payload: The new level
    """
    logger.info(f"Setting log level to {payload.level}")
    await logging_service.set_level(payload.level)
