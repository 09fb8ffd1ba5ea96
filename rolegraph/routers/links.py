# -*- coding: utf-8 -*-
"""Location: ./rolegraph/routers/links.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Link check router.

Exposes ``RoleManager.has_link`` to remote policy engines. Errors fail closed:
an unsupported domain is a client error, and a directory failure is
reported as a bad gateway instead of a default answer.

Examples:
    >>> from fastapi import APIRouter
    >>> isinstance(links_router, APIRouter)
    True
"""

# Standard
import logging

# Third-Party
from fastapi import APIRouter, Depends, HTTPException, Request, status

# First-Party
from rolegraph.schemas import LinkCheckRequest, LinkCheckResponse
from rolegraph.services.directory_client import DirectoryQueryError
from rolegraph.services.role_manager import RoleManager, UnsupportedDomainError

logger = logging.getLogger(__name__)

links_router = APIRouter(prefix="/links", tags=["Links"])


def get_role_manager(request: Request) -> RoleManager:
    """Return the role manager created at application startup.

    Args:
        request: Incoming request

    Returns:
        RoleManager: The application's role manager

    Raises:
        HTTPException: If the application has no role manager yet
    """
    role_manager = getattr(request.app.state, "role_manager", None)
    if role_manager is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Role manager not initialized")
    return role_manager


@links_router.post("/check", response_model=LinkCheckResponse)
async def check_link(payload: LinkCheckRequest, role_manager: RoleManager = Depends(get_role_manager)) -> LinkCheckResponse:
    """Check whether a principal inherits a role.

    Args:
        payload: Principal, role and optional domain
        role_manager: Role manager dependency

    Returns:
        LinkCheckResponse: The link decision

    Raises:
        HTTPException: 400 for an unsupported domain, 502 when the entity
            directory fails
    """
    domain = (payload.domain,) if payload.domain else ()
    try:
        linked = await role_manager.has_link(payload.principal, payload.role, *domain)
    except UnsupportedDomainError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DirectoryQueryError as e:
        logger.error(f"Link check {payload.principal} -> {payload.role} failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Entity directory query failed")

    return LinkCheckResponse(principal=payload.principal, role=payload.role, linked=linked)
