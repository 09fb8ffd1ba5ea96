# -*- coding: utf-8 -*-
"""Location: ./rolegraph/utils/correlation_id.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Request ID utilities.

Every link check runs inside a request ID scope. HTTP checks reuse the ID bound
by the middleware; in-process checks get a fresh one. Cycle warnings and
traversal traces logged during the check carry that ID, so a warning can be
matched to the permission check that triggered it.

Examples:
    >>> with correlation_scope("check-1") as request_id:
    ...     request_id, get_correlation_id()
    ('check-1', 'check-1')
    >>> get_correlation_id() is None
    True
"""

# Standard
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping, Optional
import uuid

_correlation_id_context: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Get the request ID of the current context.

    Returns:
        Optional[str]: The request ID if one is bound, None otherwise
    """
    return _correlation_id_context.get()


def generate_correlation_id() -> str:
    """Generate a new request ID (UUID4 hex format).

    Returns:
        str: A new UUID in hex format (32 characters, no hyphens)

    Examples:
        >>> len(generate_correlation_id())
        32
    """
    return uuid.uuid4().hex


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a request ID for the duration of a block.

    The previous binding is restored on exit, so scopes nest: a link check
    started inside an HTTP request keeps the request's ID.

    Args:
        correlation_id: ID to bind; a new one is generated when empty

    Yields:
        str: The bound request ID

    Examples:
        >>> with correlation_scope("outer"):
        ...     with correlation_scope(get_correlation_id()) as inner:
        ...         inner
        'outer'
        >>> with correlation_scope() as generated:
        ...     len(generated)
        32
    """
    correlation_id = correlation_id or generate_correlation_id()
    token = _correlation_id_context.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_context.reset(token)


def extract_correlation_id_from_headers(headers: Mapping[str, str], header_name: str = "X-Correlation-ID") -> Optional[str]:
    """Extract the request ID from HTTP headers, case-insensitively.

    Args:
        headers: HTTP headers
        header_name: Name of the request ID header

    Returns:
        Optional[str]: The stripped header value, or None when absent or blank

    Examples:
        >>> extract_correlation_id_from_headers({"x-correlation-id": " abc-123 "})
        'abc-123'
        >>> extract_correlation_id_from_headers({"X-Correlation-ID": "   "}) is None
        True
    """
    wanted = header_name.lower()
    value = next((v for k, v in headers.items() if k.lower() == wanted), "")
    return value.strip() or None
