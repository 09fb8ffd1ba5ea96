# -*- coding: utf-8 -*-
"""Location: ./rolegraph/schemas.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Request and response schemas of the link check API.

Examples:
    >>> req = LinkCheckRequest(principal=" user:default/mike ", role="group:default/team-a")
    >>> req.principal
    'user:default/mike'
    >>> req.domain is None
    True
"""

# Standard
from typing import Any, Literal, Optional

# Third-Party
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LinkCheckRequest(BaseModel):
    """Body of a link check."""

    model_config = ConfigDict(str_strip_whitespace=True)

    principal: str = Field(..., min_length=1, description="Entity ref of the principal, e.g. user:default/mike")
    role: str = Field(..., min_length=1, description="Entity ref of the role group, e.g. group:default/team-a")
    domain: Optional[str] = Field(default=None, description="Unsupported; any non-empty value is rejected")


class LinkCheckResponse(BaseModel):
    """Result of a link check."""

    principal: str
    role: str
    linked: bool


class LogLevelRequest(BaseModel):
    """Body of a runtime log level change."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: Any) -> Any:
        """Accept level names in any letter case.

        Args:
            v: Raw level value

        Returns:
            The upper-cased level when given a string
        """
        return v.upper() if isinstance(v, str) else v
