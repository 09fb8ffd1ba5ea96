# -*- coding: utf-8 -*-
"""Location: ./rolegraph/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

RoleGraph Configuration.
This module defines configuration settings for the role resolver using Pydantic.
It loads configuration from environment variables with sensible defaults.

Environment variables:
- APP_NAME: Service name (default: "RoleGraph")
- CATALOG_BASE_URL: Catalog API base URL (default: "http://localhost:7007/api/catalog")
- CATALOG_TOKEN: Bearer token sent to the catalog (default: unset)
- CATALOG_TIMEOUT: Catalog request timeout in seconds (default: 30)
- CATALOG_MAX_RETRIES: Connection retries per catalog request (default: 3)
- SKIP_SSL_VERIFY: Disable TLS verification towards the catalog (default: False)
- PARENT_QUERY_BATCH_SIZE: Max group refs per parent lookup (default: 50)
- LOG_LEVEL: Logging level (default: "INFO")
- LOG_FORMAT: "json" or "text" (default: "json")
- CORRELATION_ID_HEADER: Request ID header name (default: "X-Correlation-ID")

Examples:
    >>> from rolegraph.config import Settings
    >>> s = Settings(log_level='debug')
    >>> s.log_level
    'DEBUG'
    >>> s.parent_query_batch_size
    50
    >>> try:
    ...     Settings(log_level='verbose')
    ... except ValueError:
    ...     print('error')
    error
"""

# Standard
from functools import lru_cache
import json
import logging
import sys
from typing import Any, Dict, Literal, Optional

# Third-Party
from pydantic import Field, field_validator, PositiveInt, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    RoleGraph configuration settings.

    Examples:
        >>> from rolegraph.config import Settings
        >>> s = Settings(catalog_base_url='http://catalog:7007/api/catalog/')
        >>> s.catalog_base_url
        'http://catalog:7007/api/catalog'
        >>> s.catalog_token is None
        True
        >>> s.log_format
        'json'
    """

    # Basic Settings
    app_name: str = "RoleGraph"

    # Catalog (entity directory)
    catalog_base_url: str = Field(default="http://localhost:7007/api/catalog", description="Base URL of the catalog REST API")
    catalog_token: Optional[SecretStr] = Field(default=None, description="Bearer token for catalog requests")
    catalog_timeout: float = Field(default=30.0, gt=0, description="Catalog request timeout in seconds")
    catalog_max_retries: int = Field(default=3, ge=0, description="Connection retries per catalog request")
    skip_ssl_verify: bool = False

    # Hierarchy resolution
    parent_query_batch_size: PositiveInt = Field(default=50, le=1000, description="Maximum number of group refs covered by one parent lookup")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text"] = "json"  # json or text

    # Request tracing
    correlation_id_header: str = Field(default="X-Correlation-ID", description="Header carrying the request ID")
    correlation_id_preserve: bool = Field(default=True, description="Reuse client-provided request IDs")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Normalize and validate the log level value.

        Args:
            v (str): The log level string provided via configuration or environment.

        Returns:
            str: The validated and normalized (uppercase) log level.

        Raises:
            ValueError: If the provided value is not one of
                {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}.
        """
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_up = v.upper()
        if v_up not in allowed:
            raise ValueError(f"Invalid log_level: {v}")
        return v_up

    @field_validator("catalog_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so request paths join cleanly.

        Args:
            v: Configured base URL

        Returns:
            str: Base URL without trailing slash
        """
        return v.rstrip("/")

    def log_summary(self) -> None:
        """
        Log a summary of the settings with secrets excluded.
        """
        summary = self.model_dump(exclude={"catalog_token"})
        logger.info(f"Application settings summary: {summary}")


@lru_cache()
def get_settings() -> Settings:
    """
    Return a cached instance of the application settings.

    Returns:
        Settings: The application settings instance.

    Examples:
        >>> settings = get_settings()
        >>> settings is get_settings()
        True
    """
    return Settings()


def generate_settings_schema() -> Dict[str, Any]:
    """
    Return the JSON Schema describing the Settings model.

    Returns:
        dict: A dictionary representing the JSON Schema of the Settings model.
    """
    return Settings.model_json_schema(mode="validation")


settings = get_settings()

if __name__ == "__main__":
    if "--schema" in sys.argv:
        schema = generate_settings_schema()
        print(json.dumps(schema, indent=2))
        sys.exit(0)
    settings.log_summary()
