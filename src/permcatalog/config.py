"""Configuration contract for permcatalog.

Pydantic-validated settings shared by the tree builder, the association
resolver and the runtime evaluator. Applications embed this model in their
own settings or load it from the environment with
:func:`load_config_from_env`. Direct os.environ/os.getenv usage elsewhere
in the library is not allowed.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SiblingOrder(str, Enum):
    """How children of one menu node are ordered.

    - CATALOG: the order the records appear in the catalog payload
    - NAME: alphabetical by display name, catalog order breaks ties
    """

    CATALOG = "catalog"
    NAME = "name"


class PermissionConfig(BaseModel):
    """Settings for building, linking and evaluating permissions.

    Environment variables (see :func:`load_config_from_env`):
        LOG_LEVEL: logging level
        LOG_JSON: JSON log output (true/false)
        PERMISSION_SIBLING_ORDER: catalog | name
        PERMISSION_HEURISTIC_MATCHING: enable segment scoring for API association
        PERMISSION_RESOURCE_FALLBACK: enable resource-string API association
        PERMISSION_ALLOW_MALFORMED: allow access on malformed permission codes
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Tree building
    sibling_order: SiblingOrder = Field(
        default=SiblingOrder.CATALOG,
        description="Ordering of sibling menu nodes",
    )

    # Association resolving
    heuristic_matching: bool = Field(
        default=True,
        description="Score menu candidates by shared code segments when no path prefix matches",
    )
    resource_fallback: bool = Field(
        default=True,
        description="Match APIs to menus through the API resource string as a last resort",
    )

    # Runtime evaluation
    allow_malformed_codes: bool = Field(
        default=True,
        description="Allow access when a queried permission code has fewer than two segments",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @field_validator("sibling_order", mode="before")
    @classmethod
    def validate_sibling_order(cls, v: str | SiblingOrder) -> SiblingOrder:
        if isinstance(v, SiblingOrder):
            return v
        if isinstance(v, str):
            try:
                return SiblingOrder(v.lower())
            except ValueError:
                raise ValueError(f"Invalid sibling order: {v}. Must be one of {[e.value for e in SiblingOrder]}")
        raise ValueError(f"Sibling order must be string or SiblingOrder enum, got {type(v)}")

    model_config = {
        "extra": "forbid",
    }


_TRUTHY = ("true", "1", "yes", "on")


def load_config_from_env() -> PermissionConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - PERMISSION_SIBLING_ORDER: catalog | name (default: catalog)
    - PERMISSION_HEURISTIC_MATCHING: true/false (default: true)
    - PERMISSION_RESOURCE_FALLBACK: true/false (default: true)
    - PERMISSION_ALLOW_MALFORMED: true/false (default: true)

    Returns:
        PermissionConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: If a variable holds an invalid value.
    """
    import os

    try:
        return PermissionConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
            sibling_order=os.getenv("PERMISSION_SIBLING_ORDER", "catalog"),
            heuristic_matching=os.getenv("PERMISSION_HEURISTIC_MATCHING", "true").lower() in _TRUTHY,
            resource_fallback=os.getenv("PERMISSION_RESOURCE_FALLBACK", "true").lower() in _TRUTHY,
            allow_malformed_codes=os.getenv("PERMISSION_ALLOW_MALFORMED", "true").lower() in _TRUTHY,
        )
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid permcatalog environment configuration: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


__all__ = [
    "LogLevel",
    "PermissionConfig",
    "SiblingOrder",
    "load_config_from_env",
]
