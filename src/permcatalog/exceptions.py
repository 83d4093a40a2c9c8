"""Exception hierarchy for permcatalog.

All errors raised by this library inherit from PermCatalogError, which
carries a stable error ``code`` and free-form ``details``.

The tree, association, selection and evaluation operations never raise on
malformed catalog data. Errors only surface at the boundaries: validating
raw catalog payloads, loading configuration, and building a role grant.

Usage:
    from permcatalog.exceptions import (
        PermCatalogError,
        CatalogValidationError,
        EmptyGrantError,
    )
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "PermCatalogError",
    "ConfigurationError",
    "CatalogValidationError",
    "EmptyGrantError",
]


# ---- Exception Hierarchy ----------------------------------------------------


class PermCatalogError(Exception):
    """Base exception for permcatalog.

    Attributes:
        code: Stable error code string (e.g. "CATALOG_VALIDATION_ERROR").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(PermCatalogError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"
    message: str = "Invalid permcatalog configuration"


class CatalogValidationError(PermCatalogError):
    """A permission record in a catalog payload failed validation.

    ``details`` carries ``index`` (position in the payload) and ``errors``
    (pydantic's error list) when available.
    """

    code: str = "CATALOG_VALIDATION_ERROR"
    message: str = "Invalid permission record"


class EmptyGrantError(PermCatalogError):
    """A role grant was requested with no menu permission selected."""

    code: str = "EMPTY_GRANT_ERROR"
    message: str = "At least one menu permission must be selected"
