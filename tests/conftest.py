"""Shared fixtures."""

from __future__ import annotations

import pytest

from permcatalog import PermissionCatalog

from .factories import sample_records


@pytest.fixture
def catalog() -> PermissionCatalog:
    return PermissionCatalog(sample_records())
