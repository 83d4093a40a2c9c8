"""Core data models for permcatalog.

These are Pydantic models for permission records as delivered by a
backend permission catalog, runtime grants, and navigation menu items.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PermissionType(str, Enum):
    """Kind of a permission record.

    - MENU: a navigable section, rendered as a node of the permission tree
    - API: a backend-enforced action, linked to the menus that need it
    """

    MENU = "menu"
    API = "api"


class Permission(BaseModel):
    """Atomic, catalog-defined capability descriptor.

    ``code`` is a colon-delimited path such as ``menu:nodes:backends`` or
    ``api:clusters:list``. ``selected`` only carries meaning while a role is
    being edited.
    """

    model_config = {"extra": "ignore"}

    id: int
    code: str
    type: PermissionType
    name: str = ""
    resource: Optional[str] = None
    action: Optional[str] = None
    parent_id: Optional[int] = None
    description: Optional[str] = None
    selected: bool = False

    @property
    def is_menu(self) -> bool:
        return self.type == PermissionType.MENU

    @property
    def is_api(self) -> bool:
        return self.type == PermissionType.API


class Grant(BaseModel):
    """A granted permission code as seen by the runtime evaluator."""

    model_config = {"extra": "ignore", "frozen": True}

    code: str
    action: Optional[str] = None


class MenuItem(BaseModel):
    """Navigation menu entry, optionally guarded by a ``menu:*`` permission code."""

    title: str
    link: Optional[str] = None
    permission: Optional[str] = None
    children: list[MenuItem] = Field(default_factory=list)


MenuItem.model_rebuild()


__all__ = [
    "Grant",
    "MenuItem",
    "Permission",
    "PermissionType",
]
