"""Permission catalog: a validated, ordered snapshot of permission records.

The catalog is the input contract of every other component. It accepts
:class:`Permission` instances or plain mappings (a backend JSON payload),
validates them, drops duplicate ids, and keeps its own copies so later
edits never leak back into the caller's records.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping, Union

from pydantic import ValidationError

from .exceptions import CatalogValidationError
from .models import Permission, PermissionType

logger = logging.getLogger(__name__)

PermissionLike = Union[Permission, Mapping[str, Any]]


class PermissionCatalog:
    """Immutable, id-indexed, ordered list of permission records.

    Args:
        records: Permission models or mappings with at least ``id``,
            ``code`` and ``type``.

    Raises:
        CatalogValidationError: If a record cannot be validated.

    Example::

        catalog = PermissionCatalog([
            {"id": 1, "code": "menu:nodes", "type": "menu", "name": "Nodes"},
            {"id": 2, "code": "api:nodes:list", "type": "api"},
        ])
        [p.code for p in catalog.menus()]  # ["menu:nodes"]
    """

    __slots__ = ("_records", "_index", "_order")

    def __init__(self, records: Iterable[PermissionLike] = ()) -> None:
        self._records: list[Permission] = []
        self._index: dict[int, Permission] = {}
        self._order: dict[int, int] = {}

        for position, raw in enumerate(records):
            permission = self._coerce(raw, position)
            if permission.id in self._index:
                logger.warning(
                    "Duplicate permission id %s (%s) at index %d ignored",
                    permission.id,
                    permission.code,
                    position,
                )
                continue
            self._order[permission.id] = len(self._records)
            self._index[permission.id] = permission
            self._records.append(permission)

    @staticmethod
    def _coerce(raw: PermissionLike, position: int) -> Permission:
        if isinstance(raw, Permission):
            return raw.model_copy()
        try:
            return Permission.model_validate(raw)
        except ValidationError as e:
            raise CatalogValidationError(
                f"Invalid permission record at index {position}",
                index=position,
                errors=e.errors(include_url=False),
            ) from e

    # ── Queries ─────────────────────────────────────────

    def menus(self) -> list[Permission]:
        """Menu permissions in catalog order."""
        return [p for p in self._records if p.type == PermissionType.MENU]

    def apis(self) -> list[Permission]:
        """API permissions in catalog order."""
        return [p for p in self._records if p.type == PermissionType.API]

    def get(self, permission_id: int) -> Permission | None:
        return self._index.get(permission_id)

    def order_of(self, permission_id: int) -> int:
        """Catalog position of a record, used as a stable sort key."""
        return self._order.get(permission_id, len(self._records))

    def selected_ids(self) -> list[int]:
        """Ids of records whose ``selected`` flag is set, in catalog order."""
        return [p.id for p in self._records if p.selected]

    def __iter__(self) -> Iterator[Permission]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, permission_id: object) -> bool:
        return permission_id in self._index

    def __repr__(self) -> str:
        return f"PermissionCatalog(menus={len(self.menus())}, apis={len(self.apis())})"


__all__ = [
    "PermissionCatalog",
    "PermissionLike",
]
