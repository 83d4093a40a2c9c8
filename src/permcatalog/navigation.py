"""Navigation menu filtering on top of :class:`RuntimeEvaluator`."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .codes import SEPARATOR
from .evaluator import RuntimeEvaluator
from .models import MenuItem

logger = logging.getLogger(__name__)


def menu_code_from_permission(permission: str) -> str:
    """Strip a leading ``menu:`` from a permission tag.

    Example::

        menu_code_from_permission("menu:system:users")  # "system:users"
        menu_code_from_permission("dashboard")          # "dashboard"
    """
    kind, sep, rest = permission.partition(SEPARATOR)
    if sep and kind == "menu" and rest:
        return rest
    return permission


def filter_menu_items(items: Iterable[MenuItem], evaluator: RuntimeEvaluator) -> list[MenuItem]:
    """Drop menu items the user may not see.

    - an item tagged with a ``permission`` is kept only if
      ``evaluator.has_menu_permission()`` allows it
    - untagged items are kept
    - children are filtered recursively; an item with its own ``link``
      whose children were all removed is removed too

    The input items are not modified; kept items are returned as copies.
    """
    result: list[MenuItem] = []
    for item in items:
        kept = _filter_item(item, evaluator)
        if kept is not None:
            result.append(kept)
    return result


def _filter_item(item: MenuItem, evaluator: RuntimeEvaluator) -> Optional[MenuItem]:
    if item.permission and not evaluator.has_menu_permission(menu_code_from_permission(item.permission)):
        logger.debug("Hiding menu item %r (%s)", item.title, item.permission)
        return None

    if not item.children:
        return item.model_copy()

    children = filter_menu_items(item.children, evaluator)
    if not children and item.link:
        return None
    return item.model_copy(update={"children": children})


__all__ = [
    "filter_menu_items",
    "menu_code_from_permission",
]
