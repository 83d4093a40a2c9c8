"""Menu permission tree: nodes, forest and the builder that produces them.

Provides:
- ``MenuNode``: one ``menu`` permission plus tri-state selection flags.
- ``PermissionForest``: ordered roots with an id index and traversal helpers.
- ``TreeBuilder`` / ``build_forest()``: turn a catalog into a forest.

Parent resolution, in priority order:
1. ``parent_id`` referring to a known menu permission
2. the menu whose code equals this code minus its last segment
3. otherwise the node is a root

Dangling ``parent_id`` values and parent cycles never fail the build; the
affected nodes become roots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from .catalog import PermissionCatalog
from .codes import parent_code
from .config import PermissionConfig, SiblingOrder
from .models import Permission

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MenuNode:
    """A menu permission placed in the tree.

    ``checked`` and ``indeterminate`` are mutually exclusive. ``parent_id``
    is a lookup-only back-reference resolved through the forest.
    """

    permission: Permission
    children: list[MenuNode] = field(default_factory=list)
    checked: bool = False
    indeterminate: bool = False
    parent_id: Optional[int] = None
    depth: int = 0

    @property
    def id(self) -> int:
        return self.permission.id

    @property
    def code(self) -> str:
        return self.permission.code

    @property
    def name(self) -> str:
        return self.permission.name

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def selectable(self) -> bool:
        return self.permission.is_menu

    def __repr__(self) -> str:
        state = "checked" if self.checked else "indeterminate" if self.indeterminate else "unchecked"
        return f"MenuNode(id={self.id}, code={self.code!r}, {state}, children={len(self.children)})"


class PermissionForest:
    """Ordered forest of :class:`MenuNode` trees with an id index."""

    __slots__ = ("roots", "_index")

    def __init__(self, roots: list[MenuNode], index: dict[int, MenuNode]) -> None:
        self.roots = roots
        self._index = index

    def get(self, node_id: int) -> MenuNode | None:
        return self._index.get(node_id)

    def parent_of(self, node: MenuNode) -> MenuNode | None:
        if node.parent_id is None:
            return None
        return self._index.get(node.parent_id)

    def ancestors(self, node: MenuNode) -> Iterator[MenuNode]:
        """Yield the parent, grandparent, ... up to the root."""
        parent = self.parent_of(node)
        while parent is not None:
            yield parent
            parent = self.parent_of(parent)

    def walk(self) -> Iterator[MenuNode]:
        """Pre-order traversal of the whole forest."""
        for root in self.roots:
            yield root
            yield from self.descendants(root)

    def descendants(self, node: MenuNode) -> Iterator[MenuNode]:
        """Pre-order traversal below ``node`` (excluding it)."""
        stack = list(reversed(node.children))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def leaves(self) -> list[MenuNode]:
        return [node for node in self.walk() if node.is_leaf]

    def to_tree(self) -> list[dict[str, Any]]:
        """Serialize the forest into nested dicts.

        Each entry holds the permission fields plus ``checked``,
        ``indeterminate``, ``depth`` and ``children``.
        """

        def serialize(node: MenuNode) -> dict[str, Any]:
            permission = node.permission
            return {
                "id": permission.id,
                "code": permission.code,
                "name": permission.name,
                "type": permission.type.value,
                "resource": permission.resource,
                "action": permission.action,
                "description": permission.description,
                "checked": node.checked,
                "indeterminate": node.indeterminate,
                "depth": node.depth,
                "children": [],
            }

        tree: list[dict[str, Any]] = []
        stack = [(root, tree) for root in reversed(self.roots)]
        while stack:
            node, siblings = stack.pop()
            entry = serialize(node)
            siblings.append(entry)
            stack.extend((child, entry["children"]) for child in reversed(node.children))
        return tree

    def __iter__(self) -> Iterator[MenuNode]:
        return self.walk()

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index


class TreeBuilder:
    """Builds a :class:`PermissionForest` from the menu subset of a catalog.

    Building is deterministic: the same catalog always yields the same
    forest, with siblings ordered by catalog position (or by name when
    ``config.sibling_order`` is ``SiblingOrder.NAME``).
    """

    def __init__(self, config: PermissionConfig | None = None) -> None:
        self._config = config or PermissionConfig()

    def build(self, catalog: PermissionCatalog) -> PermissionForest:
        menus = catalog.menus()
        index: dict[int, MenuNode] = {
            menu.id: MenuNode(permission=menu, checked=menu.selected) for menu in menus
        }
        by_code: dict[str, int] = {}
        for menu in menus:
            by_code.setdefault(menu.code, menu.id)

        parents = {menu.id: self._resolve_parent(menu, index, by_code) for menu in menus}
        self._break_cycles(menus, parents)

        roots: list[MenuNode] = []
        for menu in menus:
            node = index[menu.id]
            parent_id = parents[menu.id]
            if parent_id is None:
                roots.append(node)
                continue
            node.parent_id = parent_id
            index[parent_id].children.append(node)

        sort_key = self._sort_key(catalog)
        roots.sort(key=sort_key)
        for node in index.values():
            node.children.sort(key=sort_key)

        forest = PermissionForest(roots, index)
        self._assign_depths(roots)

        logger.debug("Built permission forest: %d menus, %d roots", len(index), len(roots))
        return forest

    def _resolve_parent(
        self,
        menu: Permission,
        index: dict[int, MenuNode],
        by_code: dict[str, int],
    ) -> Optional[int]:
        explicit = menu.parent_id
        if explicit is not None and explicit != menu.id:
            if explicit in index:
                return explicit
            logger.debug(
                "Menu %s (%s) has unknown parent_id %s, falling back to code path",
                menu.id,
                menu.code,
                explicit,
            )

        derived = parent_code(menu.code)
        if derived is not None:
            parent_id = by_code.get(derived)
            if parent_id is not None and parent_id != menu.id:
                return parent_id
        return None

    @staticmethod
    def _break_cycles(menus: list[Permission], parents: dict[int, Optional[int]]) -> None:
        # A node whose ancestor chain leads back to itself is demoted to a root.
        for menu in menus:
            seen: set[int] = set()
            current = parents[menu.id]
            while current is not None and current not in seen:
                if current == menu.id:
                    logger.warning(
                        "Parent cycle through menu %s (%s); demoting it to a root",
                        menu.id,
                        menu.code,
                    )
                    parents[menu.id] = None
                    break
                seen.add(current)
                current = parents[current]

    def _sort_key(self, catalog: PermissionCatalog):
        if self._config.sibling_order == SiblingOrder.NAME:
            return lambda node: (node.name, catalog.order_of(node.id))
        return lambda node: catalog.order_of(node.id)

    @staticmethod
    def _assign_depths(roots: list[MenuNode]) -> None:
        stack = [(root, 0) for root in roots]
        while stack:
            node, depth = stack.pop()
            node.depth = depth
            stack.extend((child, depth + 1) for child in node.children)


def build_forest(catalog: PermissionCatalog, config: PermissionConfig | None = None) -> PermissionForest:
    """Build a forest from ``catalog`` with an optional config."""
    return TreeBuilder(config).build(catalog)


__all__ = [
    "MenuNode",
    "PermissionForest",
    "TreeBuilder",
    "build_forest",
]
