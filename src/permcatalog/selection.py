"""Tri-state selection engine used while editing a role.

Provides:
- ``SelectionEngine``: toggle menu nodes, rehydrate persisted roles,
  (de)select standalone APIs, and derive the resulting permission list.
- ``SelectionChange``: the full derived permission list plus the delta.
- ``RoleGrant``: the persisted role payload (selected permission ids).

State lives in the engine: ``checked`` / ``indeterminate`` on the
:class:`MenuNode` objects and an API selection map. Output lists are
derived from that state as fresh :class:`Permission` copies; the catalog
records handed in are never mutated.

Invariants after every operation:
- a parent is checked iff all its children are checked (and none is
  indeterminate); it is indeterminate iff it is not checked and some
  child is checked or indeterminate
- a menu permission's ``selected`` equals its node's ``checked``
- an associated API is selected when any of its menus is checked, and a
  menu toggle only deselects an API when none of its menus is checked
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field

from .associations import AssociationMap, AssociationResolver
from .catalog import PermissionCatalog
from .config import PermissionConfig
from .exceptions import EmptyGrantError
from .logging import get_permission_logger
from .models import Permission, PermissionType
from .tree import MenuNode, PermissionForest, TreeBuilder

NodeRef = Union[MenuNode, int]


@dataclass
class SelectionChange:
    """Result of a selection operation.

    Attributes:
        permissions: Every catalog record with its current ``selected`` flag.
        changed: Only the records whose ``selected`` flag flipped.
    """

    permissions: list[Permission] = field(default_factory=list)
    changed: list[Permission] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.changed

    @property
    def changed_ids(self) -> list[int]:
        return [p.id for p in self.changed]


class RoleGrant(BaseModel):
    """Permission ids to persist for a role (menus and APIs together)."""

    permission_ids: list[int] = Field(default_factory=list)
    menu_ids: list[int] = Field(default_factory=list)
    api_ids: list[int] = Field(default_factory=list)


class SelectionEngine:
    """Interactive tri-state selection over a permission forest.

    Args:
        catalog: The catalog being edited; its ``selected`` flags are the
            persisted role state.
        forest: Forest built from ``catalog`` (built on demand if omitted).
        associations: Associations resolved from ``catalog`` (resolved on
            demand if omitted).
        config: Settings used when building the forest or associations.
        role_id: Role being edited, attached to log records.
        session_id: Editing session identifier, attached to log records.

    Example::

        engine = SelectionEngine.from_catalog(catalog)
        change = engine.toggle(menu_id, True)
        grant = engine.build_grant()
        save_role(role_id, grant.permission_ids)
    """

    def __init__(
        self,
        catalog: PermissionCatalog,
        forest: PermissionForest | None = None,
        associations: AssociationMap | None = None,
        config: PermissionConfig | None = None,
        role_id: Optional[int | str] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._catalog = catalog
        self._forest = forest if forest is not None else TreeBuilder(config).build(catalog)
        self._associations = (
            associations if associations is not None else AssociationResolver(config).resolve(catalog)
        )
        self._api_selected: dict[int, bool] = {api.id: api.selected for api in catalog.apis()}
        self._log = get_permission_logger(__name__, role_id=role_id, session_id=session_id)

    @classmethod
    def from_catalog(
        cls,
        catalog: PermissionCatalog,
        config: PermissionConfig | None = None,
        role_id: Optional[int | str] = None,
        session_id: Optional[str] = None,
    ) -> SelectionEngine:
        """Build forest and associations for ``catalog`` and rehydrate its selection."""
        engine = cls(catalog, config=config, role_id=role_id, session_id=session_id)
        engine.rehydrate()
        return engine

    @property
    def forest(self) -> PermissionForest:
        return self._forest

    @property
    def associations(self) -> AssociationMap:
        return self._associations

    # ── Operations ──────────────────────────────────────

    def toggle(self, target: NodeRef, value: bool) -> SelectionChange:
        """Check or uncheck a menu node and propagate the change.

        The node and its entire subtree are forced to ``value``; associated
        APIs follow; ancestors are recomputed from their children up to
        the root. Unknown or non-selectable targets are a no-op.
        """
        node = self._node(target)
        if node is None or not node.selectable:
            self._log.debug("Ignoring toggle of unknown or non-selectable node %r", target)
            return SelectionChange(permissions=self.permissions())

        before = self._state()

        touched = [node, *self._forest.descendants(node)]
        for current in touched:
            current.checked = value
            current.indeterminate = False
        self._apply_api_selection(touched, value)

        for ancestor, checked in self._update_ancestors(node):
            self._apply_api_selection([ancestor], checked)

        change = self._change_since(before)
        self._log.debug(
            "Toggled menu %s (%s) to %s: %d nodes cascaded, %d records changed",
            node.id,
            node.code,
            value,
            len(touched),
            len(change.changed),
        )
        return change

    def rehydrate(self) -> SelectionChange:
        """Resolve tri-state from persisted leaf selections and repair API drift.

        Recomputes every parent bottom-up from its children, then selects
        the APIs of every checked menu. Running it twice yields the same
        state.
        """
        before = self._state()

        # reversed pre-order visits every child before its parent
        for node in reversed(list(self._forest.walk())):
            if node.children:
                self._recompute(node)
            else:
                node.indeterminate = False

        checked = [node for node in self._forest.walk() if node.checked]
        self._apply_api_selection(checked, True)

        change = self._change_since(before)
        if change.changed:
            self._log.info(
                "Rehydrated selection: %d records adjusted to match the tree",
                len(change.changed),
            )
        return change

    def set_api(self, api_id: int, value: bool) -> SelectionChange:
        """Select or deselect one API permission on its own.

        Intended for APIs without menu association. An associated API can
        be set too, but the next toggle of one of its menus recomputes it.
        """
        permission = self._catalog.get(api_id)
        if permission is None or permission.type != PermissionType.API:
            self._log.debug("Ignoring set_api on unknown or non-API permission %r", api_id)
            return SelectionChange(permissions=self.permissions())

        before = self._state()
        self._api_selected[api_id] = value
        return self._change_since(before)

    # ── Derived output ──────────────────────────────────

    def permissions(self) -> list[Permission]:
        """Every catalog record with ``selected`` derived from the current state."""
        state = self._state()
        return [p.model_copy(update={"selected": state[p.id]}) for p in self._catalog]

    def checked_menu_ids(self) -> list[int]:
        return [p.id for p in self._catalog.menus() if self._menu_checked(p.id)]

    def selected_api_ids(self) -> list[int]:
        return [p.id for p in self._catalog.apis() if self._api_selected.get(p.id, False)]

    def selected_ids(self) -> list[int]:
        state = self._state()
        return [p.id for p in self._catalog if state[p.id]]

    def build_grant(self, require_menu: bool = True) -> RoleGrant:
        """Build the persisted role payload.

        Raises:
            EmptyGrantError: If ``require_menu`` is set and no menu is checked.
        """
        menu_ids = self.checked_menu_ids()
        if require_menu and not menu_ids:
            raise EmptyGrantError(selected_apis=len(self.selected_api_ids()))

        api_ids = self.selected_api_ids()
        return RoleGrant(
            permission_ids=sorted(menu_ids + api_ids),
            menu_ids=sorted(menu_ids),
            api_ids=sorted(api_ids),
        )

    # ── Internals ───────────────────────────────────────

    def _node(self, target: NodeRef) -> MenuNode | None:
        if isinstance(target, MenuNode):
            node = self._forest.get(target.id)
            return node if node is target else None
        return self._forest.get(target)

    def _menu_checked(self, menu_id: int) -> bool:
        node = self._forest.get(menu_id)
        return node is not None and node.checked

    def _apply_api_selection(self, nodes: Iterable[MenuNode], value: bool) -> None:
        api_ids = dict.fromkeys(api_id for node in nodes for api_id in self._associations.apis_for(node.id))
        for api_id in api_ids:
            if value:
                self._api_selected[api_id] = True
            else:
                self._api_selected[api_id] = any(
                    self._menu_checked(menu_id) for menu_id in self._associations.menus_for(api_id)
                )

    def _update_ancestors(self, node: MenuNode) -> list[tuple[MenuNode, bool]]:
        """Recompute ancestors bottom-up; return those whose ``checked`` flipped."""
        flipped: list[tuple[MenuNode, bool]] = []
        for ancestor in self._forest.ancestors(node):
            previous = ancestor.checked
            self._recompute(ancestor)
            if ancestor.checked != previous:
                flipped.append((ancestor, ancestor.checked))
        return flipped

    @staticmethod
    def _recompute(node: MenuNode) -> None:
        if not node.children:
            return
        node.checked = all(child.checked and not child.indeterminate for child in node.children)
        node.indeterminate = not node.checked and any(
            child.checked or child.indeterminate for child in node.children
        )

    def _state(self) -> dict[int, bool]:
        state: dict[int, bool] = {}
        for permission in self._catalog:
            if permission.type == PermissionType.MENU:
                state[permission.id] = self._menu_checked(permission.id)
            else:
                state[permission.id] = self._api_selected.get(permission.id, False)
        return state

    def _change_since(self, before: dict[int, bool]) -> SelectionChange:
        permissions = self.permissions()
        changed = [p for p in permissions if p.selected != before.get(p.id, False)]
        return SelectionChange(permissions=permissions, changed=changed)


__all__ = [
    "NodeRef",
    "RoleGrant",
    "SelectionChange",
    "SelectionEngine",
]
