"""API ↔ menu association inference.

Every ``api`` permission is linked to the menu permission(s) that need it.
The first rule that yields at least one candidate wins:

1. ``EXPLICIT_PARENT``: ``api.parent_id`` is a known menu id.
2. ``PATH_PREFIX``: the API path equals a menu path or starts with
   ``menu_path + ":"``; the longest menu path wins.
3. ``HEURISTIC``: segment scoring (see :func:`score_segments`).
4. ``RESOURCE``: the menu path and ``api.resource`` are prefixes of each other.

Paths are codes with their kind segment stripped (``api:clusters:list`` →
``clusters:list``). Rules 3 and 4 are low-confidence and logged at INFO so
catalog data can be audited. APIs matched by no rule stay unassociated.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, Optional

from .catalog import PermissionCatalog
from .codes import SEPARATOR, menu_path, split_code
from .config import PermissionConfig
from .models import Permission

logger = logging.getLogger(__name__)


class MatchRule(str, Enum):
    """Rule that produced an association, from most to least reliable."""

    EXPLICIT_PARENT = "explicit_parent"
    PATH_PREFIX = "path_prefix"
    HEURISTIC = "heuristic"
    RESOURCE = "resource"

    @property
    def low_confidence(self) -> bool:
        return self in (MatchRule.HEURISTIC, MatchRule.RESOURCE)


# Heuristic tiers, strongest first
TIER_ALL_SEGMENTS = 4
TIER_FIRST_SEGMENT = 3
TIER_LAST_SEGMENT = 2
TIER_LAST_IN_API = 1

NO_SCORE = (0, 0)


def score_segments(api_segments: list[str], menu_segments: list[str]) -> tuple[int, int]:
    """Score how well a menu path fits an API path.

    Returns a ``(tier, length)`` tuple; higher is better and ``(0, 0)``
    means no match:

    - tier 4: every menu segment appears in the API segments (menu paths
      with more than one segment only); length of the menu path
    - tier 3: first segments equal; length of the first segment
    - tier 2: last segments equal; length of the last segment
    - tier 1: the menu's last segment appears anywhere in the API segments

    Example::

        score_segments(["clusters", "nodes", "list"], ["nodes", "clusters"])  # (4, 14)
        score_segments(["clusters", "list"], ["clusters", "overview"])       # (3, 8)
        score_segments(["queries", "list"], ["sessions"])                     # (0, 0)
    """
    if not api_segments or not menu_segments:
        return NO_SCORE

    best = NO_SCORE
    menu_first, menu_last = menu_segments[0], menu_segments[-1]
    api_first, api_last = api_segments[0], api_segments[-1]

    if len(menu_segments) > 1 and all(segment in api_segments for segment in menu_segments):
        best = max(best, (TIER_ALL_SEGMENTS, len(SEPARATOR.join(menu_segments))))
    if menu_first and menu_first == api_first:
        best = max(best, (TIER_FIRST_SEGMENT, len(menu_first)))
    if menu_last and menu_last == api_last:
        best = max(best, (TIER_LAST_SEGMENT, len(menu_last)))
    if menu_last and menu_last in api_segments:
        best = max(best, (TIER_LAST_IN_API, len(menu_last)))
    return best


class AssociationMap:
    """Symmetric many-to-many relation between API ids and menu ids."""

    __slots__ = ("_api_to_menus", "_menu_to_apis", "_rules", "unassociated")

    def __init__(self) -> None:
        self._api_to_menus: dict[int, tuple[int, ...]] = {}
        self._menu_to_apis: dict[int, list[int]] = {}
        self._rules: dict[int, MatchRule] = {}
        self.unassociated: list[int] = []

    def link(self, api_id: int, menu_ids: list[int], rule: MatchRule) -> None:
        """Record ``api_id`` ↔ ``menu_ids`` on both sides."""
        ordered = tuple(dict.fromkeys(menu_ids))
        self._api_to_menus[api_id] = ordered
        self._rules[api_id] = rule
        for menu_id in ordered:
            self._menu_to_apis.setdefault(menu_id, []).append(api_id)

    def menus_for(self, api_id: int) -> tuple[int, ...]:
        return self._api_to_menus.get(api_id, ())

    def apis_for(self, menu_id: int) -> tuple[int, ...]:
        return tuple(self._menu_to_apis.get(menu_id, ()))

    def rule_for(self, api_id: int) -> Optional[MatchRule]:
        return self._rules.get(api_id)

    def is_associated(self, api_id: int) -> bool:
        return api_id in self._api_to_menus

    def pairs(self) -> Iterator[tuple[int, int]]:
        """Yield every ``(api_id, menu_id)`` pair."""
        for api_id, menu_ids in self._api_to_menus.items():
            for menu_id in menu_ids:
                yield api_id, menu_id

    @property
    def api_to_menus(self) -> dict[int, tuple[int, ...]]:
        return dict(self._api_to_menus)

    @property
    def menu_to_apis(self) -> dict[int, tuple[int, ...]]:
        return {menu_id: tuple(api_ids) for menu_id, api_ids in self._menu_to_apis.items()}

    def __len__(self) -> int:
        return len(self._api_to_menus)

    def __repr__(self) -> str:
        return f"AssociationMap(apis={len(self._api_to_menus)}, menus={len(self._menu_to_apis)})"


class AssociationResolver:
    """Computes the :class:`AssociationMap` for a catalog."""

    def __init__(self, config: PermissionConfig | None = None) -> None:
        self._config = config or PermissionConfig()

    def resolve(self, catalog: PermissionCatalog) -> AssociationMap:
        associations = AssociationMap()
        menus = catalog.menus()
        if not menus:
            associations.unassociated.extend(api.id for api in catalog.apis())
            return associations

        menu_ids = {menu.id for menu in menus}
        menu_paths = [(menu.id, menu_path(menu.code) or "") for menu in menus]

        for api in catalog.apis():
            rule, candidates = self._match(api, menu_ids, menu_paths)
            if not candidates:
                logger.debug("API permission %s (%s) has no menu association", api.id, api.code)
                associations.unassociated.append(api.id)
                continue

            associations.link(api.id, candidates, rule)
            if rule.low_confidence:
                logger.info(
                    "Low-confidence association %s (%s) -> menus %s via %s",
                    api.id,
                    api.code,
                    candidates,
                    rule.value,
                    extra={"low_confidence": True, "match_rule": rule.value},
                )
            else:
                logger.debug(
                    "Associated %s (%s) -> menus %s via %s",
                    api.id,
                    api.code,
                    candidates,
                    rule.value,
                )

        return associations

    def _match(
        self,
        api: Permission,
        menu_ids: set[int],
        menu_paths: list[tuple[int, str]],
    ) -> tuple[Optional[MatchRule], list[int]]:
        if api.parent_id is not None and api.parent_id in menu_ids:
            return MatchRule.EXPLICIT_PARENT, [api.parent_id]

        api_path = menu_path(api.code) or api.resource or ""
        if api_path:
            candidates = self._match_prefix(api_path, menu_paths)
            if candidates:
                return MatchRule.PATH_PREFIX, candidates

            if self._config.heuristic_matching:
                candidates = self._match_heuristic(api_path, menu_paths)
                if candidates:
                    return MatchRule.HEURISTIC, candidates

        if self._config.resource_fallback and api.resource:
            candidates = self._match_resource(api.resource, menu_paths)
            if candidates:
                return MatchRule.RESOURCE, candidates

        return None, []

    @staticmethod
    def _match_prefix(api_path: str, menu_paths: list[tuple[int, str]]) -> list[int]:
        best_length = 0
        candidates: list[int] = []
        for menu_id, path in menu_paths:
            if not path:
                continue
            if api_path != path and not api_path.startswith(path + SEPARATOR):
                continue
            if len(path) > best_length:
                best_length = len(path)
                candidates = [menu_id]
            elif len(path) == best_length:
                candidates.append(menu_id)
        return candidates

    @staticmethod
    def _match_heuristic(api_path: str, menu_paths: list[tuple[int, str]]) -> list[int]:
        api_segments = split_code(api_path)
        best = NO_SCORE
        candidates: list[int] = []
        for menu_id, path in menu_paths:
            if not path:
                continue
            score = score_segments(api_segments, split_code(path))
            if score == NO_SCORE:
                continue
            if score > best:
                best = score
                candidates = [menu_id]
            elif score == best:
                candidates.append(menu_id)
        return candidates

    @staticmethod
    def _match_resource(resource: str, menu_paths: list[tuple[int, str]]) -> list[int]:
        return [
            menu_id
            for menu_id, path in menu_paths
            if path and (resource.startswith(path) or path.startswith(resource))
        ]


def resolve_associations(catalog: PermissionCatalog, config: PermissionConfig | None = None) -> AssociationMap:
    """Resolve API ↔ menu associations for ``catalog`` with an optional config."""
    return AssociationResolver(config).resolve(catalog)


__all__ = [
    "AssociationMap",
    "AssociationResolver",
    "MatchRule",
    "resolve_associations",
    "score_segments",
]
