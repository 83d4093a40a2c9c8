"""Runtime access evaluation against a user's granted permissions.

Provides:
- ``RuntimeEvaluator``: answers "is ``code`` (with optional ``action``) allowed".
- ``AccessDecision``: the decision plus the rule that produced it.
- ``DecisionReason``: why a query was allowed or denied.

Checks in order:
1. super-admin bypass
2. empty code (nothing required)
3. exact match on ``code`` (and ``action`` when given)
4. legacy fallback: ``a:b:c`` is retried as ``a:b`` with action ``c``
5. malformed code (fewer than two segments): allowed with a warning
6. deny

The evaluator never mutates its grants and is safe to share between callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from .catalog import PermissionCatalog
from .codes import SEPARATOR, split_code
from .config import PermissionConfig
from .models import Grant, Permission

logger = logging.getLogger(__name__)

GrantLike = Union[Grant, Permission, Mapping[str, Any], str]


class DecisionReason(str, Enum):
    """Rule that settled an access query."""

    SUPER_ADMIN = "super_admin"
    NOT_REQUIRED = "not_required"
    EXACT = "exact"
    LEGACY_FALLBACK = "legacy_fallback"
    MALFORMED = "malformed"
    DENIED = "denied"


@dataclass(frozen=True)
class AccessDecision:
    """Result of a single access query."""

    allowed: bool
    reason: DecisionReason
    code: str = ""
    action: Optional[str] = None

    @property
    def denied(self) -> bool:
        return not self.allowed

    def __bool__(self) -> bool:
        return self.allowed


def _to_grant(raw: GrantLike) -> Grant:
    if isinstance(raw, Grant):
        return raw
    if isinstance(raw, str):
        return Grant(code=raw)
    if isinstance(raw, Permission):
        return Grant(code=raw.code, action=raw.action)
    return Grant.model_validate(raw)


class RuntimeEvaluator:
    """Point-in-time access checks for one user.

    Args:
        grants: The user's granted permissions (``Grant``, ``Permission``,
            mappings with ``code``/``action``, or bare code strings).
        super_admin: Bypass every check.
        config: Controls the malformed-code policy.

    Example::

        evaluator = RuntimeEvaluator([{"code": "api:clusters", "action": "list"}])
        evaluator.is_allowed("api:clusters:list")    # True (legacy fallback)
        evaluator.is_allowed("api:clusters:delete")  # False
        evaluator.is_allowed("dashboard")            # True (malformed, logged)
    """

    __slots__ = ("_actions", "_super_admin", "_config")

    def __init__(
        self,
        grants: Iterable[GrantLike] = (),
        super_admin: bool = False,
        config: PermissionConfig | None = None,
    ) -> None:
        # code -> granted actions; None marks a grant without action
        self._actions: dict[str, set[Optional[str]]] = {}
        for raw in grants:
            grant = _to_grant(raw)
            self._actions.setdefault(grant.code, set()).add(grant.action or None)
        self._super_admin = super_admin
        self._config = config or PermissionConfig()

    @classmethod
    def from_catalog(
        cls,
        catalog: PermissionCatalog,
        super_admin: bool = False,
        config: PermissionConfig | None = None,
    ) -> RuntimeEvaluator:
        """Evaluator over a catalog already filtered to a user's grants."""
        return cls(catalog, super_admin=super_admin, config=config)

    @property
    def super_admin(self) -> bool:
        return self._super_admin

    def decide(self, code: Optional[str], action: Optional[str] = None) -> AccessDecision:
        """Evaluate one query and report which rule settled it."""
        code = code or ""
        action = action or None

        if self._super_admin:
            return AccessDecision(True, DecisionReason.SUPER_ADMIN, code, action)

        if not code:
            return AccessDecision(True, DecisionReason.NOT_REQUIRED, code, action)

        if self._matches(code, action):
            return AccessDecision(True, DecisionReason.EXACT, code, action)

        segments = split_code(code)
        if action is None and len(segments) >= 3:
            base_code = SEPARATOR.join(segments[:-1])
            if self._matches(base_code, segments[-1]):
                return AccessDecision(True, DecisionReason.LEGACY_FALLBACK, code, action)

        if len(segments) < 2:
            logger.warning("Invalid permission format: %r", code)
            return AccessDecision(self._config.allow_malformed_codes, DecisionReason.MALFORMED, code, action)

        logger.debug("Permission denied: %s (action=%s)", code, action)
        return AccessDecision(False, DecisionReason.DENIED, code, action)

    def is_allowed(self, code: Optional[str], action: Optional[str] = None) -> bool:
        return self.decide(code, action).allowed

    def has_menu_permission(self, menu_code: str) -> bool:
        """Check ``menu:{menu_code}`` with the ``view`` action."""
        return self.is_allowed(f"menu:{menu_code}", "view")

    def has_api_permission(self, resource: str, action: str) -> bool:
        """Check ``api:{resource}`` with ``action``."""
        return self.is_allowed(f"api:{resource}", action)

    def _matches(self, code: str, action: Optional[str]) -> bool:
        if action is None:
            return code in self._actions
        if f"{code}{SEPARATOR}{action}" in self._actions:
            return True
        granted = self._actions.get(code)
        if granted is None:
            return False
        return None in granted or action in granted

    def __repr__(self) -> str:
        return f"RuntimeEvaluator(codes={len(self._actions)}, super_admin={self._super_admin})"


__all__ = [
    "AccessDecision",
    "DecisionReason",
    "GrantLike",
    "RuntimeEvaluator",
]
