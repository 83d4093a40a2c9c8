"""Menu/API permission model for role editing and runtime access checks.

Provides:
- PermissionCatalog: validated, ordered snapshot of permission records
- TreeBuilder / build_forest(): menu permissions → navigable forest
- AssociationResolver / resolve_associations(): api ↔ menu links
- SelectionEngine: tri-state role selection with API cascading
- RuntimeEvaluator: "is code X (action Y) allowed" for a user
- filter_menu_items(): hide navigation entries the user may not see
"""

from .associations import AssociationMap, AssociationResolver, MatchRule, resolve_associations, score_segments
from .catalog import PermissionCatalog
from .codes import menu_path, parent_code, split_code
from .config import LogLevel, PermissionConfig, SiblingOrder, load_config_from_env
from .evaluator import AccessDecision, DecisionReason, RuntimeEvaluator
from .exceptions import (
    CatalogValidationError,
    ConfigurationError,
    EmptyGrantError,
    PermCatalogError,
)
from .logging import (
    PermissionLogFormatter,
    PermissionLoggerAdapter,
    get_permission_logger,
    safe_preview,
    setup_logging,
)
from .models import Grant, MenuItem, Permission, PermissionType
from .navigation import filter_menu_items, menu_code_from_permission
from .selection import RoleGrant, SelectionChange, SelectionEngine
from .tree import MenuNode, PermissionForest, TreeBuilder, build_forest

__all__ = [
    "AccessDecision",
    "AssociationMap",
    "AssociationResolver",
    "CatalogValidationError",
    "ConfigurationError",
    "DecisionReason",
    "EmptyGrantError",
    "Grant",
    "LogLevel",
    "MatchRule",
    "MenuItem",
    "MenuNode",
    "PermCatalogError",
    "Permission",
    "PermissionCatalog",
    "PermissionConfig",
    "PermissionForest",
    "PermissionLogFormatter",
    "PermissionLoggerAdapter",
    "PermissionType",
    "RoleGrant",
    "RuntimeEvaluator",
    "SelectionChange",
    "SelectionEngine",
    "SiblingOrder",
    "TreeBuilder",
    "build_forest",
    "filter_menu_items",
    "get_permission_logger",
    "load_config_from_env",
    "menu_code_from_permission",
    "menu_path",
    "parent_code",
    "resolve_associations",
    "safe_preview",
    "score_segments",
    "setup_logging",
    "split_code",
]
