"""Tests for navigation menu filtering."""

from __future__ import annotations

from permcatalog import MenuItem, RuntimeEvaluator, filter_menu_items, menu_code_from_permission


def view(code: str) -> dict[str, str]:
    return {"code": code, "action": "view"}


MENU = [
    MenuItem(title="Dashboard", link="/pages/dashboard", permission="menu:dashboard"),
    MenuItem(
        title="System",
        children=[
            MenuItem(title="Users", link="/pages/system/users", permission="menu:system:users"),
            MenuItem(title="Roles", link="/pages/system/roles", permission="menu:system:roles"),
        ],
    ),
    MenuItem(
        title="Nodes",
        link="/pages/nodes",
        children=[MenuItem(title="Backends", link="/pages/nodes/backends", permission="menu:nodes:backends")],
    ),
    MenuItem(title="Help", link="/pages/help"),
]


class TestMenuCode:
    """Tests for menu_code_from_permission function."""

    def test_strips_menu_prefix(self) -> None:
        """Test the menu: prefix is removed."""
        assert menu_code_from_permission("menu:system:users") == "system:users"

    def test_other_tags_unchanged(self) -> None:
        """Test other tags pass through unchanged."""
        assert menu_code_from_permission("dashboard") == "dashboard"
        assert menu_code_from_permission("api:users") == "api:users"


class TestFilterMenuItems:
    """Tests for recursive menu filtering."""

    def test_keeps_granted_and_untagged(self) -> None:
        """Test granted and untagged items are kept."""
        evaluator = RuntimeEvaluator([view("menu:dashboard"), view("menu:system:users"), view("menu:nodes:backends")])
        result = filter_menu_items(MENU, evaluator)
        assert [item.title for item in result] == ["Dashboard", "System", "Nodes", "Help"]
        assert [child.title for child in result[1].children] == ["Users"]

    def test_parent_with_link_dropped_when_children_gone(self) -> None:
        """Test a linked parent disappears with its last child."""
        evaluator = RuntimeEvaluator([view("menu:dashboard")])
        result = filter_menu_items(MENU, evaluator)
        titles = [item.title for item in result]
        assert "Nodes" not in titles
        # group without its own link is kept even when empty
        assert "System" in titles
        assert next(item for item in result if item.title == "System").children == []

    def test_super_admin_sees_everything(self) -> None:
        """Test a super admin keeps the whole menu."""
        result = filter_menu_items(MENU, RuntimeEvaluator([], super_admin=True))
        assert [item.title for item in result] == ["Dashboard", "System", "Nodes", "Help"]
        assert len(result[1].children) == 2

    def test_input_not_mutated(self) -> None:
        """Test filtering leaves the input items untouched."""
        filter_menu_items(MENU, RuntimeEvaluator([]))
        assert len(MENU[1].children) == 2
        assert len(MENU[2].children) == 1
