"""Tests for API ↔ menu association inference."""

from __future__ import annotations

import logging

import pytest

from permcatalog import (
    AssociationResolver,
    MatchRule,
    PermissionCatalog,
    PermissionConfig,
    resolve_associations,
    score_segments,
)

from .factories import api, menu


class TestScoreSegments:
    """Tests for heuristic segment scoring."""

    def test_all_menu_segments_present(self) -> None:
        """Test a multi-segment menu whose segments all appear scores tier 4."""
        assert score_segments(["clusters", "nodes", "list"], ["nodes", "clusters"]) == (4, 14)

    def test_all_segments_requires_multi_segment_menu(self) -> None:
        """Test a single-segment menu never reaches the all-segments tier."""
        # single-segment menus fall through to the weaker tiers
        assert score_segments(["list", "nodes"], ["nodes"]) == (2, 5)

    def test_first_segment(self) -> None:
        """Test matching first segments score tier 3."""
        assert score_segments(["clusters", "list"], ["clusters", "overview"]) == (3, 8)

    def test_last_segment(self) -> None:
        """Test matching last segments score tier 2."""
        assert score_segments(["audit", "users"], ["system", "users"]) == (2, 5)

    def test_last_segment_contained(self) -> None:
        """Test a menu's last segment found anywhere in the API scores tier 1."""
        assert score_segments(["users", "list"], ["system", "users"]) == (1, 5)

    def test_no_match(self) -> None:
        """Test unrelated paths score nothing."""
        assert score_segments(["queries", "list"], ["sessions"]) == (0, 0)
        assert score_segments([], ["sessions"]) == (0, 0)

    def test_tiers_dominate_length(self) -> None:
        """A stronger tier wins even against a much longer weaker match."""
        strong = score_segments(["ab", "x"], ["ab", "y"])
        weak = score_segments(["z", "a-very-long-segment"], ["q", "a-very-long-segment"])
        assert strong > weak


class TestAssociationResolver:
    """Tests for rule precedence against the sample catalog."""

    def test_path_prefix(self, catalog: PermissionCatalog) -> None:
        """Test an API under a menu path links to that menu."""
        associations = resolve_associations(catalog)
        assert associations.menus_for(101) == (1,)
        assert associations.rule_for(101) == MatchRule.PATH_PREFIX

    def test_longest_menu_path_wins(self, catalog: PermissionCatalog) -> None:
        """Test the most specific menu path wins over its ancestors."""
        associations = resolve_associations(catalog)
        assert associations.menus_for(102) == (3,)
        assert associations.menus_for(103) == (4,)
        assert associations.menus_for(104) == (2,)

    def test_explicit_parent(self, catalog: PermissionCatalog) -> None:
        """Test an API parent_id naming a menu links directly."""
        associations = resolve_associations(catalog)
        assert associations.menus_for(105) == (6,)
        assert associations.rule_for(105) == MatchRule.EXPLICIT_PARENT

    def test_heuristic(self, catalog: PermissionCatalog) -> None:
        """Test segment scoring links an API with no path prefix match."""
        associations = resolve_associations(catalog)
        assert associations.menus_for(107) == (9,)
        assert associations.rule_for(107) == MatchRule.HEURISTIC
        assert associations.rule_for(107).low_confidence

    def test_resource_fallback(self, catalog: PermissionCatalog) -> None:
        """Test the resource string links an API when no other rule matches."""
        associations = resolve_associations(catalog)
        assert associations.menus_for(108) == (5, 6, 7)
        assert associations.rule_for(108) == MatchRule.RESOURCE

    def test_unassociated(self, catalog: PermissionCatalog) -> None:
        """Test an API matched by no rule stays unassociated."""
        associations = resolve_associations(catalog)
        assert not associations.is_associated(106)
        assert associations.menus_for(106) == ()
        assert associations.rule_for(106) is None
        assert associations.unassociated == [106]

    def test_symmetry(self, catalog: PermissionCatalog) -> None:
        """Test every link appears on both the API and the menu side."""
        associations = resolve_associations(catalog)
        pairs = list(associations.pairs())
        assert pairs
        for api_id, menu_id in pairs:
            assert menu_id in associations.api_to_menus[api_id]
            assert api_id in associations.menu_to_apis[menu_id]
        for menu_id, api_ids in associations.menu_to_apis.items():
            for api_id in api_ids:
                assert menu_id in associations.menus_for(api_id)

    def test_menu_side(self, catalog: PermissionCatalog) -> None:
        """Test apis_for lists the APIs linked to a menu."""
        associations = resolve_associations(catalog)
        assert associations.apis_for(6) == (105, 108)
        assert associations.apis_for(10) == ()

    def test_explicit_parent_short_circuits_path(self) -> None:
        """Test an explicit parent wins over a matching code path."""
        catalog = PermissionCatalog(
            [menu(1, "menu:nodes"), menu(2, "menu:system"), api(10, "api:nodes:list", parent_id=2)]
        )
        associations = resolve_associations(catalog)
        assert associations.menus_for(10) == (2,)

    def test_explicit_parent_pointing_to_api_is_ignored(self) -> None:
        """Test a parent_id naming another API falls through to the path rule."""
        catalog = PermissionCatalog(
            [menu(1, "menu:nodes"), api(10, "api:nodes:list"), api(11, "api:nodes:get", parent_id=10)]
        )
        associations = resolve_associations(catalog)
        assert associations.menus_for(11) == (1,)
        assert associations.rule_for(11) == MatchRule.PATH_PREFIX

    def test_prefix_requires_segment_boundary(self) -> None:
        """Test a menu path only prefixes an API path at a colon boundary."""
        catalog = PermissionCatalog([menu(1, "menu:node"), api(10, "api:nodes:list", resource="")])
        associations = resolve_associations(catalog)
        assert associations.rule_for(10) != MatchRule.PATH_PREFIX

    def test_heuristic_ties_all_stand(self) -> None:
        """Test menus with equal heuristic scores are all linked."""
        catalog = PermissionCatalog(
            [menu(1, "menu:alpha:x"), menu(2, "menu:beta:x"), api(10, "api:x:y")]
        )
        associations = resolve_associations(catalog)
        assert associations.menus_for(10) == (1, 2)
        assert associations.rule_for(10) == MatchRule.HEURISTIC

    def test_resource_used_when_code_has_no_path(self) -> None:
        """Test the resource stands in for an empty API code."""
        catalog = PermissionCatalog([menu(1, "menu:nodes"), api(10, "", resource="nodes:list")])
        associations = resolve_associations(catalog)
        assert associations.menus_for(10) == (1,)
        assert associations.rule_for(10) == MatchRule.PATH_PREFIX

    def test_heuristic_can_be_disabled(self, catalog: PermissionCatalog) -> None:
        """Test heuristic matching is skipped when disabled in config."""
        associations = AssociationResolver(PermissionConfig(heuristic_matching=False)).resolve(catalog)
        assert not associations.is_associated(107)

    def test_resource_fallback_can_be_disabled(self, catalog: PermissionCatalog) -> None:
        """Test resource matching is skipped when disabled in config."""
        associations = AssociationResolver(PermissionConfig(resource_fallback=False)).resolve(catalog)
        assert not associations.is_associated(108)

    def test_no_menus(self) -> None:
        """Test a catalog without menus leaves every API unassociated."""
        associations = resolve_associations(PermissionCatalog([api(10, "api:x:y")]))
        assert len(associations) == 0
        assert associations.unassociated == [10]

    def test_low_confidence_logged_at_info(
        self, catalog: PermissionCatalog, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test heuristic and resource links are logged at INFO with markers."""
        with caplog.at_level(logging.INFO, logger="permcatalog.associations"):
            resolve_associations(catalog)
        low = [r for r in caplog.records if getattr(r, "low_confidence", False)]
        assert {r.match_rule for r in low} == {"heuristic", "resource"}
        assert all(r.levelno == logging.INFO for r in low)
