"""Tests for step resolution: catalog methods, constant substitution, tie-breaks."""
from __future__ import annotations

import pytest

from testloom.catalog import parse_catalog_yaml, parse_step
from testloom.engine import resolve
from testloom.engine.resolver import collect_issues


def _resolve(text, catalog):
    return resolve(parse_step(text), catalog)


class TestResolution:
    """Intended steps map onto cataloged methods or come back unresolved."""

    def test_exact_match(self, catalog):
        rs = _resolve("LoginPage: click login button", catalog)
        assert rs.resolved
        assert rs.match == "exact"
        assert rs.describe() == "LoginPage.clickLogin()"

    def test_synonym_match_with_constant(self, catalog):
        """'type secret_sauce into password' -> fillPassword(Credentials.PASSWORD)."""
        rs = _resolve("LoginPage: type 'secret_sauce' into password field", catalog)
        assert rs.match == "synonym"
        assert rs.method.qualified_name == "LoginPage.fillPassword"
        assert rs.args[0].constant.ref == "Credentials.PASSWORD"
        assert rs.raw_literals == ()
        assert rs.describe() == "LoginPage.fillPassword(Credentials.PASSWORD)"

    def test_case_insensitive(self, catalog):
        rs = _resolve("loginpage: CLICK Login", catalog)
        assert rs.describe() == "LoginPage.clickLogin()"

    def test_lookup_method(self, catalog):
        assert catalog.lookup_method("LoginPage", "press login").name == "clickLogin"
        assert catalog.lookup_method(None, "tap item").name == "tapItem"
        assert catalog.lookup_method("CartPage", "click login") is None

    def test_bare_url_does_not_become_the_target(self, catalog):
        rs = _resolve("navigate to https://www.saucedemo.com", catalog)
        assert rs.method.qualified_name == "LoginPage.navigate"
        assert rs.raw_literals == ("https://www.saucedemo.com",)

    def test_literal_without_constant_is_kept(self, catalog):
        rs = _resolve("InventoryPage: sort by 'lohi'", catalog)
        assert rs.describe() == "InventoryPage.sortBy('lohi')"
        assert rs.raw_literals == ("lohi",)

    def test_target_hint_scopes_the_search(self, catalog):
        rs = _resolve("CheckoutPage: expect item count '2'", catalog)
        assert rs.method.qualified_name == "CheckoutPage.expectItemCount"
        assert rs.candidates == ()

    def test_unknown_target_is_unresolved(self, catalog):
        rs = _resolve("ProfilePage: click login", catalog)
        assert not rs.resolved
        assert rs.method is None

    def test_unresolved_keeps_intent_and_args(self, catalog):
        rs = _resolve("CheckoutPage: apply coupon 'SAVE10'", catalog)
        assert not rs.resolved
        assert rs.match is None
        assert rs.step.verb == "apply coupon"
        assert rs.raw_literals == ("SAVE10",)
        assert rs.describe() == "UNRESOLVED: apply coupon on CheckoutPage with 'SAVE10'"

    @pytest.mark.parametrize("text", [
        "LoginPage: navigate",
        "LoginPage: dance",
        "wave at the screen",
        "CartPage: checkout",
        "Nowhere: do things 'x'",
    ])
    def test_total(self, catalog, text):
        """Every step produces a ResolvedStep; nothing raises."""
        rs = _resolve(text, catalog)
        assert rs.step == parse_step(text)
        assert rs.resolved == (rs.method is not None)

    def test_never_raw(self, catalog):
        """Resolution never invents a low-level interaction."""
        for text in ("click '#login-button'", "LoginPage: fill '#user-name' 'bob'"):
            rs = _resolve(text, catalog)
            assert not rs.raw
            assert not rs.resolved


class TestTieBreak:
    """Several catalog methods matching one step are resolved deterministically."""

    def test_exact_beats_synonym(self, catalog):
        rs = _resolve("InventoryPage: tap item 'Sauce Labs Onesie'", catalog)
        assert rs.method.name == "tapItem"
        assert rs.match == "exact"
        assert rs.candidates == ()

    def test_declaration_order_within_component(self, catalog):
        rs = _resolve("InventoryPage: press item 'Sauce Labs Onesie'", catalog)
        assert rs.method.name == "clickItem"
        assert rs.candidates == ("InventoryPage.tapItem",)

    def test_declaration_order_across_components(self, catalog):
        rs = _resolve("expect item count '2'", catalog)
        assert rs.method.qualified_name == "CartPage.expectItemCount"
        assert rs.candidates == ("CheckoutPage.expectItemCount",)

    def test_arity_fit_beats_declaration_order(self):
        cat = parse_catalog_yaml("""
components:
  SearchPage:
    - search
    - name: searchFor
      params: [query]
""")
        rs = _resolve("SearchPage: search for 'backpack'", cat)
        assert rs.method.name == "searchFor"
        assert rs.candidates == ("SearchPage.search",)
        rs = _resolve("SearchPage: search", cat)
        assert rs.method.name == "search"

    def test_no_arity_fit_falls_back_to_declaration_order(self):
        cat = parse_catalog_yaml("""
components:
  SearchPage:
    - clearFilters
  ResultsPage:
    - clearFilters: 1
""")
        rs = _resolve("clear filters 'price' 'brand'", cat)
        assert rs.method.qualified_name == "SearchPage.clearFilters"
        assert rs.candidates == ("ResultsPage.clearFilters",)

    def test_ambiguity_is_reported(self, catalog, make_scenario):
        s = make_scenario("pick", "press item 'Sauce Labs Onesie'")
        unresolved, ambiguous = collect_issues([s])
        assert unresolved == []
        assert len(ambiguous) == 1
        assert ambiguous[0].chosen == "InventoryPage.clickItem"
        assert "also: InventoryPage.tapItem" in str(ambiguous[0])


class TestCollectIssues:
    """Unresolved steps surface with scenario title and step index."""

    def test_unresolved_located(self, make_scenario, login_steps):
        s = make_scenario(
            "apply coupon",
            *login_steps,
            "InventoryPage: open cart",
            "CartPage: checkout",
            "CheckoutPage: apply coupon 'SAVE10'",
        )
        unresolved, ambiguous = collect_issues([s])
        assert ambiguous == []
        assert len(unresolved) == 1
        assert unresolved[0].scenario == "apply coupon"
        assert unresolved[0].step_index == 6
        assert str(unresolved[0]) == (
            "[apply coupon] step 7: no catalog method for 'apply coupon on CheckoutPage with 'SAVE10''"
        )
