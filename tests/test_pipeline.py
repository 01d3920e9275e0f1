"""End-to-end: plan -> files -> reports, plus plan and rule-set loading."""
from __future__ import annotations

import pytest

from testloom.compiler import PlanError, parse_plan, parse_plan_yaml, render
from testloom.engine import run_pipeline
from testloom.rules import RuleSetError, parse_rules_yaml

CHECKOUT_PLAN = """\
title: Checkout regression
scenarios:
  - title: checkout with backpack
    steps:
      - "LoginPage: navigate"
      - "LoginPage: fill username 'standard_user'"
      - "LoginPage: type 'secret_sauce' into password field"
      - "LoginPage: press login"
      - "InventoryPage: add to cart 'Sauce Labs Backpack'"
      - "InventoryPage: open cart"
      - "CartPage: checkout"
  - title: checkout with bike light
    steps:
      - "LoginPage: navigate"
      - "LoginPage: fill username 'standard_user'"
      - "LoginPage: fill password 'secret_sauce'"
      - "LoginPage: click login"
      - "InventoryPage: add to cart 'Sauce Labs Bike Light'"
      - "InventoryPage: open cart"
  - title: add onesie
    steps:
      - "LoginPage: navigate"
      - "LoginPage: fill username 'standard_user'"
      - "LoginPage: fill password 'secret_sauce'"
      - "LoginPage: click login"
      - do: add to cart
        on: InventoryPage
        with: Sauce Labs Onesie
"""


def _cart_plan(count: int, *, extra: list[dict] | None = None) -> dict:
    scenarios = [
        {"title": f"remove {i}", "steps": [f"CartPage: remove item 'item {i}'", "CartPage: continue shopping"]}
        for i in range(count)
    ]
    return {"title": "cart", "scenarios": scenarios + (extra or [])}


class TestPipeline:
    """run_pipeline wires resolution, grouping, synthesis and validation."""

    def test_checkout_plan(self, catalog, rule_set):
        result = run_pipeline(parse_plan_yaml(CHECKOUT_PLAN), catalog, rule_set)
        assert result.plan == "Checkout regression"
        assert result.passed
        assert result.unresolved == ()
        assert result.ambiguous == ()
        assert len(result.files) == 1
        d = result.files[0].descriptor
        assert d.path == "inventory/add-to-cart.spec.ts"
        assert d.setup.seed == "logged_in_standard"
        assert d.components == ("CartPage", "InventoryPage", "LoginPage")

    def test_seven_scenarios_two_files(self, catalog, rule_set):
        result = run_pipeline(parse_plan(_cart_plan(7)), catalog, rule_set)
        assert [len(f.descriptor.scenarios) for f in result.files] == [4, 3]
        assert result.passed

    def test_unresolved_step_fails_the_run(self, catalog, rule_set):
        extra = [{"title": "coupon", "feature": "cart",
                  "steps": ["CartPage: checkout", "CheckoutPage: apply coupon 'SAVE10'"]}]
        result = run_pipeline(parse_plan(_cart_plan(3, extra=extra)), catalog, rule_set)
        assert not result.passed
        assert len(result.unresolved) == 1
        assert result.unresolved[0].scenario == "coupon"
        assert result.unresolved[0].step_index == 1
        failed = [f for f in result.files if not f.report.passed]
        assert [v.rule_id for v in failed[0].report.violations] == ["R2"]

    def test_ambiguity_surfaces(self, catalog, rule_set):
        plan = parse_plan(_cart_plan(2, extra=[
            {"title": "count", "feature": "cart", "steps": ["expect item count '1'"]},
        ]))
        result = run_pipeline(plan, catalog, rule_set)
        assert result.passed
        assert len(result.ambiguous) == 1
        assert result.ambiguous[0].chosen == "CartPage.expectItemCount"

    def test_degenerate_reported(self, catalog, rule_set):
        plan = parse_plan(_cart_plan(3, extra=[{"title": "later", "feature": "search", "steps": []}]))
        result = run_pipeline(plan, catalog, rule_set)
        assert [d.feature for d in result.degenerate] == ["search"]
        assert result.passed

    def test_parallel_matches_serial(self, catalog, rule_set):
        plan = parse_plan(_cart_plan(20))
        serial = run_pipeline(plan, catalog, rule_set, max_workers=1)
        parallel = run_pipeline(plan, catalog, rule_set, max_workers=4)
        assert len(serial.files) == 4
        assert serial == parallel
        assert [render(f.descriptor, catalog) for f in serial.files] == \
            [render(f.descriptor, catalog) for f in parallel.files]

    def test_to_dict(self, catalog, rule_set):
        data = run_pipeline(parse_plan_yaml(CHECKOUT_PLAN), catalog, rule_set).to_dict()
        assert data["passed"] is True
        assert data["files"][0]["descriptor"]["setup"]["seed"] == "logged_in_standard"
        assert data["files"][0]["report"]["violations"] == []


class TestPlanParsing:
    """YAML / dict plans -> Plan."""

    def test_steps_and_aliases(self):
        plan = parse_plan_yaml(CHECKOUT_PLAN)
        assert [s.title for s in plan.scenarios] == ["checkout with backpack", "checkout with bike light", "add onesie"]
        last = plan.scenarios[2].steps[-1]
        assert (last.verb, last.target, last.args) == ("add to cart", "InventoryPage", ("Sauce Labs Onesie",))

    def test_plan_level_feature_default(self):
        plan = parse_plan({"name": "p", "tag": "cart", "scenarios": [
            {"scenario": "a", "steps": ["CartPage: checkout"]},
            {"title": "b", "feature": "checkout", "steps": []},
        ]})
        assert plan.name == "p"
        assert [s.feature for s in plan.scenarios] == ["cart", "checkout"]

    @pytest.mark.parametrize("raw, message", [
        ([], "expected a mapping"),
        ({"title": "p"}, 'missing "scenarios" list'),
        ({"scenarios": [{"steps": []}]}, "missing a title"),
        ({"scenarios": ["just a string"]}, "must be a mapping"),
        ({"scenarios": [{"title": "a", "steps": "click"}]}, '"steps" must be a list'),
        ({"scenarios": [{"title": "a", "steps": [{"on": "CartPage"}]}]}, "missing a verb"),
        ({"scenarios": [{"title": "a"}, {"title": "a"}]}, "Duplicate scenario titles: a"),
    ])
    def test_invalid(self, raw, message):
        with pytest.raises(PlanError, match=message):
            parse_plan(raw)

    def test_invalid_yaml(self):
        with pytest.raises(PlanError, match="Invalid YAML"):
            parse_plan_yaml("scenarios: [")


class TestRuleSetParsing:
    """rules.yaml -> RuleSet."""

    def test_defaults(self):
        rs = parse_rules_yaml("")
        assert [r.id for r in rs.rules] == ["R1", "R2", "R3", "R4", "R5", "R6"]
        assert (rs.settings.min_group, rs.settings.max_group) == (3, 6)

    def test_by_name_and_settings(self):
        rs = parse_rules_yaml("""
rules: [naming, R3]
settings:
  group_size: [2, 4]
  fixture_module: "@app/fixtures"
  framework_modules: "@playwright/test"
  file_suffix: .e2e.ts
""")
        assert [r.id for r in rs.rules] == ["R6", "R3"]
        assert rs.settings.min_group == 2
        assert rs.settings.fixture_module == "@app/fixtures"
        assert rs.settings.framework_modules == ("@playwright/test",)
        assert rs.settings.file_suffix == ".e2e.ts"

    @pytest.mark.parametrize("content, message", [
        ("rules: [R9]", "Unknown rule: R9"),
        ("rules: [R1, import-source]", "Duplicate rule"),
        ("rules: R1", "must be a list"),
        ("settings:\n  group_size: [5, 2]", "1 <= min <= max"),
        ("settings:\n  group_size: [4, 5]", "every bucket splits"),
        ("settings:\n  group_size: 3", "pair of integers"),
        ("settings: [1]", "must be a mapping"),
        ("rules: [", "Invalid YAML"),
    ])
    def test_invalid(self, content, message):
        with pytest.raises(RuleSetError, match=message):
            parse_rules_yaml(content)
