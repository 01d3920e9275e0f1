"""Tests for the MCP tool functions (called directly, no transport)."""
from __future__ import annotations

import json

import pytest

from testloom.integrations.mcp_server import (
    loom_audit,
    loom_catalog,
    loom_resolve_step,
    loom_synthesize,
)
from testloom.workspace import _cached

LOGIN = [
    "LoginPage: navigate",
    "LoginPage: fill username 'standard_user'",
    "LoginPage: fill password 'secret_sauce'",
    "LoginPage: click login",
]


@pytest.fixture(autouse=True)
def in_project(project, monkeypatch):
    monkeypatch.chdir(project.root)
    _cached.cache_clear()
    yield project
    _cached.cache_clear()


class TestMcpTools:
    """loom_* tools return JSON strings; failures come back as {"error": ...}."""

    def test_catalog(self):
        data = json.loads(loom_catalog())
        assert list(data["components"]) == ["LoginPage", "InventoryPage", "CartPage", "CheckoutPage"]
        assert data["components"]["CartPage"]["fixture"] == "cart"
        assert data["constants"]["Credentials.PASSWORD"] == "secret_sauce"
        assert data["seeds"]["on_login_page"]["steps"] == ["LoginPage.navigate()"]

    def test_resolve_step(self):
        data = json.loads(loom_resolve_step("LoginPage: press login"))
        assert data["resolved"] is True
        assert data["call"] == "LoginPage.clickLogin()"
        assert data["match"] == "synonym"

    def test_resolve_step_unresolved(self):
        data = json.loads(loom_resolve_step("CheckoutPage: apply coupon 'SAVE10'"))
        assert data["resolved"] is False
        assert data["raw_literals"] == ["SAVE10"]

    def test_synthesize(self):
        plan = {
            "title": "inventory",
            "scenarios": [
                {"title": f"adds {p}", "steps": [*LOGIN, f"InventoryPage: add to cart '{p}'"]}
                for p in ("Sauce Labs Backpack", "Sauce Labs Bike Light", "Sauce Labs Onesie")
            ],
        }
        data = json.loads(loom_synthesize(plan))
        assert data["passed"] is True
        entry = data["files"][0]
        assert entry["descriptor"]["path"] == "inventory/add-to-cart.spec.ts"
        assert "await inventoryPage.addToCart(Products.ONESIE);" in entry["source"]

    def test_synthesize_without_source(self):
        plan = {"scenarios": [{"title": "a", "steps": ["CartPage: checkout"]}]}
        data = json.loads(loom_synthesize(plan, include_source=False))
        assert "source" not in data["files"][0]
        assert data["plan"] == "unnamed plan"

    def test_synthesize_invalid_plan(self):
        data = json.loads(loom_synthesize({"scenarios": "nope"}))
        assert 'missing "scenarios" list' in data["error"]

    def test_audit(self):
        raw = "import { test } from '@playwright/test';\ntest('x', async ({ page }) => {\n  await page.goto('/');\n});\n"
        data = json.loads(loom_audit({"tests/home/visit.spec.ts": raw}))
        assert len(data) == 1
        assert data[0]["path"] == "home/visit.spec.ts"
        assert data[0]["passed"] is False
        assert {v["rule_id"] for v in data[0]["violations"]} == {"R1", "R2"}
