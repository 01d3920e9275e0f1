"""Shared fixtures: a SauceDemo-style catalog and throwaway .loom projects."""
from __future__ import annotations

from pathlib import Path

import pytest

from testloom.catalog import parse_catalog_yaml, parse_step
from testloom.engine.resolver import resolve_scenario
from testloom.rules import default_rule_set
from testloom.types import PlannedScenario, Scenario
from testloom.workspace import load_workspace

CATALOG_YAML = """\
components:
  LoginPage:
    - navigate
    - fillUsername: 1
    - fillPassword: 1
    - clickLogin
    - expectErrorVisible: 1
  InventoryPage:
    - addToCart: 1
    - removeFromCart: 1
    - sortBy: 1
    - clickItem: 1
    - tapItem: 1
    - openCart
    - expectTitleVisible
    - expectCartCount: 1
  CartPage:
    fixture: cart
    methods:
      - removeItem: 1
      - continueShopping
      - checkout
      - expectItemCount: 1
  CheckoutPage:
    methods:
      - name: fillShippingInfo
        params: [firstName, lastName, postalCode]
        effect: fills the shipping form
      - clickContinue
      - clickFinish
      - expectItemCount: 1
      - expectOrderComplete

constants:
  Credentials:
    STANDARD_USER: standard_user
    LOCKED_USER: locked_out_user
    PASSWORD: secret_sauce
  Products:
    BACKPACK: Sauce Labs Backpack
    BIKE_LIGHT: Sauce Labs Bike Light
    ONESIE: Sauce Labs Onesie

seeds:
  logged_in_standard:
    precondition: signed in as standard_user
    steps:
      - "LoginPage: navigate"
      - "LoginPage: fill username 'standard_user'"
      - "LoginPage: fill password 'secret_sauce'"
      - "LoginPage: click login"
  on_login_page:
    precondition: login form open
    steps:
      - "LoginPage: navigate"
"""

RULES_YAML = """\
rules: [R1, R2, R3, R4, R5, R6]
settings:
  group_size: [3, 6]
"""

LOGIN = (
    "LoginPage: navigate",
    "LoginPage: fill username 'standard_user'",
    "LoginPage: fill password 'secret_sauce'",
    "LoginPage: click login",
)


class LoomProject:
    """Temp project root with a populated .loom directory.

    Commands and the workspace loader run against ``root``; plans, rule
    plugins and config overrides are written with the helpers below.
    """

    def __init__(self, root: Path):
        self.root = root
        self.loom_dir = root / ".loom"
        (self.loom_dir / "plans").mkdir(parents=True)
        self.write("catalog.yaml", CATALOG_YAML)
        self.write("rules.yaml", RULES_YAML)

    def write(self, rel_path: str, content: str) -> Path:
        dst = self.loom_dir / rel_path
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(content, encoding="utf-8")
        return dst

    def write_plan(self, name: str, content: str) -> Path:
        return self.write(f"plans/{name}.yaml", content)

    def install_rule(self, filename: str, code: str) -> Path:
        """Write a rule plugin into .loom/rules/."""
        return self.write(f"rules/{filename}", code)

    @property
    def workspace(self):
        return load_workspace(self.root)


@pytest.fixture
def catalog():
    return parse_catalog_yaml(CATALOG_YAML)


@pytest.fixture
def rule_set():
    return default_rule_set()


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> LoomProject:
    monkeypatch.delenv("LOOM_DIR", raising=False)
    return LoomProject(tmp_path)


@pytest.fixture
def login_steps() -> tuple[str, ...]:
    return LOGIN


@pytest.fixture
def make_scenario(catalog):
    """Factory fixture: resolve shorthand steps into a Scenario against the sample catalog."""

    def _make(title: str, *steps: str, feature: str | None = None) -> Scenario:
        planned = PlannedScenario(title=title, steps=tuple(parse_step(s) for s in steps), feature=feature)
        return resolve_scenario(planned, catalog)

    return _make
