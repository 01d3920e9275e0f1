"""Parse YAML test plans into planned scenarios of intended steps."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from testloom.catalog.steps import normalize, parse_step
from testloom.types import Plan, PlannedScenario


class PlanError(ValueError):
    pass


def _parse_scenario(raw: Any, default_feature: str | None) -> PlannedScenario:
    if not isinstance(raw, dict):
        raise PlanError(f"Scenario must be a mapping, got {type(raw).__name__}")
    body = normalize(raw)

    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        raise PlanError(f"Scenario is missing a title: {raw!r}")

    steps_raw = body.get("steps") or []
    if not isinstance(steps_raw, list):
        raise PlanError(f'Scenario "{title}": "steps" must be a list')
    try:
        steps = tuple(parse_step(s) for s in steps_raw)
    except ValueError as e:
        raise PlanError(f'Scenario "{title}": {e}') from e

    feature = body.get("feature") or default_feature
    return PlannedScenario(title=title.strip(), steps=steps, feature=str(feature) if feature else None)


def parse_plan(raw: Any) -> Plan:
    """Build a Plan from already-decoded data (YAML document or MCP payload)."""
    if not isinstance(raw, dict):
        raise PlanError("Invalid plan: expected a mapping")
    normalized = normalize({k: v for k, v in raw.items() if k != "scenarios"})

    scenarios_raw = raw.get("scenarios")
    if not isinstance(scenarios_raw, list):
        raise PlanError('Invalid plan: missing "scenarios" list')

    default_feature = normalized.get("feature")
    scenarios = [_parse_scenario(s, default_feature) for s in scenarios_raw]

    seen: dict[str, int] = {}
    for s in scenarios:
        seen[s.title] = seen.get(s.title, 0) + 1
    dupes = [t for t, c in seen.items() if c > 1]
    if dupes:
        raise PlanError(f"Duplicate scenario titles: {', '.join(dupes)}")

    return Plan(name=str(normalized.get("title", "unnamed plan")), scenarios=tuple(scenarios))


def parse_plan_yaml(content: str) -> Plan:
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PlanError(f"Invalid YAML: {e}") from e
    return parse_plan(raw)


def load_plan(path: str | Path) -> Plan:
    path = Path(path)
    if not path.exists():
        raise PlanError(f"Plan file not found: {path}")
    return parse_plan_yaml(path.read_text(encoding="utf-8"))
