"""Parse .loom/rules.yaml into an ordered RuleSet."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from testloom.rules.registry import get_rule, load_rules
from testloom.types import RuleSet, RuleSettings

DEFAULT_RULES = ("R1", "R2", "R3", "R4", "R5", "R6")
DEFAULT_PLUGINS_DIR = "rules"


class RuleSetError(ValueError):
    pass


def default_rule_set() -> RuleSet:
    return RuleSet(rules=tuple(get_rule(r) for r in DEFAULT_RULES), settings=RuleSettings())


def _parse_settings(raw: Any) -> RuleSettings:
    if raw is None:
        return RuleSettings()
    if not isinstance(raw, dict):
        raise RuleSetError('"settings" must be a mapping')

    defaults = RuleSettings()
    size = raw.get("group_size", [defaults.min_group, defaults.max_group])
    if (
        not isinstance(size, list) or len(size) != 2
        or not all(isinstance(n, int) and not isinstance(n, bool) for n in size)
    ):
        raise RuleSetError('"group_size" must be a [min, max] pair of integers')
    low, high = size
    if not 1 <= low <= high:
        raise RuleSetError(f'"group_size" must satisfy 1 <= min <= max, got {size}')
    if high < 2 * low - 1:
        # below this some bucket sizes above max cannot be cut into files of at least min
        raise RuleSetError(f'"group_size" max must be at least 2 * min - 1 so every bucket splits, got {size}')

    framework = raw.get("framework_modules", list(defaults.framework_modules))
    if isinstance(framework, str):
        framework = [framework]

    return RuleSettings(
        min_group=low,
        max_group=high,
        fixture_module=str(raw.get("fixture_module", defaults.fixture_module)),
        framework_modules=tuple(str(m) for m in framework),
        constants_module=str(raw.get("constants_module", defaults.constants_module)),
        file_suffix=str(raw.get("file_suffix", defaults.file_suffix)),
    )


def parse_rules_yaml(content: str, base_dir: str | Path | None = None) -> RuleSet:
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise RuleSetError(f"Invalid YAML: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise RuleSetError("Invalid rule set: expected a mapping")

    settings_raw = raw.get("settings") or {}
    plugins = settings_raw.get("plugins", DEFAULT_PLUGINS_DIR) if isinstance(settings_raw, dict) else None
    if base_dir is not None and plugins:
        load_rules(Path(base_dir) / plugins)

    keys = raw.get("rules", list(DEFAULT_RULES))
    if not isinstance(keys, list):
        raise RuleSetError('"rules" must be a list of rule ids or names')

    rules = []
    seen: set[str] = set()
    for key in keys:
        r = get_rule(str(key))
        if r is None:
            raise RuleSetError(f"Unknown rule: {key}")
        if r.id in seen:
            raise RuleSetError(f"Duplicate rule: {key}")
        seen.add(r.id)
        rules.append(r)

    return RuleSet(rules=tuple(rules), settings=_parse_settings(settings_raw))


def load_rule_set(path: str | Path) -> RuleSet:
    """Load rules.yaml; a missing file means the default rule set."""
    path = Path(path)
    if not path.exists():
        load_rules(path.parent / DEFAULT_PLUGINS_DIR)
        return default_rule_set()
    return parse_rules_yaml(path.read_text(encoding="utf-8"), base_dir=path.parent)
