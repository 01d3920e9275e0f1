"""Rule registry: built-in conventions plus custom rules from .loom/rules/*.py."""
from __future__ import annotations

import importlib.util
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from testloom.types import Rule

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from testloom.types import TestFileDescriptor, ValidationContext

logger = logging.getLogger(__name__)

_RULE_REGISTRY: dict[str, Rule] = {}


def rule(rule_id: str, name: str, message: str):
    """Register a conformance rule.

    Usage in .loom/rules/no_sleep.py::

        from testloom import rule

        @rule("X1", "no-sleep", "{where}: {detail}")
        def no_sleep(file, ctx):
            for scenario in file.scenarios:
                for idx, step in enumerate(scenario.steps):
                    if "wait" in step.step.verb:
                        yield {"scenario": scenario.title, "step": idx,
                               "where": scenario.title, "detail": "fixed waits are forbidden"}

    Each yielded finding fills the message template and becomes one violation.
    A rule whose id or name is already taken by another definition is not
    registered; re-importing the same definition replaces it.
    """
    def decorator(
        fn: Callable[[TestFileDescriptor, ValidationContext], Iterable[dict[str, Any]]],
    ) -> Rule:
        r = Rule(id=rule_id, name=name, message=message, check=fn)
        taken = get_rule(rule_id) or get_rule(name)
        if taken and not _same_definition(taken.check, fn):
            logger.warning(
                "Rule %s (%s) from %s clashes with registered rule %s (%s); skipped",
                rule_id, name, fn.__module__, taken.id, taken.name,
            )
            return r
        if taken and taken.id != rule_id:
            del _RULE_REGISTRY[taken.id]
        _RULE_REGISTRY[rule_id] = r
        return r
    return decorator


def _same_definition(a: Callable, b: Callable) -> bool:
    return (a.__module__, a.__qualname__) == (b.__module__, b.__qualname__)


def get_rule(key: str) -> Rule | None:
    """Lookup by id (``R1``) or name (``import-source``), case-insensitive."""
    wanted = key.strip().lower()
    for r in _RULE_REGISTRY.values():
        if r.id.lower() == wanted or r.name.lower() == wanted:
            return r
    return None


def registered_rules() -> list[Rule]:
    return list(_RULE_REGISTRY.values())


def load_rules(rules_dir: str | Path) -> dict[str, Rule]:
    """Import every .py file in ``rules_dir`` so its @rule definitions register."""
    rules_path = Path(rules_dir)
    loaded: dict[str, Rule] = {}
    if not rules_path.is_dir():
        return loaded

    for py_file in sorted(rules_path.glob("*.py")):
        try:
            spec = importlib.util.spec_from_file_location(f"loom_rules_{py_file.stem}", py_file)
            if not spec or not spec.loader:
                continue
            mod = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(mod)
        except Exception as e:
            logger.warning("Failed to load rule plugin %s: %s", py_file, e)
            continue

        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            if isinstance(obj, Rule) and _RULE_REGISTRY.get(obj.id) is obj:
                loaded[obj.id] = obj

    return loaded
