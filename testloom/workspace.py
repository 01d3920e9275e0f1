"""Locate and load the project's .loom/ conventions (catalog + rule set)."""
from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from testloom.catalog.parser import load_catalog
from testloom.rules.loader import load_rule_set

if TYPE_CHECKING:
    from testloom.catalog.registry import Catalog
    from testloom.types import RuleSet

LOOM_DIR_NAME = ".loom"
CATALOG_FILE = "catalog.yaml"
RULES_FILE = "rules.yaml"
PLANS_DIR = "plans"


@dataclass(frozen=True)
class Workspace:
    root: Path
    catalog: Catalog
    rules: RuleSet

    def plan_path(self, name: str) -> Path:
        """A plan name resolves under .loom/plans/; an existing path is used as-is."""
        candidate = Path(name)
        if candidate.suffix in (".yaml", ".yml") and candidate.exists():
            return candidate
        return self.root / PLANS_DIR / f"{name.removesuffix('.yaml')}.yaml"


def loom_dir(cwd: str | Path) -> Path:
    override = os.environ.get("LOOM_DIR")
    if override:
        return Path(override)
    return Path(cwd) / LOOM_DIR_NAME


def load_workspace(cwd: str | Path) -> Workspace:
    root = loom_dir(cwd)
    return Workspace(
        root=root,
        catalog=load_catalog(root / CATALOG_FILE),
        rules=load_rule_set(root / RULES_FILE),
    )


@functools.lru_cache(maxsize=8)
def _cached(root: str) -> Workspace:
    return load_workspace(root)


def get_workspace(cwd: str | Path) -> Workspace:
    """Process-wide, load-once workspace for long-running servers."""
    return _cached(str(Path(cwd).resolve()))
