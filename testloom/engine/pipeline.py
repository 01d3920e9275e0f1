"""Plan -> resolved scenarios -> file groups -> descriptors -> reports."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from testloom.compiler.validator import validate
from testloom.engine.grouper import plan_groups
from testloom.engine.resolver import collect_issues, resolve_scenario
from testloom.engine.synthesizer import synthesize
from testloom.rules.loader import default_rule_set

if TYPE_CHECKING:
    from testloom.catalog.registry import Catalog
    from testloom.types import (
        AmbiguousMatch,
        FileGroup,
        GroupingDegenerate,
        Plan,
        RuleSet,
        Scenario,
        TestFileDescriptor,
        UnresolvedAction,
        ValidationReport,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileResult:
    descriptor: TestFileDescriptor
    report: ValidationReport


@dataclass(frozen=True)
class PipelineResult:
    plan: str
    files: tuple[FileResult, ...] = ()
    unresolved: tuple[UnresolvedAction, ...] = ()
    ambiguous: tuple[AmbiguousMatch, ...] = ()
    degenerate: tuple[GroupingDegenerate, ...] = ()

    @property
    def passed(self) -> bool:
        return all(f.report.passed for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan,
            "passed": self.passed,
            "files": [
                {"descriptor": f.descriptor.to_dict(), "report": f.report.to_dict()}
                for f in self.files
            ],
            "unresolved": [str(u) for u in self.unresolved],
            "ambiguous": [str(a) for a in self.ambiguous],
            "degenerate": [str(d) for d in self.degenerate],
        }


def resolve_plan(plan: Plan, catalog: Catalog) -> list[Scenario]:
    return [resolve_scenario(s, catalog) for s in plan.scenarios]


def build_file(group: FileGroup, catalog: Catalog, rule_set: RuleSet) -> FileResult:
    descriptor = synthesize(group, catalog, rule_set.settings)
    return FileResult(descriptor=descriptor, report=validate(descriptor, catalog, rule_set))


def run_pipeline(
    plan: Plan,
    catalog: Catalog,
    rule_set: RuleSet | None = None,
    *,
    max_workers: int | None = None,
) -> PipelineResult:
    """Groups are independent once formed, so synthesis fans out across threads.

    Output order always follows group order regardless of ``max_workers``.
    """
    rule_set = rule_set or default_rule_set()

    scenarios = resolve_plan(plan, catalog)
    unresolved, ambiguous = collect_issues(scenarios)
    grouping = plan_groups(scenarios, catalog, rule_set.settings)
    logger.info("Plan %s: %d scenarios -> %d files (%d unresolved steps)",
                plan.name, len(scenarios), len(grouping.groups), len(unresolved))

    groups = grouping.groups
    if max_workers == 1 or len(groups) <= 1:
        files = [build_file(g, catalog, rule_set) for g in groups]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            files = list(ex.map(lambda g: build_file(g, catalog, rule_set), groups))

    return PipelineResult(
        plan=plan.name,
        files=tuple(files),
        unresolved=tuple(unresolved),
        ambiguous=tuple(ambiguous),
        degenerate=grouping.degenerate,
    )
