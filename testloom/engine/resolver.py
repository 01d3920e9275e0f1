"""Map planner steps onto cataloged methods.

Resolution never invents a low-level interaction: a step with no catalog
match comes back unresolved so the gap can be fixed in the catalog.

Tie-break when several methods match: exact phrase beats synonym, a method
whose arity fits the literal count beats one that does not, then
declaration order.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from testloom.types import (
    AmbiguousMatch,
    ResolvedStep,
    Scenario,
    StepArg,
    UnresolvedAction,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from testloom.catalog.registry import Catalog
    from testloom.types import IntendedStep, MethodDescriptor, PlannedScenario

logger = logging.getLogger(__name__)


def substitute(value: Any, catalog: Catalog) -> StepArg:
    """Swap a literal for the constant that holds exactly that value, if any."""
    return StepArg(value=value, constant=catalog.lookup_constant(value))


def resolve(step: IntendedStep, catalog: Catalog) -> ResolvedStep:
    args = tuple(substitute(v, catalog) for v in step.args)

    match = "exact"
    candidates = catalog.match_methods(step.target, step.verb)
    if not candidates:
        match = "synonym"
        candidates = catalog.match_methods(step.target, step.verb, synonyms=True)
    if not candidates:
        logger.debug("No catalog method for %r", str(step))
        return ResolvedStep(step=step, args=args)

    chosen = _prefer_arity(candidates, len(args))
    others = tuple(m.qualified_name for m in candidates if m is not chosen)
    if others:
        logger.debug("Ambiguous %r: chose %s over %s", step.verb, chosen.qualified_name, others)
    return ResolvedStep(step=step, method=chosen, args=args, match=match, candidates=others)


def _prefer_arity(candidates: list[MethodDescriptor], arg_count: int) -> MethodDescriptor:
    for m in candidates:
        if m.arity == arg_count:
            return m
    return candidates[0]


def resolve_scenario(planned: PlannedScenario, catalog: Catalog) -> Scenario:
    return Scenario(
        title=planned.title,
        steps=tuple(resolve(s, catalog) for s in planned.steps),
        feature=planned.feature,
    )


def collect_issues(
    scenarios: Iterable[Scenario],
) -> tuple[list[UnresolvedAction], list[AmbiguousMatch]]:
    unresolved: list[UnresolvedAction] = []
    ambiguous: list[AmbiguousMatch] = []
    for scenario in scenarios:
        for idx, rs in enumerate(scenario.steps):
            if not rs.resolved:
                unresolved.append(UnresolvedAction(scenario.title, idx, rs.step))
            elif rs.candidates:
                ambiguous.append(AmbiguousMatch(
                    scenario.title, idx, rs.step, rs.method.qualified_name, rs.candidates,
                ))
    return unresolved, ambiguous
