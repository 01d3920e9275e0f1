"""Partition resolved scenarios into FileGroups.

Policy, in order:
  1. Bucket by feature tag, buckets in first-seen order.
  2. Within a bucket, a seed whose setup steps prefix >= 2 scenarios is
     hoisted for those scenarios (a cohort), longest seed first; the rest
     form a plain cohort.
  3. Each cohort splits into files of at most ``max_group`` scenarios,
     sized as evenly as possible with the larger files first.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from testloom.catalog.vocabulary import component_tag, slugify, split_words
from testloom.types import FileGroup, GroupingDegenerate, RuleSettings, SetupBlock

if TYPE_CHECKING:
    from collections.abc import Sequence

    from testloom.catalog.registry import Catalog
    from testloom.types import Scenario, SeedDescriptor

logger = logging.getLogger(__name__)

DEFAULT_FEATURE = "general"
DEFAULT_FUNCTIONALITY = "scenarios"


@dataclass(frozen=True)
class GroupingResult:
    groups: tuple[FileGroup, ...]
    degenerate: tuple[GroupingDegenerate, ...] = ()


@dataclass
class _Cohort:
    first_index: int
    setup: SetupBlock | None
    scenarios: list[Scenario]


def split_sizes(count: int, max_size: int) -> list[int]:
    """Fewest files of at most ``max_size``, remainder spread larger-first.

    10 -> [5, 5], 7 -> [4, 3], 13 -> [5, 4, 4].
    """
    if count <= max_size:
        return [count]
    files = -(-count // max_size)
    base, extra = divmod(count, files)
    return [base + 1] * extra + [base] * (files - extra)


def _seeds_by_length(catalog: Catalog) -> list[SeedDescriptor]:
    seeds = [s for s in catalog.list_seeds() if s.resolvable]
    return sorted(seeds, key=lambda s: -len(s.setup))


def feature_of(scenario: Scenario, catalog: Catalog) -> str:
    """Declared tag, else the component leading the steps after any seed prefix."""
    if scenario.feature:
        return slugify(scenario.feature) or DEFAULT_FEATURE

    body = scenario.steps
    for seed in _seeds_by_length(catalog):
        if seed.is_prefix_of(body):
            body = body[len(seed.setup):]
            break

    for steps in (body, scenario.steps):
        for rs in steps:
            if rs.resolved:
                return component_tag(rs.method.owner)
    for rs in scenario.steps:
        if rs.step.target:
            return component_tag(rs.step.target) or DEFAULT_FEATURE
    return DEFAULT_FEATURE


def _cohorts(members: list[Scenario], catalog: Catalog) -> list[_Cohort]:
    remaining = list(enumerate(members))
    seeds = [s for s in catalog.list_seeds() if s.resolvable]
    cohorts: list[_Cohort] = []

    while True:
        best = None
        for order, seed in enumerate(seeds):
            users = [(i, s) for i, s in remaining if seed.is_prefix_of(s.steps)]
            # A prefix used by a single scenario is never hoisted
            if len(users) < 2:
                continue
            # Longest seed first so no longer shared prefix is left behind in a body
            rank = (len(seed.setup), len(users), -order)
            if best is None or rank > best[0]:
                best = (rank, seed, users)
        if best is None:
            break

        _, seed, users = best
        taken = {i for i, _ in users}
        remaining = [(i, s) for i, s in remaining if i not in taken]
        cut = len(seed.setup)
        cohorts.append(_Cohort(
            first_index=users[0][0],
            setup=SetupBlock(steps=seed.setup, seed=seed.name, precondition=seed.precondition),
            scenarios=[dataclasses.replace(s, steps=s.steps[cut:]) for _, s in users],
        ))
        logger.debug("Hoisting seed %s for %d scenarios", seed.name, len(users))

    if remaining:
        cohorts.append(_Cohort(remaining[0][0], None, [s for _, s in remaining]))
    cohorts.sort(key=lambda c: c.first_index)
    return cohorts


def _dominant_phrase(cohorts: list[_Cohort]) -> str:
    """Most frequent verb phrase among action steps (all steps if none); first seen wins ties."""
    steps = [rs for c in cohorts for s in c.scenarios for rs in s.steps]
    actions = [rs for rs in steps if rs.resolved and rs.method.kind == "action"]
    counts: dict[str, int] = {}
    for rs in actions or steps:
        phrase = " ".join(split_words(rs.step.verb))
        if phrase:
            counts[phrase] = counts.get(phrase, 0) + 1
    if not counts:
        return DEFAULT_FUNCTIONALITY
    return max(counts, key=counts.__getitem__)


def _unique_path(base: str, taken: set[str]) -> str:
    candidate = base
    n = 2
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    taken.add(candidate)
    return candidate


def plan_groups(
    scenarios: Sequence[Scenario],
    catalog: Catalog,
    settings: RuleSettings | None = None,
) -> GroupingResult:
    settings = settings or RuleSettings()
    buckets: dict[str, list[Scenario]] = {}
    for scenario in scenarios:
        members = buckets.setdefault(feature_of(scenario, catalog), [])
        if scenario.steps:
            members.append(scenario)
        else:
            logger.info("Dropping scenario %r: it has no steps", scenario.title)

    groups: list[FileGroup] = []
    degenerate: list[GroupingDegenerate] = []
    taken: set[str] = set()

    for feature, members in buckets.items():
        if not members:
            degenerate.append(GroupingDegenerate(feature, "bucket is empty after dropping scenarios without steps"))
            continue

        cohorts = _cohorts(members, catalog)
        functionality = slugify(_dominant_phrase(cohorts)) or DEFAULT_FUNCTIONALITY
        for cohort in cohorts:
            start = 0
            for size in split_sizes(len(cohort.scenarios), settings.max_group):
                path = _unique_path(f"{feature}/{functionality}", taken)
                groups.append(FileGroup(
                    feature=feature,
                    file_path=f"{path}{settings.file_suffix}",
                    scenarios=tuple(cohort.scenarios[start:start + size]),
                    shared_setup=cohort.setup,
                    # the seed cohort, not the feature bucket: a cohort keeps its hoisted setup even if a file comes up short
                    bucket_size=len(cohort.scenarios),
                ))
                start += size

    return GroupingResult(groups=tuple(groups), degenerate=tuple(degenerate))


def group(
    scenarios: Sequence[Scenario],
    catalog: Catalog,
    settings: RuleSettings | None = None,
) -> list[FileGroup]:
    return list(plan_groups(scenarios, catalog, settings).groups)
