"""Assemble a TestFileDescriptor from a FileGroup."""
from __future__ import annotations

from typing import TYPE_CHECKING

from testloom.types import ImportSpec, RuleSettings, TestFileDescriptor

if TYPE_CHECKING:
    from collections.abc import Iterable

    from testloom.catalog.registry import Catalog
    from testloom.types import FileGroup, ResolvedStep

FIXTURE_NAMES = ("test",)


def _constant_groups(steps: Iterable[ResolvedStep]) -> list[str]:
    return sorted({a.constant.group for rs in steps for a in rs.args if a.constant})


def synthesize(
    group: FileGroup,
    catalog: Catalog,
    settings: RuleSettings | None = None,
) -> TestFileDescriptor:
    """Same FileGroup in, identical descriptor out: every collection is sorted or group-ordered."""
    settings = settings or RuleSettings()
    steps = [rs for s in group.scenarios for rs in s.steps]
    components = {c for s in group.scenarios for c in s.required_components}
    if group.shared_setup:
        steps = list(group.shared_setup.steps) + steps
        components.update(group.shared_setup.components)
        seed = catalog.seed(group.shared_setup.seed) if group.shared_setup.seed else None
        if seed:
            components.update(seed.owners)

    imports = [ImportSpec(source=settings.fixture_module, names=FIXTURE_NAMES)]
    groups = _constant_groups(steps)
    if groups:
        imports.append(ImportSpec(source=settings.constants_module, names=tuple(groups)))

    return TestFileDescriptor(
        path=group.file_path,
        feature=group.feature,
        imports=tuple(imports),
        components=tuple(sorted(components)),
        scenarios=group.scenarios,
        setup=group.shared_setup,
        bucket_size=group.bucket_size,
    )
