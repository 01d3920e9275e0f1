"""Built-in conventions R1..R6."""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from testloom.rules.registry import rule

if TYPE_CHECKING:
    from collections.abc import Iterator

    from testloom.types import ResolvedStep, TestFileDescriptor, ValidationContext

SEGMENT = r"[a-z0-9]+(?:-[a-z0-9]+)*"


def _steps(file: TestFileDescriptor) -> Iterator[tuple[str | None, int, str, ResolvedStep]]:
    """(scenario ref, step index, human location, step) for setup, hooks and every scenario."""
    if file.setup:
        for idx, rs in enumerate(file.setup.steps):
            yield None, idx, f"Shared setup step {idx + 1}", rs
    for hook in file.hooks:
        for idx, rs in enumerate(hook.steps):
            yield None, idx, f"{hook.kind} hook step {idx + 1}", rs
    for scenario in file.scenarios:
        for idx, rs in enumerate(scenario.steps):
            yield scenario.title, idx, f"Scenario '{scenario.title}' step {idx + 1}", rs


def _finding(scenario: str | None, step: int | None, **fields: Any) -> dict[str, Any]:
    return {"scenario": scenario, "step": step, **fields}


@rule("R1", "import-source", "Import from '{source}' {detail}")
def import_source(file: TestFileDescriptor, ctx: ValidationContext):
    settings = ctx.settings
    for imp in file.imports:
        if imp.source in settings.framework_modules:
            yield _finding(None, None, source=imp.source,
                           detail=f"bypasses the fixture entry point '{settings.fixture_module}'")

    if not (file.scenarios or file.setup):
        return
    if not any(imp.source == settings.fixture_module and "test" in imp.names for imp in file.imports):
        yield _finding(None, None, source=settings.fixture_module,
                       detail="is missing: 'test' must come from the fixture entry point")


@rule("R2", "no-raw-locator", "{where}: {detail}")
def no_raw_locator(file: TestFileDescriptor, ctx: ValidationContext):
    for ref, idx, where, rs in _steps(file):
        if rs.raw:
            yield _finding(ref, idx, where=where,
                           detail=f"ad hoc interaction '{rs.step.verb}' bypasses the catalog")
        elif not rs.resolved:
            target = f" on {rs.step.target}" if rs.step.target else ""
            yield _finding(ref, idx, where=where,
                           detail=f"no cataloged method for '{rs.step.verb}'{target}")


@rule("R3", "group-size", "File holds {count} scenarios; expected {low}-{high} per file")
def group_size(file: TestFileDescriptor, ctx: ValidationContext):
    low, high = ctx.settings.min_group, ctx.settings.max_group
    count = len(file.scenarios)
    if low <= count <= high:
        return
    if ctx.bucket_size is not None and ctx.bucket_size < low and count <= ctx.bucket_size:
        return  # the whole bucket is smaller than one file
    yield _finding(None, None, count=count, low=low, high=high)


@rule("R4", "setup-hoist",
      "Scenarios {titles} repeat the '{seed}' setup; hoist it into the shared setup")
def setup_hoist(file: TestFileDescriptor, ctx: ValidationContext):
    hoisted = file.setup.steps if file.setup else ()
    for seed in ctx.catalog.list_seeds():
        if hoisted and seed.is_prefix_of(hoisted):
            continue  # already covered by the shared setup
        users = [s.title for s in file.scenarios if seed.is_prefix_of(hoisted + s.steps)]
        if len(users) >= 2:
            yield _finding(users[0], 0, seed=seed.name,
                           titles=", ".join(f"'{t}'" for t in users))


@rule("R5", "constant-use", "{where}: literal {value!r} duplicates constant {ref}; reference the constant")
def constant_use(file: TestFileDescriptor, ctx: ValidationContext):
    for ref, idx, where, rs in _steps(file):
        for value in rs.raw_literals:
            const = ctx.catalog.lookup_constant(value)
            if const:
                yield _finding(ref, idx, where=where, value=value, ref=const.ref)


@rule("R6", "naming", "File path '{path}' does not match {{feature}}/{{functionality}}{suffix}")
def naming(file: TestFileDescriptor, ctx: ValidationContext):
    suffix = ctx.settings.file_suffix
    pattern = re.compile(rf"^{SEGMENT}/{SEGMENT}{re.escape(suffix)}$")
    if not pattern.match(file.path):
        yield _finding(None, None, path=file.path, suffix=suffix)
