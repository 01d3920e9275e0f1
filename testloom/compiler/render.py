"""Render a TestFileDescriptor as a Playwright-style TypeScript spec."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from testloom.catalog.registry import Catalog
    from testloom.types import ResolvedStep, StepArg, TestFileDescriptor

UNRESOLVED_MARKER = "// UNRESOLVED:"
SEED_MARKER = "// seed:"
INDENT = "  "


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    return json.dumps(value, sort_keys=True)


def _arg(arg: StepArg) -> str:
    return arg.constant.ref if arg.constant else _literal(arg.value)


def _fixture(owner: str, catalog: Catalog) -> str:
    comp = catalog.component(owner)
    return comp.fixture if comp else owner


def _statement(rs: ResolvedStep, catalog: Catalog) -> str:
    if not rs.resolved:
        return f"{UNRESOLVED_MARKER} {rs.step}"
    args = ", ".join(_arg(a) for a in rs.args)
    return f"await {_fixture(rs.method.owner, catalog)}.{rs.method.name}({args});"


def _callback(steps: Sequence[ResolvedStep], catalog: Catalog) -> str:
    fixtures = sorted({_fixture(rs.method.owner, catalog) for rs in steps if rs.resolved})
    if not fixtures:
        return "async () =>"
    return f"async ({{ {', '.join(fixtures)} }}) =>"


def render(file: TestFileDescriptor, catalog: Catalog) -> str:
    lines: list[str] = []
    for imp in file.imports:
        lines.append(f"import {{ {', '.join(imp.names)} }} from {_quote(imp.source)};")
    lines.append("")
    lines.append(f"test.describe({_quote(file.feature)}, () => {{")

    blocks: list[list[str]] = []
    if file.setup:
        block = [f"{INDENT}test.beforeEach({_callback(file.setup.steps, catalog)} {{"]
        if file.setup.seed:
            note = f" ({file.setup.precondition})" if file.setup.precondition else ""
            block.append(f"{INDENT * 2}{SEED_MARKER} {file.setup.seed}{note}")
        block.extend(f"{INDENT * 2}{_statement(rs, catalog)}" for rs in file.setup.steps)
        block.append(f"{INDENT}}});")
        blocks.append(block)

    for scenario in file.scenarios:
        block = [f"{INDENT}test({_quote(scenario.title)}, {_callback(scenario.steps, catalog)} {{"]
        block.extend(f"{INDENT * 2}{_statement(rs, catalog)}" for rs in scenario.steps)
        block.append(f"{INDENT}}});")
        blocks.append(block)

    for i, block in enumerate(blocks):
        if i:
            lines.append("")
        lines.extend(block)
    lines.append("});")
    return "\n".join(lines) + "\n"
