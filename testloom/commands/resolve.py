"""loom resolve "<step>": show which catalog method a single step maps to."""
from __future__ import annotations

import sys

from testloom.catalog.steps import parse_step
from testloom.engine.resolver import resolve
from testloom.workspace import load_workspace


def cmd_resolve(text: str, cwd: str):
    try:
        ws = load_workspace(cwd)
        step = parse_step(text)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    rs = resolve(step, ws.catalog)
    if not rs.resolved:
        print(f"✗ Unresolved: {step}")
        print("  Add a matching method to the catalog; raw interactions are never generated.")
        sys.exit(1)

    print(f"✓ {rs.describe()} [{rs.match}]")
    if rs.candidates:
        print(f"  also matched: {', '.join(rs.candidates)}")
    for arg in rs.args:
        if arg.constant is None:
            print(f"  ⚠ literal {arg.value!r} kept (no matching constant)")
