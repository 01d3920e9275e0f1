"""loom check: load catalog + rule set, report what was compiled."""
from __future__ import annotations

import sys

from testloom.workspace import load_workspace


def cmd_check(cwd: str):
    try:
        ws = load_workspace(cwd)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✓ Catalog loaded: {ws.catalog.summary()}")
    for comp in ws.catalog.components:
        names = ", ".join(m.name for m in comp.methods) or "(no methods)"
        print(f"    {comp.name} [{comp.fixture}]: {names}")

    settings = ws.rules.settings
    print(f"✓ Rule set: {len(ws.rules.rules)} rules, "
          f"{settings.min_group}-{settings.max_group} scenarios per file")
    for r in ws.rules.rules:
        print(f"    {r.id} {r.name}")

    broken = 0
    for seed in ws.catalog.list_seeds():
        if seed.resolvable:
            print(f'✓ Seed "{seed.name}": {len(seed.setup)} setup steps ({seed.precondition or "no precondition"})')
            continue
        broken += 1
        print(f'⚠ Seed "{seed.name}" cannot be hoisted:')
        for idx, rs in enumerate(seed.setup):
            if not rs.resolved:
                print(f"    step {idx + 1}: no catalog method for '{rs.step}'")

    if broken:
        sys.exit(1)
