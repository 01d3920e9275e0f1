"""loom synth <plan> [--out DIR] [--workers N]: generate conforming test files."""
from __future__ import annotations

import sys
from pathlib import Path

from testloom.compiler import format_report, load_plan, render
from testloom.engine import run_pipeline
from testloom.workspace import load_workspace


def cmd_synth(plan_name: str, cwd: str, out_dir: str | None = None, workers: int | None = None):
    try:
        ws = load_workspace(cwd)
        plan = load_plan(ws.plan_path(plan_name))
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    result = run_pipeline(plan, ws.catalog, ws.rules, max_workers=workers)

    for fr in result.files:
        d = fr.descriptor
        setup = f", setup: {d.setup.seed}" if d.setup else ""
        mark = "✓" if fr.report.passed else "✗"
        print(f"{mark} {d.path} ({len(d.scenarios)} scenarios{setup})")
        if not fr.report.passed:
            print(format_report(fr.report))

    if result.unresolved:
        print(f"\n{len(result.unresolved)} unresolved step(s); add catalog entries and rerun:")
        for u in result.unresolved:
            print(f"    ✗ {u}")
    if result.ambiguous:
        print(f"\n{len(result.ambiguous)} ambiguous match(es), resolved by tie-break:")
        for a in result.ambiguous:
            print(f"    ⚠ {a}")
    for d in result.degenerate:
        print(f"⚠ {d}")

    if out_dir:
        root = Path(out_dir)
        for fr in result.files:
            target = root / fr.descriptor.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(render(fr.descriptor, ws.catalog), encoding="utf-8")
        print(f"\nWrote {len(result.files)} file(s) to {root}")

    if not result.passed:
        sys.exit(1)
