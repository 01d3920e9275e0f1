"""loom audit <file>...: check existing spec files against the rule set."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from testloom.compiler import format_report, read_spec, validate
from testloom.workspace import load_workspace

if TYPE_CHECKING:
    from testloom.catalog.registry import Catalog
    from testloom.types import RuleSet, TestFileDescriptor, ValidationReport


def bucket_sizes(files: list[TestFileDescriptor]) -> list[int]:
    """Files in one feature directory with the same shared setup form one bucket."""
    totals: dict[tuple[str, str | None], int] = {}
    keys = []
    for f in files:
        key = (f.feature, f.setup.seed if f.setup else None)
        totals[key] = totals.get(key, 0) + len(f.scenarios)
        keys.append(key)
    return [totals[k] for k in keys]


def audit_sources(
    sources: list[tuple[str, str]], catalog: Catalog, rule_set: RuleSet
) -> list[ValidationReport]:
    """(path, source text) pairs in, one report per file out."""
    files = [read_spec(text, path, catalog) for path, text in sources]
    return [
        validate(f, catalog, rule_set, bucket_size=size)
        for f, size in zip(files, bucket_sizes(files), strict=True)
    ]


def cmd_audit(paths: list[str], cwd: str):
    try:
        ws = load_workspace(cwd)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)

    sources: list[tuple[str, str]] = []
    for p in paths:
        path = Path(p)
        if not path.is_file():
            print(f"✗ File not found: {path}", file=sys.stderr)
            sys.exit(1)
        sources.append((str(path), path.read_text(encoding="utf-8")))

    reports = audit_sources(sources, ws.catalog, ws.rules)
    failed = 0
    for (path, _), report in zip(sources, reports, strict=True):
        if report.passed:
            print(f"✓ {path}")
        else:
            failed += 1
            print(f"✗ {path}")
            print(format_report(report))

    print(f"\n{len(reports) - failed}/{len(reports)} file(s) conform")
    if failed:
        sys.exit(1)
