"""Conformance check of a test file against the rule set."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from testloom.rules.loader import default_rule_set
from testloom.types import ValidationContext, ValidationReport, Violation

if TYPE_CHECKING:
    from testloom.catalog.registry import Catalog
    from testloom.types import RuleSet, TestFileDescriptor

logger = logging.getLogger(__name__)


def validate(
    file: TestFileDescriptor,
    catalog: Catalog,
    rule_set: RuleSet | None = None,
    *,
    bucket_size: int | None = None,
) -> ValidationReport:
    """Run every rule in order; all rules run even after a violation.

    ``bucket_size`` overrides the size recorded on the descriptor.
    """
    rule_set = rule_set or default_rule_set()
    ctx = ValidationContext(
        catalog=catalog,
        settings=rule_set.settings,
        bucket_size=bucket_size if bucket_size is not None else file.bucket_size,
    )

    violations: list[Violation] = []
    for r in rule_set.rules:
        try:
            violations.extend(r.violation(f) for f in r.check(file, ctx))
        except Exception as e:
            logger.exception("Rule %s (%s) crashed on %s", r.id, r.name, file.path)
            violations.append(Violation(r.id, f"Rule {r.name} could not be evaluated: {e}"))

    return ValidationReport(path=file.path, violations=tuple(violations))


def format_report(report: ValidationReport) -> str:
    if report.passed:
        return ""
    lines = [f"  {len(report.violations)} violation(s):"]
    for v in report.violations:
        lines.append(f"    ✗ {v}")
    return "\n".join(lines)
