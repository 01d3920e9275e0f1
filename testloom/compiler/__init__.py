from testloom.compiler.plan import PlanError, load_plan, parse_plan, parse_plan_yaml
from testloom.compiler.reader import read_spec
from testloom.compiler.render import render
from testloom.compiler.validator import format_report, validate

__all__ = [
    "PlanError",
    "format_report",
    "load_plan",
    "parse_plan",
    "parse_plan_yaml",
    "read_spec",
    "render",
    "validate",
]
