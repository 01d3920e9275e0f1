# Importing builtin registers R1..R6
from testloom.rules import builtin  # noqa: F401
from testloom.rules.loader import RuleSetError, default_rule_set, load_rule_set, parse_rules_yaml
from testloom.rules.registry import get_rule, load_rules, registered_rules, rule

__all__ = [
    "RuleSetError",
    "default_rule_set",
    "get_rule",
    "load_rule_set",
    "load_rules",
    "parse_rules_yaml",
    "registered_rules",
    "rule",
]
