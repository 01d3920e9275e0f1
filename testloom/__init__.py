"""Convention-constrained test synthesis and conformance auditing."""
from testloom.rules.registry import rule

__all__ = ["rule"]
__version__ = "0.1.0"
