from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from testloom.catalog.registry import Catalog

# ─── Catalog entries ───

@dataclass(frozen=True)
class MethodDescriptor:
    owner: str
    name: str
    kind: str = "action"  # action | assertion
    params: tuple[str, ...] = ()
    effect: str = ""

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass(frozen=True)
class ComponentDescriptor:
    name: str
    fixture: str  # variable name the component is injected as
    methods: tuple[MethodDescriptor, ...] = ()


@dataclass(frozen=True)
class ConstantDescriptor:
    group: str
    key: str
    value: Any

    @property
    def ref(self) -> str:
        return f"{self.group}.{self.key}"


@dataclass(frozen=True)
class SeedDescriptor:
    name: str
    precondition: str = ""
    setup_actions: tuple[IntendedStep, ...] = ()
    setup: tuple[ResolvedStep, ...] = ()  # setup_actions resolved against the catalog

    @property
    def resolvable(self) -> bool:
        return bool(self.setup) and all(s.resolved for s in self.setup)

    @property
    def owners(self) -> tuple[str, ...]:
        return _unique(s.method.owner for s in self.setup if s.method)

    def is_prefix_of(self, steps: Sequence[ResolvedStep]) -> bool:
        """True when ``steps`` starts with exactly this seed's setup steps."""
        if not self.resolvable or len(steps) < len(self.setup):
            return False
        return all(a.key == b.key for a, b in zip(self.setup, steps, strict=False))

# ─── Planner steps ───

@dataclass(frozen=True)
class IntendedStep:
    verb: str
    target: str | None = None
    args: tuple[Any, ...] = ()

    def __str__(self):
        where = f" on {self.target}" if self.target else ""
        args = f" with {', '.join(repr(a) for a in self.args)}" if self.args else ""
        return f"{self.verb}{where}{args}"


@dataclass(frozen=True)
class StepArg:
    value: Any
    constant: ConstantDescriptor | None = None

    @property
    def key(self) -> str:
        return self.constant.ref if self.constant else repr(self.value)


@dataclass(frozen=True)
class ResolvedStep:
    step: IntendedStep
    method: MethodDescriptor | None = None
    args: tuple[StepArg, ...] = ()
    match: str | None = None  # exact | synonym | None when unresolved
    candidates: tuple[str, ...] = ()  # other methods that matched equally well
    raw: bool = False  # ad hoc low-level interaction (only ever read from external files)

    @property
    def resolved(self) -> bool:
        return self.method is not None and not self.raw

    @property
    def key(self) -> tuple | None:
        """Identity used for prefix comparison; unresolved steps never compare equal."""
        if not self.resolved:
            return None
        return (self.method.owner, self.method.name, tuple(a.key for a in self.args))

    @property
    def raw_literals(self) -> tuple[Any, ...]:
        return tuple(a.value for a in self.args if a.constant is None)

    def describe(self) -> str:
        if self.raw:
            return f"RAW: {self.step.verb}"
        if not self.method:
            return f"UNRESOLVED: {self.step}"
        args = ", ".join(a.constant.ref if a.constant else repr(a.value) for a in self.args)
        return f"{self.method.qualified_name}({args})"


@dataclass(frozen=True)
class PlannedScenario:
    title: str
    steps: tuple[IntendedStep, ...] = ()
    feature: str | None = None


@dataclass(frozen=True)
class Plan:
    name: str
    scenarios: tuple[PlannedScenario, ...] = ()


@dataclass(frozen=True)
class Scenario:
    title: str
    steps: tuple[ResolvedStep, ...] = ()
    feature: str | None = None  # declared feature tag, overrides derivation

    @property
    def required_components(self) -> tuple[str, ...]:
        return _unique(s.method.owner for s in self.steps if s.resolved)

# ─── Grouping & synthesis ───

@dataclass(frozen=True)
class SetupBlock:
    steps: tuple[ResolvedStep, ...]
    seed: str | None = None
    precondition: str = ""

    @property
    def components(self) -> tuple[str, ...]:
        return _unique(s.method.owner for s in self.steps if s.resolved)


@dataclass(frozen=True)
class HookBlock:
    """A ``beforeAll`` / ``afterEach`` / ``afterAll`` body read from an existing file."""
    kind: str
    steps: tuple[ResolvedStep, ...] = ()


@dataclass(frozen=True)
class FileGroup:
    feature: str
    file_path: str
    scenarios: tuple[Scenario, ...]
    shared_setup: SetupBlock | None = None
    bucket_size: int = 0  # scenarios in the bucket (feature + seed cohort) this group came from


@dataclass(frozen=True)
class ImportSpec:
    source: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class TestFileDescriptor:
    __test__ = False

    path: str
    feature: str
    imports: tuple[ImportSpec, ...] = ()
    components: tuple[str, ...] = ()
    scenarios: tuple[Scenario, ...] = ()
    setup: SetupBlock | None = None
    bucket_size: int | None = None  # None when unknown (externally supplied file)
    hooks: tuple[HookBlock, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "feature": self.feature,
            "imports": [{"source": i.source, "names": list(i.names)} for i in self.imports],
            "components": list(self.components),
            "setup": {
                "seed": self.setup.seed,
                "steps": [s.describe() for s in self.setup.steps],
            } if self.setup else None,
            "scenarios": [
                {"title": s.title, "steps": [st.describe() for st in s.steps]}
                for s in self.scenarios
            ],
            "hooks": [
                {"kind": h.kind, "steps": [st.describe() for st in h.steps]}
                for h in self.hooks
            ],
        }

# ─── Rules & validation ───

@dataclass(frozen=True)
class Violation:
    rule_id: str
    message: str
    scenario: str | None = None
    step_index: int | None = None

    def __str__(self):
        return f"{self.rule_id}: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    path: str
    violations: tuple[Violation, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "passed": self.passed,
            "violations": [
                {"rule_id": v.rule_id, "scenario": v.scenario,
                 "step_index": v.step_index, "message": v.message}
                for v in self.violations
            ],
        }


@dataclass(frozen=True)
class RuleSettings:
    min_group: int = 3
    max_group: int = 6
    fixture_module: str = "../fixtures"
    framework_modules: tuple[str, ...] = ("@playwright/test",)
    constants_module: str = "../constants"
    file_suffix: str = ".spec.ts"


@dataclass(frozen=True)
class ValidationContext:
    catalog: Catalog
    settings: RuleSettings
    bucket_size: int | None = None


@dataclass(frozen=True)
class Rule:
    id: str
    name: str
    message: str  # str.format template filled from each finding
    check: Callable[[TestFileDescriptor, ValidationContext], Iterable[dict[str, Any]]]

    def violation(self, finding: dict[str, Any]) -> Violation:
        return Violation(
            rule_id=self.id,
            message=self.message.format(**finding),
            scenario=finding.get("scenario"),
            step_index=finding.get("step"),
        )


@dataclass(frozen=True)
class RuleSet:
    rules: tuple[Rule, ...] = ()
    settings: RuleSettings = field(default_factory=RuleSettings)

# ─── Pipeline issues (reported, never raised) ───

@dataclass(frozen=True)
class UnresolvedAction:
    scenario: str
    step_index: int
    step: IntendedStep

    def __str__(self):
        return f"[{self.scenario}] step {self.step_index + 1}: no catalog method for '{self.step}'"


@dataclass(frozen=True)
class AmbiguousMatch:
    scenario: str
    step_index: int
    step: IntendedStep
    chosen: str
    candidates: tuple[str, ...]

    def __str__(self):
        return (
            f"[{self.scenario}] step {self.step_index + 1}: '{self.step.verb}' matched "
            f"{self.chosen} (also: {', '.join(self.candidates)})"
        )


@dataclass(frozen=True)
class GroupingDegenerate:
    feature: str
    reason: str

    def __str__(self):
        return f"[{self.feature}] {self.reason}"


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))
