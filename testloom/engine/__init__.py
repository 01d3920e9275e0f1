from testloom.engine.grouper import GroupingResult, group, plan_groups
from testloom.engine.pipeline import FileResult, PipelineResult, resolve_plan, run_pipeline
from testloom.engine.resolver import resolve, resolve_scenario
from testloom.engine.synthesizer import synthesize

__all__ = [
    "FileResult",
    "GroupingResult",
    "PipelineResult",
    "group",
    "plan_groups",
    "resolve",
    "resolve_plan",
    "resolve_scenario",
    "run_pipeline",
    "synthesize",
]
