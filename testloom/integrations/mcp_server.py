"""MCP Server exposing loom_* tools for an external planner."""
from __future__ import annotations

import json
import os

from mcp.server.fastmcp import FastMCP

from testloom.catalog.steps import parse_step
from testloom.commands.audit import audit_sources
from testloom.compiler import parse_plan, render
from testloom.engine import resolve, run_pipeline
from testloom.workspace import Workspace, get_workspace

mcp = FastMCP("testloom")


def _workspace() -> Workspace:
    return get_workspace(os.getcwd())


def _error(e: Exception) -> str:
    return json.dumps({"error": str(e)}, ensure_ascii=False)


@mcp.tool()
def loom_catalog() -> str:
    """List cataloged components with their methods, constants and seeds."""
    try:
        catalog = _workspace().catalog
        return json.dumps({
            "components": {
                c.name: {
                    "fixture": c.fixture,
                    "methods": [{"name": m.name, "kind": m.kind, "params": list(m.params)} for m in c.methods],
                }
                for c in catalog.components
            },
            "constants": {c.ref: c.value for c in catalog.constants},
            "seeds": {
                s.name: {"precondition": s.precondition, "steps": [rs.describe() for rs in s.setup]}
                for s in catalog.list_seeds()
            },
        }, ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)


@mcp.tool()
def loom_resolve_step(step: str) -> str:
    """Resolve one step ("Target: verb phrase 'literal'") to a catalog method."""
    try:
        rs = resolve(parse_step(step), _workspace().catalog)
        return json.dumps({
            "resolved": rs.resolved,
            "call": rs.describe(),
            "match": rs.match,
            "also_matched": list(rs.candidates),
            "raw_literals": list(rs.raw_literals),
        }, ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)


@mcp.tool()
def loom_synthesize(plan: dict, include_source: bool = True) -> str:
    """Group, synthesize and validate a plan ({name, scenarios: [{title, steps}]})."""
    try:
        ws = _workspace()
        result = run_pipeline(parse_plan(plan), ws.catalog, ws.rules)
        payload = result.to_dict()
        if include_source:
            for entry, fr in zip(payload["files"], result.files, strict=True):
                entry["source"] = render(fr.descriptor, ws.catalog)
        return json.dumps(payload, ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)


@mcp.tool()
def loom_audit(files: dict[str, str]) -> str:
    """Audit spec sources, given as {path: source text}."""
    try:
        ws = _workspace()
        reports = audit_sources(list(files.items()), ws.catalog, ws.rules)
        return json.dumps([r.to_dict() for r in reports], ensure_ascii=False, indent=2)
    except Exception as e:
        return _error(e)


def run_server():
    mcp.run(transport="stdio")
