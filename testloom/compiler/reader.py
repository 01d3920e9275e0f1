"""Best-effort structural reader for existing spec files.

Recognizes imports, ``test.before*/after*`` hooks, ``test(...)`` blocks and the
calls inside them. Awaited calls on cataloged fixtures resolve to their
methods. Anything reaching ``page``, locators or ``expect(...)`` is a raw
interaction, awaited or not. Other awaited calls are unresolved. Not a
TypeScript parser.
"""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from testloom.compiler.render import SEED_MARKER, UNRESOLVED_MARKER
from testloom.types import (
    HookBlock,
    ImportSpec,
    IntendedStep,
    ResolvedStep,
    Scenario,
    SetupBlock,
    StepArg,
    TestFileDescriptor,
)

if TYPE_CHECKING:
    from testloom.catalog.registry import Catalog

_IMPORT_RE = re.compile(
    r"""^\s*import\s+(?:type\s+)?(?:\{([^}]*)\}|([\w$]+)|\*\s+as\s+([\w$]+))\s+from\s+['"]([^'"]+)['"]""",
    re.MULTILINE,
)
_TEST_RE = re.compile(r"""\btest(?:\.(?:only|skip|fixme|fail))?\(\s*(['"`])((?:\\.|(?!\1).)*)\1\s*,""")
_HOOK_RE = re.compile(r"\btest\.(beforeEach|beforeAll|afterEach|afterAll)\(")
_LEAD_RE = re.compile(r"^(?:(?:const|let|var)\s+[\w$]+\s*=\s*)?(await\s+)?")
_RECEIVER_RE = re.compile(r"^([\w$]+)\s*\.")
_CALL_RE = re.compile(r"^([\w$]+)\.([\w$]+)\((.*)\)$", re.DOTALL)
_REF_RE = re.compile(r"^([A-Za-z_$][\w$]*)\.([A-Za-z_$][\w$]*)$")
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_RAW_RECEIVERS = frozenset({"page", "context", "browser", "request", "locator", "expect"})


def _block_end(source: str, open_idx: int) -> int:
    """Index of the brace closing the one at ``open_idx``; strings and comments skipped."""
    depth = 0
    i = open_idx
    n = len(source)
    while i < n:
        ch = source[i]
        if ch in "'\"`":
            i = _skip_string(source, i)
            continue
        if source.startswith("//", i):
            nl = source.find("\n", i)
            i = n if nl == -1 else nl
            continue
        if source.startswith("/*", i):
            close = source.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return n


def _skip_string(source: str, start: int) -> int:
    quote = source[start]
    i = start + 1
    while i < len(source):
        if source[i] == "\\":
            i += 2
            continue
        if source[i] == quote:
            return i + 1
        i += 1
    return len(source)


def _body_after(source: str, start: int) -> tuple[str, int]:
    """Text between the callback's braces following ``start``, and where it ends."""
    arrow = source.find("=>", start)
    if arrow == -1:
        return "", start
    open_idx = source.find("{", arrow)
    if open_idx == -1:
        return "", start
    end = _block_end(source, open_idx)
    return source[open_idx + 1:end], end


def _statements(body: str) -> list[str]:
    """Split on top-level ``;`` and newlines; line comments are kept as statements."""
    out: list[str] = []
    buf: list[str] = []
    depth = 0
    i = 0

    def flush():
        text = "".join(buf).strip()
        if text:
            out.append(text)
        buf.clear()

    while i < len(body):
        ch = body[i]
        if ch in "'\"`":
            end = _skip_string(body, i)
            buf.append(body[i:end])
            i = end
            continue
        if body.startswith("//", i):
            flush()
            nl = body.find("\n", i)
            nl = len(body) if nl == -1 else nl
            out.append(body[i:nl].strip())
            i = nl
            continue
        if body.startswith("/*", i):
            close = body.find("*/", i + 2)
            i = len(body) if close == -1 else close + 2
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if depth == 0 and ch in ";\n":
            flush()
        else:
            buf.append(ch)
        i += 1
    flush()
    return out


def _split_args(text: str) -> list[str]:
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in "'\"`":
            end = _skip_string(text, i)
            buf.append(text[i:end])
            i = end
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        i += 1
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts


def _parse_arg(text: str, catalog: Catalog) -> StepArg:
    """Only ``Group.KEY`` references bind a constant; a literal stays literal as written."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        value: Any = re.sub(r"\\(.)", r"\1", text[1:-1])
        return StepArg(value=value)
    if text in ("true", "false"):
        return StepArg(value=text == "true")
    if text == "null":
        return StepArg(value=None)
    if _NUMBER_RE.match(text):
        return StepArg(value=float(text) if "." in text else int(text))
    ref = _REF_RE.match(text)
    if ref:
        const = catalog.constant(text)
        if const:
            return StepArg(value=const.value, constant=const)
    return StepArg(value=text)


def _read_step(statement: str, catalog: Catalog) -> ResolvedStep | None:
    if statement.startswith(UNRESOLVED_MARKER):
        return ResolvedStep(step=IntendedStep(verb=statement[len(UNRESOLVED_MARKER):].strip()))
    if statement.startswith("//"):
        return None
    lead = _LEAD_RE.match(statement)
    expr = statement[lead.end():]
    head = _RECEIVER_RE.match(expr)
    if expr.startswith("expect(") or (head and head.group(1) in _RAW_RECEIVERS):
        # page.fill(...), page.locator(...).click(), expect(...).toBeVisible() and the like
        return ResolvedStep(step=IntendedStep(verb=expr, target="page"), raw=True)
    if not lead.group(1):
        return None

    call = _CALL_RE.match(expr)
    if not call:
        return ResolvedStep(step=IntendedStep(verb=expr, target="page"), raw=True)

    receiver, name, arg_text = call.groups()
    args = tuple(_parse_arg(a, catalog) for a in _split_args(arg_text))
    step = IntendedStep(verb=name, target=receiver, args=tuple(a.value for a in args))

    comp = catalog.component_for_fixture(receiver)
    method = catalog.method(comp.name, name) if comp else None
    if not method:
        return ResolvedStep(step=step, args=args)
    return ResolvedStep(step=step, method=method, args=args, match="exact")


def _read_steps(body: str, catalog: Catalog) -> tuple[tuple[ResolvedStep, ...], str | None]:
    steps: list[ResolvedStep] = []
    seed = None
    for statement in _statements(body):
        if statement.startswith(SEED_MARKER):
            seed = statement[len(SEED_MARKER):].strip().split(" ")[0] or None
            continue
        rs = _read_step(statement, catalog)
        if rs:
            steps.append(rs)
    return tuple(steps), seed


def _imports(source: str) -> tuple[ImportSpec, ...]:
    specs: list[ImportSpec] = []
    for m in _IMPORT_RE.finditer(source):
        named, default, star, src = m.groups()
        if named is not None:
            names = tuple(n.strip().split(" as ")[0].strip() for n in named.split(",") if n.strip())
        else:
            names = (default or star,)
        specs.append(ImportSpec(source=src, names=names))
    return tuple(specs)


def _match_seed(steps: tuple[ResolvedStep, ...], catalog: Catalog) -> str | None:
    for seed in catalog.list_seeds():
        if seed.resolvable and len(seed.setup) == len(steps) and seed.is_prefix_of(steps):
            return seed.name
    return None


def read_spec(source: str, path: str, catalog: Catalog) -> TestFileDescriptor:
    """Structural reading of a spec file, keyed by its ``feature/file`` path tail."""
    parts = PurePosixPath(path.replace("\\", "/")).parts
    rel_path = "/".join(parts[-2:])
    feature = parts[-2] if len(parts) >= 2 else ""

    setup = None
    hooks: list[HookBlock] = []
    for hook in _HOOK_RE.finditer(source):
        body, _ = _body_after(source, hook.end())
        steps, seed = _read_steps(body, catalog)
        kind = hook.group(1)
        if kind != "beforeEach" or setup is not None:
            hooks.append(HookBlock(kind=kind, steps=steps))
            continue
        seed = seed or _match_seed(steps, catalog)
        seed_desc = catalog.seed(seed) if seed else None
        setup = SetupBlock(
            steps=steps,
            seed=seed,
            precondition=seed_desc.precondition if seed_desc else "",
        )

    scenarios: list[Scenario] = []
    pos = 0
    while True:
        m = _TEST_RE.search(source, pos)
        if not m:
            break
        body, end = _body_after(source, m.end())
        steps, _ = _read_steps(body, catalog)
        title = re.sub(r"\\(.)", r"\1", m.group(2))
        scenarios.append(Scenario(title=title, steps=steps, feature=feature or None))
        pos = max(end, m.end())

    components: set[str] = set()
    for s in scenarios:
        components.update(s.required_components)
    if setup:
        components.update(setup.components)

    return TestFileDescriptor(
        path=rel_path,
        feature=feature,
        imports=_imports(source),
        components=tuple(sorted(components)),
        scenarios=tuple(scenarios),
        setup=setup,
        bucket_size=None,
        hooks=tuple(hooks),
    )
