"""Parse planner steps (mapping or shorthand string) into IntendedStep."""
from __future__ import annotations

import re
from typing import Any

from testloom.types import IntendedStep

# Alias key -> internal key mapping
KEYWORD_MAP = {
    "do": "verb",
    "action": "verb",
    "phrase": "verb",
    "on": "target",
    "page": "target",
    "component": "target",
    "with": "args",
    "arguments": "args",
    "name": "title",
    "scenario": "title",
    "tag": "feature",
}

# quoted text, or a bare URL, is a literal argument
_QUOTED_RE = re.compile(r"""'([^']*)'|"([^"]*)"|\b([a-z][a-z0-9+.-]*://\S+)""")
_TARGET_RE = re.compile(r"^\s*([A-Za-z_][\w ]*?)\s*:(?!/)\s*(.+)$")
_SPACES_RE = re.compile(r"\s+")


def normalize_key(key: Any) -> Any:
    # YAML 1.1 loads a bare `on:` key as boolean true
    if key is True:
        return "target"
    return KEYWORD_MAP.get(key, key)


def normalize(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {normalize_key(k): normalize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [normalize(item) for item in obj]
    return obj


def parse_shorthand(text: str) -> IntendedStep:
    """Parse ``"LoginPage: type 'secret_sauce' into password"``.

    Quoted tokens and bare URLs become literal args in order of appearance;
    the part before the first colon names the target when it is plain words
    and the colon is not part of a URL.
    """
    target = None
    body = text
    m = _TARGET_RE.match(text)
    if m:
        target, body = m.group(1).strip(), m.group(2)

    args = tuple(
        next(g for g in q.groups() if g is not None) for q in _QUOTED_RE.finditer(body)
    )
    verb = _SPACES_RE.sub(" ", _QUOTED_RE.sub(" ", body)).strip()
    return IntendedStep(verb=verb, target=target, args=args)


def parse_step(raw: Any) -> IntendedStep:
    if isinstance(raw, str):
        step = parse_shorthand(raw)
    elif isinstance(raw, dict):
        body = normalize(raw)
        verb = body.get("verb")
        if not isinstance(verb, str) or not verb.strip():
            raise ValueError(f"Step is missing a verb phrase: {raw!r}")
        args = body.get("args", ())
        if not isinstance(args, list | tuple):
            args = (args,)
        target = body.get("target")
        step = IntendedStep(
            verb=verb.strip(),
            target=str(target).strip() if target else None,
            args=tuple(args),
        )
    else:
        raise ValueError(f"Step must be a string or mapping, got {type(raw).__name__}")

    if not step.verb:
        raise ValueError(f"Step has an empty verb phrase: {raw!r}")
    return step
