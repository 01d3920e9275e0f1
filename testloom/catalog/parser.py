"""Parse the YAML catalog (components, constants, seeds) into a Catalog."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from testloom.catalog.registry import Catalog
from testloom.catalog.steps import parse_step
from testloom.catalog.vocabulary import fixture_name, split_words
from testloom.engine.resolver import resolve
from testloom.types import (
    ComponentDescriptor,
    ConstantDescriptor,
    MethodDescriptor,
    SeedDescriptor,
)

logger = logging.getLogger(__name__)

ASSERTION_VERBS = frozenset({"expect", "assert", "verify", "should"})
METHOD_KINDS = frozenset({"action", "assertion"})


class CatalogError(ValueError):
    pass


def _infer_kind(name: str) -> str:
    words = split_words(name)
    return "assertion" if words and words[0] in ASSERTION_VERBS else "action"


def _parse_params(owner: str, name: str, params: Any) -> tuple[str, ...]:
    if params is None:
        return ()
    if isinstance(params, int) and not isinstance(params, bool):
        if params < 0:
            raise CatalogError(f"{owner}.{name}: arity must be >= 0")
        return tuple(f"arg{i + 1}" for i in range(params))
    if isinstance(params, list):
        return tuple(str(p) for p in params)
    raise CatalogError(f"{owner}.{name}: params must be an arity or a list of names")


def _parse_method(owner: str, raw: Any) -> MethodDescriptor:
    """A method is ``name``, ``{name: arity}`` or ``{name, kind?, params?, effect?}``."""
    if isinstance(raw, str):
        return MethodDescriptor(owner=owner, name=raw, kind=_infer_kind(raw))

    if not isinstance(raw, dict):
        raise CatalogError(f"{owner}: invalid method entry {raw!r}")

    if "name" not in raw:
        if len(raw) != 1:
            raise CatalogError(f"{owner}: method entry needs a name: {raw!r}")
        name, params = next(iter(raw.items()))
        return MethodDescriptor(
            owner=owner, name=str(name), kind=_infer_kind(str(name)),
            params=_parse_params(owner, str(name), params),
        )

    name = str(raw["name"])
    kind = raw.get("kind") or _infer_kind(name)
    if kind not in METHOD_KINDS:
        raise CatalogError(f"{owner}.{name}: kind must be one of {sorted(METHOD_KINDS)}")
    return MethodDescriptor(
        owner=owner,
        name=name,
        kind=kind,
        params=_parse_params(owner, name, raw.get("params")),
        effect=str(raw.get("effect", "")),
    )


def _parse_components(raw: Any) -> list[ComponentDescriptor]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise CatalogError('"components" must be a mapping of component name to methods')

    components: list[ComponentDescriptor] = []
    for name, body in raw.items():
        name = str(name)
        if isinstance(body, list):
            body = {"methods": body}
        elif body is None:
            body = {}
        if not isinstance(body, dict):
            raise CatalogError(f"Component {name}: expected a mapping or a method list")

        methods = [_parse_method(name, m) for m in body.get("methods") or []]
        seen: set[str] = set()
        for m in methods:
            if m.name in seen:
                raise CatalogError(f"Duplicate method: {name}.{m.name}")
            seen.add(m.name)

        components.append(ComponentDescriptor(
            name=name,
            fixture=str(body.get("fixture") or fixture_name(name)),
            methods=tuple(methods),
        ))
    return components


def _parse_constants(raw: Any) -> list[ConstantDescriptor]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise CatalogError('"constants" must be a mapping of group to {key: literal}')

    constants: list[ConstantDescriptor] = []
    for group, table in raw.items():
        if not isinstance(table, dict):
            raise CatalogError(f"Constant group {group}: expected a mapping of key to literal")
        for key, value in table.items():
            constants.append(ConstantDescriptor(group=str(group), key=str(key), value=value))
    return constants


def _parse_seeds(raw: Any, catalog: Catalog) -> list[SeedDescriptor]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise CatalogError('"seeds" must be a mapping of seed name to {precondition, steps}')

    seeds: list[SeedDescriptor] = []
    for name, body in raw.items():
        if isinstance(body, list):
            body = {"steps": body}
        if not isinstance(body, dict) or not isinstance(body.get("steps"), list) or not body["steps"]:
            raise CatalogError(f'Seed {name}: missing "steps" list')
        try:
            actions = tuple(parse_step(s) for s in body["steps"])
        except ValueError as e:
            raise CatalogError(f"Seed {name}: {e}") from e

        setup = tuple(resolve(a, catalog) for a in actions)
        for idx, rs in enumerate(setup):
            if not rs.resolved:
                logger.warning("Seed %s: setup step %d (%s) has no catalog method; seed will never be hoisted",
                               name, idx + 1, rs.step)
        seeds.append(SeedDescriptor(
            name=str(name),
            precondition=str(body.get("precondition", "")),
            setup_actions=actions,
            setup=setup,
        ))
    return seeds


def parse_catalog_yaml(content: str) -> Catalog:
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise CatalogError("Invalid catalog: expected a mapping")

    base = Catalog(_parse_components(raw.get("components")), _parse_constants(raw.get("constants")))
    # Seeds resolve against components + constants, so they are attached last
    return base.with_seeds(_parse_seeds(raw.get("seeds"), base))


def load_catalog(path: str | Path) -> Catalog:
    path = Path(path)
    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")
    return parse_catalog_yaml(path.read_text(encoding="utf-8"))
