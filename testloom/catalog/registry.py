"""Read-only registry of reusable page-object methods, constants and seeds."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from testloom.catalog.vocabulary import component_key, phrase_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from testloom.types import (
        ComponentDescriptor,
        ConstantDescriptor,
        MethodDescriptor,
        SeedDescriptor,
    )

logger = logging.getLogger(__name__)


class Catalog:
    """Lookup tables built once per process and never mutated afterwards.

    A miss is returned as ``None``; callers treat it as "no match" and
    escalate, never as an error.
    """

    def __init__(
        self,
        components: Iterable[ComponentDescriptor] = (),
        constants: Iterable[ConstantDescriptor] = (),
        seeds: Iterable[SeedDescriptor] = (),
    ):
        self._components: tuple[ComponentDescriptor, ...] = tuple(components)
        self._constants: tuple[ConstantDescriptor, ...] = tuple(constants)
        self._seeds: tuple[SeedDescriptor, ...] = tuple(seeds)

        self._by_key: dict[str, ComponentDescriptor] = {}
        self._by_fixture: dict[str, ComponentDescriptor] = {}
        for comp in self._components:
            self._by_key.setdefault(component_key(comp.name), comp)
            self._by_fixture.setdefault(comp.fixture, comp)

        self._constants_by_value: dict[tuple[type, Any], ConstantDescriptor] = {}
        self._constants_by_ref: dict[str, ConstantDescriptor] = {}
        for const in self._constants:
            self._constants_by_ref.setdefault(const.ref, const)
            try:
                self._constants_by_value.setdefault((type(const.value), const.value), const)
            except TypeError:
                logger.debug("Constant %s has an unhashable value; skipped for substitution", const.ref)

    # ─── Components & methods ───

    @property
    def components(self) -> tuple[ComponentDescriptor, ...]:
        return self._components

    def component(self, hint: str) -> ComponentDescriptor | None:
        return self._by_key.get(component_key(hint)) or self._by_fixture.get(hint)

    def component_for_fixture(self, fixture: str) -> ComponentDescriptor | None:
        return self._by_fixture.get(fixture)

    def method(self, component: str, name: str) -> MethodDescriptor | None:
        """Exact lookup by method name, used when reading existing files."""
        comp = self.component(component)
        if not comp:
            return None
        for m in comp.methods:
            if m.name == name:
                return m
        return None

    def match_methods(
        self, component: str | None, verb_phrase: str, *, synonyms: bool = False
    ) -> list[MethodDescriptor]:
        """All methods whose name matches the phrase, in declaration order.

        With no component hint every component is searched, again in
        declaration order. An unknown hint matches nothing.
        """
        if component:
            comp = self.component(component)
            scope = (comp,) if comp else ()
        else:
            scope = self._components

        wanted = phrase_key(verb_phrase, synonyms=synonyms)
        if not wanted:
            return []
        return [
            m for comp in scope for m in comp.methods
            if phrase_key(m.name, synonyms=synonyms) == wanted
        ]

    def lookup_method(self, component: str | None, verb_phrase: str) -> MethodDescriptor | None:
        """Exact match first, then the synonym table; first declared wins."""
        for synonyms in (False, True):
            found = self.match_methods(component, verb_phrase, synonyms=synonyms)
            if found:
                return found[0]
        return None

    # ─── Constants ───

    @property
    def constants(self) -> tuple[ConstantDescriptor, ...]:
        return self._constants

    def lookup_constant(self, literal: Any) -> ConstantDescriptor | None:
        try:
            return self._constants_by_value.get((type(literal), literal))
        except TypeError:
            return None

    def constant(self, ref: str) -> ConstantDescriptor | None:
        """Lookup by ``Group.KEY`` reference."""
        return self._constants_by_ref.get(ref)

    # ─── Seeds ───

    def list_seeds(self) -> tuple[SeedDescriptor, ...]:
        return self._seeds

    def seed(self, name: str) -> SeedDescriptor | None:
        for s in self._seeds:
            if s.name == name:
                return s
        return None

    def with_seeds(self, seeds: Iterable[SeedDescriptor]) -> Catalog:
        return Catalog(self._components, self._constants, seeds)

    def summary(self) -> str:
        methods = sum(len(c.methods) for c in self._components)
        return (
            f"{len(self._components)} components, {methods} methods, "
            f"{len(self._constants)} constants, {len(self._seeds)} seeds"
        )
