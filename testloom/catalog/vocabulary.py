"""Word-level normalization for matching verb phrases against method names."""
from __future__ import annotations

import re

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD_RE = re.compile(r"[^a-z0-9]+")

# Filler words ignored on both sides of a comparison
STOPWORDS = frozenset({
    "a", "an", "the", "is", "are", "be", "that",
    "on", "in", "into", "to", "at", "of", "for", "from", "with",
    "field", "button", "link",
})

# canonical word -> synonyms (multi-word synonyms allowed)
SYNONYMS: dict[str, tuple[str, ...]] = {
    "click": ("press", "tap", "hit"),
    "fill": ("type", "enter", "input", "set"),
    "navigate": ("go to", "goto", "open", "visit", "browse to", "load"),
    "expect": ("assert", "verify", "ensure", "should see", "see", "check that"),
    "select": ("choose", "pick"),
    "visible": ("displayed", "shown", "present"),
}

# Longest synonyms first so "go to" wins over any single-word alias
_SYNONYM_INDEX: list[tuple[tuple[str, ...], str]] = sorted(
    ((tuple(alias.split()), canonical) for canonical, aliases in SYNONYMS.items() for alias in aliases),
    key=lambda item: -len(item[0]),
)


def split_words(text: str) -> list[str]:
    """'fillUserName' / 'fill user-name' -> ['fill', 'user', 'name']."""
    spaced = _CAMEL_RE.sub(" ", text)
    return [w for w in _NON_WORD_RE.split(spaced.lower()) if w]


def canonicalize(words: list[str]) -> list[str]:
    out: list[str] = []
    i = 0
    while i < len(words):
        for alias, canonical in _SYNONYM_INDEX:
            if tuple(words[i:i + len(alias)]) == alias:
                out.append(canonical)
                i += len(alias)
                break
        else:
            out.append(words[i])
            i += 1
    return out


def phrase_key(text: str, *, synonyms: bool = False) -> tuple[str, ...]:
    """Comparable form of a verb phrase or method name."""
    words = split_words(text)
    if synonyms:
        words = canonicalize(words)
    return tuple(w for w in words if w not in STOPWORDS)


def slugify(text: str, max_words: int = 6) -> str:
    return "-".join(split_words(text)[:max_words])


def component_tag(name: str) -> str:
    """Feature tag for a component: 'CartPage' -> 'cart'."""
    words = split_words(name)
    if len(words) > 1 and words[-1] == "page":
        words = words[:-1]
    return "-".join(words)


def component_key(name: str) -> str:
    """Loose identity for matching target hints: 'Login page', 'loginpage', 'login' all agree."""
    key = "".join(split_words(name))
    if key.endswith("page") and len(key) > len("page"):
        key = key[:-len("page")]
    return key


def fixture_name(component: str) -> str:
    """'CartPage' -> 'cartPage'."""
    words = split_words(component)
    if not words:
        return component
    return words[0] + "".join(w.capitalize() for w in words[1:])
