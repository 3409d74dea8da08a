"""Identifier and path-segment conversions shared by planner, writer and registry."""

import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s_\-.]+")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def split_words(name: str) -> list[str]:
    """Split an identifier into words on separators and camelCase boundaries."""
    spaced = _ACRONYM_BOUNDARY.sub(r"\1 \2", _CAMEL_BOUNDARY.sub(r"\1 \2", name))
    return [w for w in _SEPARATORS.split(spaced) if w]


def kebab_case(name: str) -> str:
    """'UserProfile Card' -> 'user-profile-card'."""
    return "-".join(w.lower() for w in split_words(name))


def pascal_case(name: str, default: str = "Component") -> str:
    """
    File and export base name for a unit.

    Keeps inner capitals ('LoginForm' stays 'LoginForm'), joins dotted
    paths ('Card.Header' -> 'CardHeader') and drops anything that is not
    a valid identifier character.
    """
    words = [w for w in re.split(r"[\s_\-.]+", str(name or "")) if w]
    joined = "".join(w[0].upper() + w[1:] for w in words)
    cleaned = _NON_ALNUM.sub("", joined)
    if not cleaned:
        return default
    if cleaned[0].isdigit():
        cleaned = f"{default}{cleaned}"
    return cleaned


def title_from_kebab(segment: str) -> str:
    """'user-profile' -> 'User Profile'."""
    return " ".join(w[:1].upper() + w[1:] for w in segment.split("-") if w)


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


def pluralize(word: str) -> str:
    """Naive English plural used for action and table names."""
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def strip_suffixes(name: str, suffixes: tuple[str, ...]) -> str:
    """Remove the first matching suffix, never reducing the name to nothing."""
    for suffix in suffixes:
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


__all__ = [
    "split_words",
    "kebab_case",
    "pascal_case",
    "title_from_kebab",
    "capitalize",
    "pluralize",
    "strip_suffixes",
]
