"""Name normalization helpers shared by the parser, builder and generators."""

import re
from typing import Iterable, Optional

NUMBER_WORDS = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_IDENT = re.compile(r"[^0-9a-zA-Z]+")


def normalize_name(name: str) -> str:
    """Collapse internal whitespace and strip surrounding whitespace."""
    return " ".join(name.split())


def name_key(name: str) -> str:
    """Case-insensitive lookup key for entity and attribute names."""
    return normalize_name(name).casefold()


def snake_case(name: str) -> str:
    """
    Convert a display name to a SQL-friendly identifier.

    Examples:
        "Order Date" -> "order_date"
        "OrderLine" -> "order_line"
        "E-mail Address" -> "e_mail_address"
    """
    s = _CAMEL_BOUNDARY.sub("_", normalize_name(name))
    s = _NON_IDENT.sub("_", s).strip("_").lower()
    if s and s[0].isdigit():
        s = f"_{s}"
    return s


def pluralize(name: str) -> str:
    """Pluralize the last word of a display name."""
    if not name:
        return name
    lower = name.lower()
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


def singular_candidates(name: str) -> list:
    """Possible singular forms of a (possibly plural) name, most specific first."""
    candidates = [name]
    lower = name.lower()
    if lower.endswith("ies") and len(name) > 3:
        candidates.append(name[:-3] + "y")
    if lower.endswith("es") and len(name) > 2:
        candidates.append(name[:-2])
    if lower.endswith("s") and not lower.endswith("ss") and len(name) > 1:
        candidates.append(name[:-1])
    return candidates


def singularize(name: str, known: Optional[Iterable[str]] = None) -> str:
    """
    Singularize a name, preferring a form that matches a known entity.

    Args:
        name: Name as written in the text (e.g. "Orders", "Categories")
        known: Known entity names used to pick the right singular form

    Returns:
        The known entity name when one matches, otherwise a best-effort singular
    """
    name = normalize_name(name)
    if known is not None:
        by_key = {name_key(k): k for k in known}
        for candidate in singular_candidates(name):
            if name_key(candidate) in by_key:
                return by_key[name_key(candidate)]

    lower = name.lower()
    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith(("sses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return name[:-1]
    return name


def parse_count(token: str) -> Optional[int]:
    """Parse a count written as digits or a number word ("3", "three")."""
    token = token.strip().lower()
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS.get(token)


def indefinite_article(name: str) -> str:
    """Return "an" for names starting with a vowel sound, otherwise "a"."""
    return "an" if name[:1].lower() in "aeiou" else "a"
