"""
Bullet pattern table.

Bullets are classified by trying each pattern in order; the first pattern
whose regex matches and whose builder accepts the match wins. A builder
returns None to decline (e.g. `X is a Y` where Y is not an entity), in which
case the next pattern is tried. Bullets no pattern accepts are unparsed.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from semdown.dsl.statements import (
    AttributeFact,
    ConstraintFact,
    RelationshipFact,
    StatementNode,
    SubtypeCondition,
    SubtypeFact,
)
from semdown.utils.naming import name_key, normalize_name, parse_count, singularize

_LEADING_ARTICLE = re.compile(r"^(?:a|an|each|every|the)\s+", re.IGNORECASE)
_PRONOUNS = {"it", "they", "this entity"}
_EXAMPLE_SUFFIX = re.compile(
    r",?\s+(?:for example|for instance|e\.g\.?|such as)[:,]?\s+(?P<example>.+)$",
    re.IGNORECASE,
)
_TYPE_SUFFIX = re.compile(r"\s*\((?P<type>[^()]+)\)$")
_QUOTES = "'\"`"


@dataclass
class BulletContext:
    """Everything a pattern builder needs to know about one bullet."""

    line: int
    text: str
    owner: str
    known: List[str]  # declared entity names, in declaration order
    bold: Set[str] = field(default_factory=set)  # name keys marked **bold** in the bullet

    def is_entity(self, name: str) -> bool:
        key = name_key(name)
        return key in self.bold or key in {name_key(k) for k in self.known}

    def entity_name(self, name: str) -> str:
        """Canonical display name of a (possibly undeclared) entity reference."""
        name = normalize_name(name)
        for known in self.known:
            if name_key(known) == name_key(name):
                return known
        return name

    def subject(self, raw: str) -> str:
        subject = normalize_name(raw)
        if subject.casefold() in _PRONOUNS:
            return self.owner
        subject = _LEADING_ARTICLE.sub("", subject)
        return self.entity_name(subject)

    def plural_entity(self, raw: str) -> str:
        return self.entity_name(singularize(raw, self.known))


Builder = Callable[[re.Match, BulletContext], Optional[StatementNode]]


@dataclass
class BulletPattern:
    """One row of the pattern table."""

    name: str
    regex: re.Pattern
    build: Builder


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        return value[1:-1]
    return value


def split_object(obj: str):
    """
    Split `<Name> (<Type>), for example <value>` into its parts.

    Returns:
        Tuple of (name, declared_type, example)
    """
    example = None
    declared_type = None
    m = _EXAMPLE_SUFFIX.search(obj)
    if m:
        example = m.group("example").strip()
        obj = obj[: m.start()]
        t = _TYPE_SUFFIX.search(example)
        if t:
            declared_type = t.group("type").strip()
            example = example[: t.start()]
        example = _strip_quotes(example)
    m = _TYPE_SUFFIX.search(obj)
    if m:
        declared_type = m.group("type").strip()
        obj = obj[: m.start()]
    return normalize_name(obj), declared_type, example


def _common(ctx: BulletContext, m: re.Match) -> dict:
    return {
        "line": ctx.line,
        "text": ctx.text,
        "owner": ctx.owner,
        "entity": ctx.subject(m.group("subject")),
    }


def _identified_by(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    name, declared_type, example = split_object(m.group("object"))
    if not name:
        return None
    return AttributeFact(
        **_common(ctx, m),
        attribute=name,
        declared_type=declared_type,
        example=example,
        identifying=True,
    )


_AT_LEAST = re.compile(r"^at least (?P<n>\w+) (?P<target>.+)$", re.IGNORECASE)
_ONE_OR_MORE = re.compile(r"^(?:one or more|some|any) (?P<target>.+)$", re.IGNORECASE)
_SINGLE = re.compile(r"^(?:a|an) (?P<target>.+)$", re.IGNORECASE)


def _parse_condition(text: str, ctx: BulletContext) -> Optional[SubtypeCondition]:
    m = _AT_LEAST.match(text)
    if m:
        n = parse_count(m.group("n"))
        if n is None:
            return None
        return SubtypeCondition(
            kind="cardinality", target=ctx.plural_entity(m.group("target")), min_count=n
        )
    m = _ONE_OR_MORE.match(text)
    if m:
        return SubtypeCondition(
            kind="cardinality", target=ctx.plural_entity(m.group("target")), min_count=1
        )
    m = _SINGLE.match(text)
    if m:
        target = normalize_name(m.group("target"))
        if ctx.is_entity(target):
            return SubtypeCondition(
                kind="cardinality", target=ctx.entity_name(target), min_count=1
            )
        return SubtypeCondition(kind="attribute", attribute=target)
    return None


def _subtype(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    base = normalize_name(m.group("base"))
    condition_text = m.group("condition")
    condition = None
    if condition_text:
        condition = _parse_condition(normalize_name(condition_text), ctx)
        if condition is None:
            return None
    elif not ctx.is_entity(base):
        # "Person is a human being" is prose, not a subtype fact
        return None
    return SubtypeFact(**_common(ctx, m), base=ctx.entity_name(base), condition=condition)


def _min_count(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    n = 1 if m.group("oneormore") else parse_count(m.group("n"))
    if n is None:
        return None
    return ConstraintFact(
        **_common(ctx, m),
        constraint_kind="min-count",
        target=ctx.plural_entity(m.group("target")),
        min_count=n,
    )


def _past(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    return ConstraintFact(
        **_common(ctx, m),
        constraint_kind="must-be-in-past",
        attribute=normalize_name(m.group("attribute")),
    )


def _pattern_like(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    return ConstraintFact(
        **_common(ctx, m),
        constraint_kind="pattern-like",
        attribute=normalize_name(m.group("attribute")),
        pattern=m.group("pattern"),
    )


def _not_null(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    return ConstraintFact(
        **_common(ctx, m),
        constraint_kind="not-null",
        attribute=normalize_name(m.group("attribute")),
    )


def _one_to_many(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    return RelationshipFact(
        **_common(ctx, m),
        target=ctx.plural_entity(m.group("target")),
        cardinality="one_to_many",
    )


def _one_to_one(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    return RelationshipFact(
        **_common(ctx, m),
        target=ctx.entity_name(m.group("target")),
        cardinality="one_to_one",
    )


def _has(m: re.Match, ctx: BulletContext) -> Optional[StatementNode]:
    name, declared_type, example = split_object(m.group("object"))
    if not name:
        return None
    key = name_key(name)
    if key in ctx.bold or (ctx.is_entity(name) and declared_type is None and example is None):
        return RelationshipFact(
            **_common(ctx, m),
            target=ctx.entity_name(name),
            cardinality="many_to_one",
        )
    return AttributeFact(
        **_common(ctx, m),
        attribute=name,
        declared_type=declared_type,
        example=example,
    )


def _p(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


PATTERNS: List[BulletPattern] = [
    BulletPattern(
        "identified-by",
        _p(r"^(?P<subject>.+?) is identified by (?:(?:a|an|the|its|their) )?(?P<object>.+)$"),
        _identified_by,
    ),
    BulletPattern(
        "subtype",
        _p(
            r"^(?P<subject>.+?) is (?:a kind of|a type of|an|a) (?P<base>.+?)"
            r"(?: (?:with|that has|who has|having) (?P<condition>.+))?$"
        ),
        _subtype,
    ),
    BulletPattern(
        "min-count",
        _p(
            r"^(?P<subject>.+?) must have "
            r"(?:at least (?P<n>\w+)|(?P<oneormore>one or more)) (?P<target>.+)$"
        ),
        _min_count,
    ),
    BulletPattern(
        "must-be-in-past",
        _p(
            r"^(?P<subject>.+?) must have (?:a|an|the) (?P<attribute>.+?) "
            r"(?:in the past|that is in the past|before today)$"
        ),
        _past,
    ),
    BulletPattern(
        "pattern-like",
        _p(
            r"^(?P<subject>.+?) must have (?:a|an|the) (?P<attribute>.+?) "
            r"(?:like|matching) [\"'](?P<pattern>[^\"']*)[\"']$"
        ),
        _pattern_like,
    ),
    BulletPattern(
        "not-null",
        _p(r"^(?P<subject>.+?) must have (?:a|an|the) (?P<attribute>.+)$"),
        _not_null,
    ),
    BulletPattern(
        "one-to-many",
        _p(
            r"^(?P<subject>.+?) has "
            r"(?:one or more|zero or more|many|several|multiple) (?P<target>.+)$"
        ),
        _one_to_many,
    ),
    BulletPattern(
        "one-to-one",
        _p(r"^(?P<subject>.+?) has (?:exactly one|one and only one) (?P<target>.+)$"),
        _one_to_one,
    ),
    BulletPattern(
        "has",
        _p(r"^(?P<subject>.+?) has (?:a|an|one) (?P<object>.+)$"),
        _has,
    ),
]


def classify_bullet(ctx: BulletContext, body: str) -> Optional[StatementNode]:
    """
    Classify a cleaned bullet body against the pattern table.

    Args:
        ctx: Bullet context (line, owner, known entities, bold references)
        body: Bullet text with markers, bold asterisks and trailing period removed

    Returns:
        Statement node, or None when no pattern accepts the bullet
    """
    for pattern in PATTERNS:
        m = pattern.regex.match(body)
        if not m:
            continue
        node = pattern.build(m, ctx)
        if node is not None:
            return node
    return None
