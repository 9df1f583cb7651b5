"""Derived attribute propagation over 'has a' relationships."""

from typing import Dict, List, Optional, Sequence, Set, Tuple

from semdown.diagnostics import Diagnostic
from semdown.errors import DerivationCycleError
from semdown.utils.naming import name_key
from .models import Attribute, DerivedAttribute, Relationship, SemanticType


def find_cycle(node_count: int, relationships: Sequence[Relationship]) -> Optional[List[int]]:
    """
    Find a cycle among derivable relationships.

    Nodes are visited in index order and edges in declaration order, so the
    reported cycle is deterministic.

    Args:
        node_count: Number of entities
        relationships: All relationships (non-derivable ones are ignored)

    Returns:
        Entity indexes along the cycle (first == last), or None if acyclic
    """
    outgoing: Dict[int, List[int]] = {i: [] for i in range(node_count)}
    for rel in relationships:
        if rel.derivable:
            outgoing[rel.source].append(rel.target)

    WHITE, GRAY, BLACK = 0, 1, 2
    color = [WHITE] * node_count
    stack: List[int] = []

    def visit(node: int) -> Optional[List[int]]:
        color[node] = GRAY
        stack.append(node)
        for nxt in outgoing[node]:
            if color[nxt] == GRAY:
                start = stack.index(nxt)
                return stack[start:] + [nxt]
            if color[nxt] == WHITE:
                found = visit(nxt)
                if found:
                    return found
        stack.pop()
        color[node] = BLACK
        return None

    for node in range(node_count):
        if color[node] == WHITE:
            found = visit(node)
            if found:
                return found
    return None


def derive_attributes(
    entity_names: Sequence[str],
    explicit: Dict[int, List[Attribute]],
    relationships: Sequence[Relationship],
) -> Tuple[List[DerivedAttribute], List[Diagnostic]]:
    """
    Propagate attributes across derivable relationships.

    For every relationship A -> B (A "has a" B), A receives B's explicit
    non-reference attributes and B's own derived attributes, each renamed
    with B's name as a prefix ("Customer Zipcode", "Customer Person Name").

    Args:
        entity_names: Entity display names by index
        explicit: Explicit attributes per entity index, in declaration order
        relationships: All relationships, in declaration order

    Returns:
        Tuple of (derived attributes grouped by entity in index order, diagnostics)

    Raises:
        DerivationCycleError: If the derivable relationships contain a cycle
    """
    cycle = find_cycle(len(entity_names), relationships)
    if cycle:
        raise DerivationCycleError([entity_names[i] for i in cycle])

    outgoing: Dict[int, List[Relationship]] = {i: [] for i in range(len(entity_names))}
    for rel in relationships:
        if rel.derivable:
            outgoing[rel.source].append(rel)

    diagnostics: List[Diagnostic] = []
    memo: Dict[int, List[DerivedAttribute]] = {}

    def visit(entity: int) -> List[DerivedAttribute]:
        if entity in memo:
            return memo[entity]
        taken: Set[str] = {name_key(a.name) for a in explicit.get(entity, [])}
        result: List[DerivedAttribute] = []
        for rel in outgoing[entity]:
            prefix = entity_names[rel.target]
            candidates = [
                (f"{prefix} {a.name}", (rel.index,), a.index, a.semantic_type)
                for a in explicit.get(rel.target, [])
                if a.semantic_type != SemanticType.REFERENCE
            ]
            candidates += [
                (f"{prefix} {d.name}", (rel.index,) + d.path, d.source_attribute, d.semantic_type)
                for d in visit(rel.target)
            ]
            for name, path, source, semantic_type in candidates:
                if name_key(name) in taken:
                    diagnostics.append(
                        Diagnostic(
                            code="ShadowedDerivedAttribute",
                            message=(
                                f"'{entity_names[entity]}' already has an attribute named "
                                f"'{name}'; the derived one is not exposed"
                            ),
                            line=rel.line,
                            details={"entity": entity_names[entity], "attribute": name},
                        )
                    )
                    continue
                taken.add(name_key(name))
                result.append(
                    DerivedAttribute(
                        name=name,
                        entity=entity,
                        path=path,
                        source_attribute=source,
                        semantic_type=semantic_type,
                    )
                )
        memo[entity] = result
        return result

    derived: List[DerivedAttribute] = []
    for entity in range(len(entity_names)):
        derived.extend(visit(entity))
    return derived, diagnostics
