"""The canonical knowledge graph and its read-only query interface."""

import math
from collections import deque
from functools import cached_property
from typing import Dict, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict

from semdown.diagnostics import Diagnostic
from semdown.dsl.statements import UnparsedBullet
from semdown.utils.naming import name_key
from .models import (
    Attribute,
    Constraint,
    DerivedAttribute,
    Entity,
    Relationship,
    SubtypeRule,
)

EntityRef = Union[str, int]


class KnowledgeGraph(BaseModel):
    """
    Canonical entity-relationship model built once per compile.

    The graph is frozen: every collection is a tuple and every element is a
    frozen model, so it can be shared across generator threads without locks.
    Subtype membership is never stored; `is_subtype` evaluates the standing
    rules against the current relationships every time it is called.
    """

    model_config = ConfigDict(frozen=True)

    entities: Tuple[Entity, ...] = ()
    attributes: Tuple[Attribute, ...] = ()
    derived: Tuple[DerivedAttribute, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    constraints: Tuple[Constraint, ...] = ()
    subtype_rules: Tuple[SubtypeRule, ...] = ()
    warnings: Tuple[Diagnostic, ...] = ()
    unparsed: Tuple[UnparsedBullet, ...] = ()

    @cached_property
    def name_index(self) -> Dict[str, int]:
        return {name_key(e.name): e.index for e in self.entities}

    @cached_property
    def outgoing_index(self) -> Dict[int, List[Relationship]]:
        out: Dict[int, List[Relationship]] = {e.index: [] for e in self.entities}
        for rel in self.relationships:
            out[rel.source].append(rel)
        return out

    @cached_property
    def incoming_index(self) -> Dict[int, List[Relationship]]:
        inc: Dict[int, List[Relationship]] = {e.index: [] for e in self.entities}
        for rel in self.relationships:
            inc[rel.target].append(rel)
        return inc

    # Lookup

    def entity_index(self, entity: EntityRef) -> int:
        """Resolve an entity name (case-insensitive) or index to its index."""
        if isinstance(entity, int):
            if 0 <= entity < len(self.entities):
                return entity
            raise KeyError(f"No entity with index {entity}")
        try:
            return self.name_index[name_key(entity)]
        except KeyError:
            raise KeyError(f"Unknown entity '{entity}'") from None

    def has_entity(self, name: str) -> bool:
        return name_key(name) in self.name_index

    def list_entities(self, include_stubs: bool = True) -> List[Entity]:
        """Entities in declaration order (stubs last, in order of first reference)."""
        return [e for e in self.entities if include_stubs or e.declared]

    def get_entity(self, name: EntityRef) -> Entity:
        return self.entities[self.entity_index(name)]

    def get_attributes(self, entity: EntityRef) -> List[Attribute]:
        """Explicit attributes of an entity, in declaration order."""
        ent = self.get_entity(entity)
        return [self.attributes[i] for i in ent.attribute_ids]

    def get_attribute(self, entity: EntityRef, name: str) -> Optional[Attribute]:
        key = name_key(name)
        for attr in self.get_attributes(entity):
            if name_key(attr.name) == key:
                return attr
        return None

    def get_identifier(self, entity: EntityRef) -> Optional[Attribute]:
        """The identifying attribute of an entity, if one was declared."""
        for attr in self.get_attributes(entity):
            if attr.identifying:
                return attr
        return None

    def get_derived_attributes(self, entity: EntityRef) -> List[DerivedAttribute]:
        """Derived attributes of an entity, in derivation order."""
        idx = self.entity_index(entity)
        return [d for d in self.derived if d.entity == idx]

    def get_derived_attribute(self, entity: EntityRef, name: str) -> Optional[DerivedAttribute]:
        key = name_key(name)
        for d in self.get_derived_attributes(entity):
            if name_key(d.name) == key:
                return d
        return None

    def has_attribute(self, entity: EntityRef, name: str) -> bool:
        return (
            self.get_attribute(entity, name) is not None
            or self.get_derived_attribute(entity, name) is not None
        )

    def get_relationships(self, entity: Optional[EntityRef] = None) -> List[Relationship]:
        """All relationships, or those whose source is `entity`."""
        if entity is None:
            return list(self.relationships)
        return list(self.outgoing_index[self.entity_index(entity)])

    def incoming_relationships(self, entity: EntityRef) -> List[Relationship]:
        return list(self.incoming_index[self.entity_index(entity)])

    def constraints_for(self, entity: EntityRef) -> List[Constraint]:
        idx = self.entity_index(entity)
        return [c for c in self.constraints if c.entity == idx]

    def diagnostics(self) -> List[Diagnostic]:
        """Every non-fatal condition recorded while parsing and building."""
        return list(self.warnings)

    # Reachability over 'has a' (derivable) relationships

    def derivation_path(self, source: EntityRef, target: EntityRef) -> Optional[List[int]]:
        """
        Shortest chain of derivable relationships from source to target.

        Ties are broken by relationship declaration order, so the result is
        deterministic. Returns [] when source == target and None when the
        target is unreachable.
        """
        src = self.entity_index(source)
        dst = self.entity_index(target)
        if src == dst:
            return []
        previous: Dict[int, Tuple[int, int]] = {}
        seen: Set[int] = {src}
        queue = deque([src])
        while queue:
            node = queue.popleft()
            for rel in self.outgoing_index[node]:
                if not rel.derivable or rel.target in seen:
                    continue
                seen.add(rel.target)
                previous[rel.target] = (node, rel.index)
                if rel.target == dst:
                    path: List[int] = []
                    cur = dst
                    while cur != src:
                        cur, rel_idx = previous[cur]
                        path.append(rel_idx)
                    return list(reversed(path))
                queue.append(rel.target)
        return None

    def reaches(self, source: EntityRef, target: EntityRef) -> bool:
        return self.derivation_path(source, target) is not None

    def max_related_count(self, entity: EntityRef, target: EntityRef) -> float:
        """
        Upper bound on how many `target` rows one `entity` row can relate to.

        Unbounded when many targets can point at the entity (the target reaches
        the entity through 'has a' relationships, or the entity has one or more
        targets); 1 when the entity points at a single target; 0 otherwise.
        """
        e = self.entity_index(entity)
        t = self.entity_index(target)
        if e == t:
            return 1
        for rel in self.outgoing_index[e]:
            if rel.target == t and rel.cardinality == "one_to_many":
                return math.inf
        if self.reaches(t, e):
            return math.inf
        if self.reaches(e, t):
            return 1
        return 0

    # Subtypes

    def is_subtype(self, entity: EntityRef, candidate_type: EntityRef) -> bool:
        """
        Whether `entity` classifies as `candidate_type` in the current model.

        Every entity is trivially its own type. `X is a Y` makes X conform to
        Y and to everything Y conforms to. A conditional rule `S is a B with P`
        classifies an entity as S when it conforms to B and P holds for it.
        """
        return self._conforms(
            self.entity_index(entity), self.entity_index(candidate_type), frozenset()
        )

    def _conforms(self, entity: int, candidate: int, visiting: frozenset) -> bool:
        if entity == candidate:
            return True
        if (entity, candidate) in visiting:
            return False
        visiting = visiting | {(entity, candidate)}
        for rule in self.subtype_rules:
            if rule.subtype == entity and self._conforms(rule.base, candidate, visiting):
                return True
        for rule in self.subtype_rules:
            if rule.subtype != candidate or rule.predicate is None:
                continue
            if self._conforms(entity, rule.base, visiting) and rule.predicate.holds(self, entity):
                return True
        return False

    def supertypes(self, entity: EntityRef) -> List[Entity]:
        """Declared bases of an entity's subtype rules, in rule order."""
        idx = self.entity_index(entity)
        return [self.entities[r.base] for r in self.subtype_rules if r.subtype == idx]
