"""Semantic builder: statement nodes -> KnowledgeGraph."""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from semdown.config.logging import get_logger
from semdown.diagnostics import Diagnostic
from semdown.dsl.statements import (
    AttributeFact,
    ConstraintFact,
    EntityDeclaration,
    ParseResult,
    RelationshipFact,
    SubtypeFact,
)
from semdown.errors import (
    CompileError,
    DuplicateEntityError,
    UnknownAttributeReferenceError,
)
from semdown.utils.naming import indefinite_article, name_key, pluralize
from .derivation import derive_attributes
from .knowledge_graph import KnowledgeGraph
from .models import (
    Attribute,
    AttributePresence,
    CardinalityThreshold,
    Constraint,
    Entity,
    Relationship,
    SemanticType,
    SubtypeRule,
)

logger = get_logger(__name__)

DECLARED_TYPES = {
    "string": SemanticType.STRING,
    "text": SemanticType.STRING,
    "varchar": SemanticType.STRING,
    "date": SemanticType.DATE,
    "datetime": SemanticType.DATE,
    "timestamp": SemanticType.DATE,
    "time": SemanticType.DATE,
    "number": SemanticType.NUMBER,
    "numeric": SemanticType.NUMBER,
    "integer": SemanticType.NUMBER,
    "int": SemanticType.NUMBER,
    "decimal": SemanticType.NUMBER,
    "float": SemanticType.NUMBER,
    "amount": SemanticType.NUMBER,
}

_DATE_WORDS = re.compile(r"\b(?:date|time|day|timestamp|datetime|birthday)\b", re.IGNORECASE)
_NUMBER_WORDS = re.compile(
    r"\b(?:number|count|amount|quantity|price|total|age|cost|balance)\b", re.IGNORECASE
)


def infer_type(name: str) -> SemanticType:
    """Infer a semantic type from an attribute name ("Order Date" -> Date)."""
    if _DATE_WORDS.search(name):
        return SemanticType.DATE
    if _NUMBER_WORDS.search(name):
        return SemanticType.NUMBER
    return SemanticType.STRING


@dataclass
class _EntityDraft:
    index: int
    name: str
    description: str = ""
    declared: bool = True
    line: Optional[int] = None
    attribute_ids: List[int] = field(default_factory=list)


@dataclass
class _AttributeDraft:
    index: int
    name: str
    entity: int
    semantic_type: SemanticType
    type_declared: bool = False
    required: bool = False
    identifying: bool = False
    example: Optional[str] = None
    references: Optional[int] = None
    line: Optional[int] = None

    def freeze(self) -> Attribute:
        return Attribute(
            index=self.index,
            name=self.name,
            entity=self.entity,
            semantic_type=self.semantic_type,
            type_declared=self.type_declared,
            nullable=not (self.required or self.identifying),
            required=self.required,
            identifying=self.identifying,
            example=self.example,
            references=self.references,
            line=self.line,
        )


class SemanticBuilder:
    """
    Turns a parser statement sequence into a frozen KnowledgeGraph.

    Passes:
        1. register entity declarations
        2. attach attributes, relationships, constraints and subtype facts
        3. derive attributes across 'has a' relationships
        4. validate constraints against explicit and derived attributes
        5. record subtype rules as standing predicates
    """

    def __init__(self, parsed: ParseResult):
        self.parsed = parsed
        self.diagnostics: List[Diagnostic] = list(parsed.diagnostics)
        self.entities: List[_EntityDraft] = []
        self.attributes: List[_AttributeDraft] = []
        self.relationships: List[Relationship] = []
        self._by_key: Dict[str, int] = {}
        self._pending_constraints: List[Tuple[int, ConstraintFact, Optional[int]]] = []
        self._pending_subtypes: List[Tuple[int, int, SubtypeFact, Optional[int]]] = []

    def build(self) -> KnowledgeGraph:
        """
        Build the knowledge graph.

        Raises:
            DuplicateEntityError: Same entity declared with conflicting descriptions
            UnknownAttributeReferenceError: Constraint references an unreachable attribute
            DerivationCycleError: Circular 'has a' relationships
        """
        logger.info(f"Building knowledge graph from {len(self.parsed.statements)} statements")
        self._register_entities()
        self._attach_facts()

        explicit: Dict[int, List[Attribute]] = {
            e.index: [self.attributes[i].freeze() for i in e.attribute_ids]
            for e in self.entities
        }
        try:
            derived, derive_diagnostics = derive_attributes(
                [e.name for e in self.entities], explicit, self.relationships
            )
        except CompileError as e:
            e.diagnostics = list(self.diagnostics)
            logger.error(f"Derivation failed: {e}")
            raise
        for diag in derive_diagnostics:
            self._record(diag)

        constraints = self._resolve_constraints(derived)
        rules = self._resolve_subtypes()

        graph = KnowledgeGraph(
            entities=tuple(
                Entity(
                    index=e.index,
                    name=e.name,
                    description=e.description,
                    attribute_ids=tuple(e.attribute_ids),
                    declared=e.declared,
                    line=e.line,
                )
                for e in self.entities
            ),
            attributes=tuple(a.freeze() for a in self.attributes),
            derived=tuple(derived),
            relationships=tuple(self.relationships),
            constraints=tuple(constraints),
            subtype_rules=tuple(rules),
            warnings=tuple(self.diagnostics),
            unparsed=tuple(self.parsed.unparsed),
        )
        logger.info(
            f"Knowledge graph built: {len(graph.entities)} entities, "
            f"{len(graph.attributes)} attributes, {len(graph.derived)} derived attributes, "
            f"{len(graph.relationships)} relationships, {len(graph.constraints)} constraints, "
            f"{len(graph.subtype_rules)} subtype rules, {len(graph.warnings)} warnings"
        )
        return graph

    # Helpers

    def _record(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        logger.warning(str(diagnostic))

    def _warn(self, code: str, message: str, line: Optional[int], **details) -> None:
        self._record(Diagnostic(code=code, message=message, line=line, details=details))

    def _resolve_entity(self, name: str, line: Optional[int]) -> int:
        """Resolve an entity name, creating a referenced-only stub when undeclared."""
        key = name_key(name)
        if key in self._by_key:
            return self._by_key[key]
        stub = _EntityDraft(index=len(self.entities), name=name, declared=False, line=line)
        self.entities.append(stub)
        self._by_key[key] = stub.index
        self._warn(
            "MissingDeclaration",
            f"'{name}' is referenced but never declared; using a stub entity",
            line,
            entity=name,
        )
        return stub.index

    def _find_attribute(self, entity: int, name: str) -> Optional[_AttributeDraft]:
        key = name_key(name)
        for idx in self.entities[entity].attribute_ids:
            if name_key(self.attributes[idx].name) == key:
                return self.attributes[idx]
        return None

    def _add_attribute(self, entity: int, name: str, semantic_type: SemanticType, line, **kwargs):
        attr = _AttributeDraft(
            index=len(self.attributes),
            name=name,
            entity=entity,
            semantic_type=semantic_type,
            line=line,
            **kwargs,
        )
        self.attributes.append(attr)
        self.entities[entity].attribute_ids.append(attr.index)
        return attr

    def _semantic_type(self, fact: AttributeFact) -> Tuple[SemanticType, bool]:
        if fact.declared_type:
            declared = DECLARED_TYPES.get(fact.declared_type.strip().lower())
            if declared is not None:
                return declared, True
            self._warn(
                "UnknownType",
                f"Unknown type '{fact.declared_type}' for '{fact.attribute}'; inferring from its name",
                fact.line,
                attribute=fact.attribute,
                declared_type=fact.declared_type,
            )
        return infer_type(fact.attribute), False

    # Pass 1

    def _register_entities(self) -> None:
        for stmt in self.parsed.statements:
            if not isinstance(stmt, EntityDeclaration):
                continue
            key = name_key(stmt.name)
            if key not in self._by_key:
                draft = _EntityDraft(
                    index=len(self.entities),
                    name=stmt.name,
                    description=stmt.description,
                    line=stmt.line,
                )
                self.entities.append(draft)
                self._by_key[key] = draft.index
                continue

            existing = self.entities[self._by_key[key]]
            if (
                existing.description
                and stmt.description
                and existing.description.strip() != stmt.description.strip()
            ):
                raise DuplicateEntityError(
                    f"'{stmt.name}' is declared again with a different description "
                    f"(first declared on line {existing.line})",
                    line=stmt.line,
                    diagnostics=self.diagnostics,
                )
            existing.description = existing.description or stmt.description
            self._warn(
                "DuplicateDeclaration",
                f"'{stmt.name}' is declared more than once; declarations merged",
                stmt.line,
                entity=stmt.name,
            )

    # Pass 2

    def _attach_facts(self) -> None:
        for stmt in self.parsed.statements:
            if isinstance(stmt, AttributeFact):
                self._attach_attribute(stmt)
            elif isinstance(stmt, RelationshipFact):
                self._attach_relationship(stmt)
            elif isinstance(stmt, ConstraintFact):
                entity = self._resolve_entity(stmt.entity, stmt.line)
                target = None
                if stmt.constraint_kind == "min-count":
                    target = self._resolve_entity(stmt.target, stmt.line)
                self._pending_constraints.append((entity, stmt, target))
            elif isinstance(stmt, SubtypeFact):
                subtype = self._resolve_entity(stmt.entity, stmt.line)
                base = self._resolve_entity(stmt.base, stmt.line)
                target = None
                if stmt.condition is not None and stmt.condition.kind == "cardinality":
                    target = self._resolve_entity(stmt.condition.target, stmt.line)
                self._pending_subtypes.append((subtype, base, stmt, target))

    def _attach_attribute(self, fact: AttributeFact) -> None:
        entity = self._resolve_entity(fact.entity, fact.line)
        semantic_type, type_declared = self._semantic_type(fact)
        identifying = fact.identifying
        current_id = next(
            (self.attributes[i] for i in self.entities[entity].attribute_ids
             if self.attributes[i].identifying),
            None,
        )
        if identifying and current_id is not None and name_key(current_id.name) != name_key(fact.attribute):
            self._warn(
                "DuplicateAttribute",
                f"'{self.entities[entity].name}' is already identified by "
                f"'{current_id.name}'; '{fact.attribute}' is kept as a plain attribute",
                fact.line,
                entity=self.entities[entity].name,
                attribute=fact.attribute,
            )
            identifying = False

        existing = self._find_attribute(entity, fact.attribute)
        if existing is None:
            self._add_attribute(
                entity,
                fact.attribute,
                semantic_type,
                fact.line,
                type_declared=type_declared,
                identifying=identifying,
                example=fact.example,
            )
            return

        if existing.references is not None or not identifying:
            self._warn(
                "DuplicateAttribute",
                f"'{self.entities[entity].name}' already has '{existing.name}'",
                fact.line,
                entity=self.entities[entity].name,
                attribute=fact.attribute,
            )
            if existing.references is not None:
                return
        # "X is identified by its Y" after "X has a Y" upgrades the attribute
        existing.identifying = existing.identifying or identifying
        existing.example = existing.example or fact.example
        if type_declared:
            existing.semantic_type = semantic_type
            existing.type_declared = True

    def _attach_relationship(self, fact: RelationshipFact) -> None:
        source = self._resolve_entity(fact.entity, fact.line)
        target = self._resolve_entity(fact.target, fact.line)
        derivable = fact.cardinality in ("many_to_one", "one_to_one")
        for rel in self.relationships:
            same_kind = rel.derivable == derivable
            if rel.source == source and rel.target == target and same_kind:
                self._warn(
                    "DuplicateDeclaration",
                    f"Relationship '{self.entities[source].name}' -> "
                    f"'{self.entities[target].name}' is already declared",
                    fact.line,
                    source=self.entities[source].name,
                    target=self.entities[target].name,
                )
                return

        rel = Relationship(
            index=len(self.relationships),
            source=source,
            target=target,
            cardinality=fact.cardinality,
            line=fact.line,
        )
        self.relationships.append(rel)
        if not derivable:
            return

        target_name = self.entities[target].name
        if self._find_attribute(source, target_name) is not None:
            self._warn(
                "DuplicateAttribute",
                f"'{self.entities[source].name}' already has an attribute named "
                f"'{target_name}'; the relationship is kept without a reference attribute",
                fact.line,
                entity=self.entities[source].name,
                attribute=target_name,
            )
            return
        self._add_attribute(
            source, target_name, SemanticType.REFERENCE, fact.line, references=target
        )

    # Pass 4

    def _resolve_constraints(self, derived) -> List[Constraint]:
        derived_names = {(d.entity, name_key(d.name)): d for d in derived}
        constraints: List[Constraint] = []
        for entity, fact, target in self._pending_constraints:
            ent_name = self.entities[entity].name
            if fact.constraint_kind == "min-count":
                constraints.append(self._min_count_constraint(entity, fact, target))
                continue

            attr = self._find_attribute(entity, fact.attribute)
            derived_attr = derived_names.get((entity, name_key(fact.attribute)))
            if attr is None and derived_attr is None:
                raise UnknownAttributeReferenceError(
                    f"Constraint on '{ent_name}' references unknown attribute '{fact.attribute}'",
                    line=fact.line,
                    diagnostics=self.diagnostics,
                )
            attr_name = attr.name if attr is not None else derived_attr.name
            semantic_type = attr.semantic_type if attr is not None else derived_attr.semantic_type

            if fact.constraint_kind == "not-null":
                if attr is not None:
                    attr.required = True
                rationale = f"Every {ent_name} must have {indefinite_article(attr_name)} {attr_name}."
            elif fact.constraint_kind == "must-be-in-past":
                if semantic_type != SemanticType.DATE:
                    self._warn(
                        "ConstraintTypeMismatch",
                        f"'{attr_name}' of '{ent_name}' is {semantic_type.value}, "
                        f"not Date, but must be in the past",
                        fact.line,
                        entity=ent_name,
                        attribute=attr_name,
                    )
                rationale = f"The {attr_name} of every {ent_name} must be in the past."
            else:
                rationale = f"The {attr_name} of every {ent_name} must match '{fact.pattern}'."

            constraints.append(
                Constraint(
                    entity=entity,
                    kind=fact.constraint_kind,
                    attribute=attr_name,
                    derived=attr is None,
                    pattern=fact.pattern,
                    rationale=rationale,
                    line=fact.line,
                )
            )
        return constraints

    def _min_count_constraint(self, entity: int, fact: ConstraintFact, target: int) -> Constraint:
        link = None
        for rel in self.relationships:
            if rel.source == target and rel.target == entity and rel.derivable:
                link = rel
                break
            if rel.source == entity and rel.target == target and rel.cardinality == "one_to_many":
                link = rel
                break
        ent_name = self.entities[entity].name
        target_name = self.entities[target].name
        if link is None:
            raise UnknownAttributeReferenceError(
                f"'{ent_name}' must have at least {fact.min_count} '{target_name}', "
                f"but no relationship links them",
                line=fact.line,
                diagnostics=self.diagnostics,
            )
        noun = target_name if fact.min_count == 1 else pluralize(target_name)
        return Constraint(
            entity=entity,
            kind="min-count",
            target=target,
            min_count=fact.min_count,
            relationship=link.index,
            rationale=f"Every {ent_name} must have at least {fact.min_count} {noun}.",
            line=fact.line,
        )

    # Pass 5

    def _resolve_subtypes(self) -> List[SubtypeRule]:
        rules: List[SubtypeRule] = []
        for subtype, base, fact, target in self._pending_subtypes:
            if subtype == base:
                self._warn(
                    "DuplicateDeclaration",
                    f"'{self.entities[subtype].name}' is declared a subtype of itself; ignored",
                    fact.line,
                    entity=self.entities[subtype].name,
                )
                continue
            predicate = None
            if fact.condition is not None:
                if fact.condition.kind == "cardinality":
                    predicate = CardinalityThreshold(
                        target=target, min_count=fact.condition.min_count
                    )
                else:
                    predicate = AttributePresence(attribute=fact.condition.attribute)
            rules.append(
                SubtypeRule(subtype=subtype, base=base, predicate=predicate, line=fact.line)
            )
        return rules


def build_graph(parsed: ParseResult) -> KnowledgeGraph:
    """Build a knowledge graph from parser output."""
    return SemanticBuilder(parsed).build()
