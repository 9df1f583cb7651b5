"""Tests for the semantic builder and the knowledge graph query interface."""

import math

import pytest
from semdown.compiler import compile_text
from semdown.errors import (
    DerivationCycleError,
    DuplicateEntityError,
    UnknownAttributeReferenceError,
)
from semdown.graph import SemanticType


def test_entities_and_attributes(sales_graph):
    """Test entity registration order and explicit attributes."""
    assert [e.name for e in sales_graph.list_entities()] == ["Person", "Customer", "Order"]
    person = sales_graph.get_entity("person")
    assert person.description == "A human being known to the business."
    names = [a.name for a in sales_graph.get_attributes("Person")]
    assert names == ["Name", "Birth Date"]


def test_type_inference(sales_graph):
    """Test semantic types inferred from attribute names."""
    assert sales_graph.get_attribute("Person", "Birth Date").semantic_type == SemanticType.DATE
    assert sales_graph.get_attribute("Person", "Name").semantic_type == SemanticType.STRING
    assert sales_graph.get_attribute("Customer", "Zipcode").example == "90210"


def test_relationship_adds_reference_attribute(sales_graph):
    """Test that `has a <Entity>` adds a Reference attribute named after the target."""
    ref = sales_graph.get_attribute("Order", "Customer")
    assert ref.semantic_type == SemanticType.REFERENCE
    assert ref.references == sales_graph.get_entity("Customer").index
    rels = sales_graph.get_relationships("Order")
    assert [(r.cardinality, sales_graph.entities[r.target].name) for r in rels] == [
        ("many_to_one", "Customer")
    ]


def test_derived_attributes(sales_graph):
    """Test attribute derivation across 'has a' relationships."""
    derived = [d.name for d in sales_graph.get_derived_attributes("Order")]
    assert "Customer Zipcode" in derived
    assert "Customer Person Name" in derived
    assert "Customer Person" not in derived  # references are not derived
    person_name = sales_graph.get_derived_attribute("Order", "Customer Person Name")
    assert len(person_name.path) == 2
    assert sales_graph.attributes[person_name.source_attribute].name == "Name"


def test_not_null_marks_attribute_required(sales_graph):
    """Test that a not-null constraint makes the attribute required."""
    order_date = sales_graph.get_attribute("Order", "Order Date")
    assert order_date.required
    assert not order_date.nullable
    kinds = [c.kind for c in sales_graph.constraints_for("Order")]
    assert kinds == ["not-null", "must-be-in-past"]


def test_is_subtype(sales_graph):
    """Test that a Person who can have orders classifies as a Customer."""
    assert sales_graph.is_subtype("Person", "Customer")
    assert sales_graph.is_subtype("Customer", "Person")
    assert sales_graph.is_subtype("Order", "Order")
    assert not sales_graph.is_subtype("Order", "Customer")


def test_subtype_predicate_fails_without_path():
    """Test that a cardinality predicate fails when no relationship links the entities."""
    graph = compile_text(
        "**Person**\n- Person has a Name.\n"
        "**Order**\n- Order has an Order Date.\n"
        "**Customer**\n- Customer is a Person with at least one Order.\n"
    )
    assert not graph.is_subtype("Person", "Customer")


def test_max_related_count(sales_graph):
    """Test related-row bounds used by cardinality predicates."""
    assert sales_graph.max_related_count("Person", "Order") == math.inf
    assert sales_graph.max_related_count("Order", "Person") == 1
    assert sales_graph.max_related_count("Order", "Order") == 1


def test_missing_declaration_creates_stub():
    """Test that an undeclared bold reference yields a warning and a usable stub."""
    graph = compile_text("**Order**\n- Order has a **Shipment**.\n")
    shipment = graph.get_entity("Shipment")
    assert not shipment.declared
    codes = [d.code for d in graph.diagnostics()]
    assert codes == ["MissingDeclaration"]
    assert [e.name for e in graph.list_entities(include_stubs=False)] == ["Order"]
    assert graph.get_attribute("Order", "Shipment").references == shipment.index


def test_derivation_cycle_is_fatal():
    """Test that circular 'has a' relationships raise DerivationCycleError."""
    with pytest.raises(DerivationCycleError) as exc_info:
        compile_text("**A**\n- A has a **B**.\n**B**\n- B has a **A**.\n")
    assert exc_info.value.cycle == ["A", "B", "A"]
    assert "A -> B -> A" in str(exc_info.value)


def test_conflicting_duplicate_entity_is_fatal():
    """Test that a second declaration with another description raises DuplicateEntityError."""
    with pytest.raises(DuplicateEntityError):
        compile_text("**Person**: A human.\n**person**: A robot.\n")


def test_matching_duplicate_entity_merges():
    """Test that a repeated declaration merges with a warning."""
    graph = compile_text("**Person**: A human.\n- Person has a Name.\n**Person**\n- Person has an Age.\n")
    assert len(graph.entities) == 1
    assert [a.name for a in graph.get_attributes("Person")] == ["Name", "Age"]
    assert graph.get_attribute("Person", "Age").semantic_type == SemanticType.NUMBER
    assert [d.code for d in graph.diagnostics()] == ["DuplicateDeclaration"]


def test_unknown_constraint_attribute_is_fatal():
    """Test that a constraint on an unknown attribute raises with accumulated diagnostics."""
    with pytest.raises(UnknownAttributeReferenceError) as exc_info:
        compile_text("**Order**\n- Order likes pizza.\n- Order must have a Ship Date.\n")
    assert exc_info.value.line == 3
    assert [d.code for d in exc_info.value.diagnostics] == ["ParseWarning"]


def test_constraint_on_derived_attribute(sales_text):
    """Test that constraints may name derived attributes."""
    graph = compile_text(sales_text + "- Order must have a Customer Zipcode.\n")
    constraint = graph.constraints_for("Order")[-1]
    assert constraint.derived
    assert constraint.attribute == "Customer Zipcode"


def test_past_constraint_on_non_date_warns():
    """Test the ConstraintTypeMismatch warning."""
    graph = compile_text("**Order**\n- Order has a Status.\n- Order must have a Status in the past.\n")
    assert [d.code for d in graph.diagnostics()] == ["ConstraintTypeMismatch"]


def test_unknown_declared_type_warns():
    """Test that an unknown declared type falls back to inference."""
    graph = compile_text("**Order**\n- Order has a Ship Date (Moment).\n")
    attr = graph.get_attribute("Order", "Ship Date")
    assert attr.semantic_type == SemanticType.DATE
    assert not attr.type_declared
    assert [d.code for d in graph.diagnostics()] == ["UnknownType"]


def test_shadowed_derived_attribute():
    """Test that an explicit attribute hides a derived one with the same name."""
    graph = compile_text(
        "**Account**\n- Account has a Branch Name.\n- Account has a **Branch**.\n"
        "**Branch**\n- Branch has a Name.\n"
    )
    assert graph.get_derived_attribute("Account", "Branch Name") is None
    assert [d.code for d in graph.diagnostics()] == ["ShadowedDerivedAttribute"]


def test_min_count_requires_link():
    """Test that min-count needs a relationship between the two entities."""
    with pytest.raises(UnknownAttributeReferenceError):
        compile_text("**Order**\n**Line**\n- Order must have at least one Line.\n")

    graph = compile_text("**Order**\n**Line**\n- Line has an Order.\n- Order must have at least one Line.\n")
    (constraint,) = graph.constraints
    assert constraint.kind == "min-count"
    assert constraint.min_count == 1
    assert graph.relationships[constraint.relationship].source == graph.get_entity("Line").index


def test_graph_is_frozen(sales_graph):
    """Test that the built graph cannot be mutated in place."""
    with pytest.raises(Exception):
        sales_graph.entities = ()
    assert isinstance(sales_graph.attributes, tuple)
