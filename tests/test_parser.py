"""Tests for the model text parser."""

import pytest
from semdown.dsl import (
    AttributeFact,
    ConstraintFact,
    EntityDeclaration,
    RelationshipFact,
    SubtypeFact,
    parse_text,
)
from semdown.errors import DslSyntaxError


def _facts(text):
    return [s for s in parse_text(text).statements if not isinstance(s, EntityDeclaration)]


def test_entity_headers():
    """Test the three header forms and description continuation."""
    result = parse_text(
        "**Person**: A human being.\n"
        "Known to the business.\n"
        "**Customer:** Buys things.\n"
        "**Order**\n"
    )
    decls = [s for s in result.statements if isinstance(s, EntityDeclaration)]
    assert [d.name for d in decls] == ["Person", "Customer", "Order"]
    assert decls[0].description == "A human being. Known to the business."
    assert decls[1].description == "Buys things."
    assert decls[2].description == ""
    assert result.entity_names == ["Person", "Customer", "Order"]


def test_attribute_with_type_and_example():
    """Test `has a` with a declared type and an example value."""
    (fact,) = _facts('**Order**\n- Order has a Total (Number), for example "12.50".')
    assert isinstance(fact, AttributeFact)
    assert fact.attribute == "Total"
    assert fact.declared_type == "Number"
    assert fact.example == "12.50"
    assert fact.line == 2


def test_identified_by():
    """Test identifying attribute facts."""
    (fact,) = _facts("**Order**\n- Order is identified by its Order Number.")
    assert isinstance(fact, AttributeFact)
    assert fact.identifying
    assert fact.attribute == "Order Number"


def test_has_declared_entity_is_relationship():
    """Test that `has a` a declared entity becomes a many-to-one relationship."""
    facts = _facts("**Customer**\n**Order**\n- Order has a Customer.")
    assert isinstance(facts[0], RelationshipFact)
    assert facts[0].target == "Customer"
    assert facts[0].cardinality == "many_to_one"


def test_bold_marks_undeclared_entity():
    """Test that a bold name is an entity reference even when undeclared."""
    (fact,) = _facts("**Order**\n- Order has a **Shipment**.")
    assert isinstance(fact, RelationshipFact)
    assert fact.target == "Shipment"


def test_plain_undeclared_name_is_attribute():
    """Test that an undeclared name without bold markers stays an attribute."""
    (fact,) = _facts("**Order**\n- Order has a Shipment.")
    assert isinstance(fact, AttributeFact)
    assert fact.attribute == "Shipment"


def test_cardinality_variants():
    """Test one-to-many and one-to-one phrasing, with plural targets singularized."""
    facts = _facts(
        "**Customer**\n**Order**\n**Profile**\n"
        "- Customer has one or more Orders.\n"
        "- Customer has exactly one Profile."
    )
    assert (facts[0].target, facts[0].cardinality) == ("Order", "one_to_many")
    assert (facts[1].target, facts[1].cardinality) == ("Profile", "one_to_one")


def test_constraint_patterns():
    """Test the constraint phrase table."""
    facts = _facts(
        "**Order**\n**Line**\n"
        "- Order must have an Order Date in the past.\n"
        "- Order must have a Code like 'SO-%'.\n"
        "- Order must have at least two Lines.\n"
        "- Order must have a Status."
    )
    assert all(isinstance(f, ConstraintFact) for f in facts)
    assert [f.constraint_kind for f in facts] == [
        "must-be-in-past",
        "pattern-like",
        "min-count",
        "not-null",
    ]
    assert facts[0].attribute == "Order Date"
    assert facts[1].pattern == "SO-%"
    assert (facts[2].target, facts[2].min_count) == ("Line", 2)
    assert facts[3].attribute == "Status"


def test_subtype_with_condition():
    """Test subtype facts with a cardinality condition."""
    (fact,) = _facts("**Person**\n**Order**\n**Customer**\n- Customer is a Person with at least one Order.")
    assert isinstance(fact, SubtypeFact)
    assert fact.base == "Person"
    assert fact.condition.kind == "cardinality"
    assert fact.condition.target == "Order"
    assert fact.condition.min_count == 1


def test_is_a_prose_is_not_subtype():
    """Test that `is a` with an unknown base and no condition is left unparsed."""
    result = parse_text("**Person**\n- Person is a human being.")
    assert len(result.statements) == 1
    assert len(result.unparsed) == 1
    assert result.diagnostics[0].code == "ParseWarning"


def test_pronoun_and_article_subjects():
    """Test that `It` refers to the header entity and leading articles are dropped."""
    facts = _facts("**Order**\n- It has a Status.\n- Every Order has a Channel.")
    assert [f.entity for f in facts] == ["Order", "Order"]


def test_unparsed_bullet_is_kept():
    """Test that unrecognized bullets produce a warning and are retained."""
    result = parse_text("**Person**\n- Person likes pizza.")
    assert result.unparsed[0].text == "Person likes pizza"
    assert result.unparsed[0].line == 2
    assert result.diagnostics[0].code == "ParseWarning"


def test_unbulleted_fact_warns():
    """Test that a fact written without its bullet is reported, not silently dropped."""
    result = parse_text(
        "**Order**\n- Order has an Order Date.\nOrder has a Status.\nOrders are usually placed online.\n"
    )
    facts = [s for s in result.statements if isinstance(s, AttributeFact)]
    assert [f.attribute for f in facts] == ["Order Date"]
    (diag,) = result.diagnostics
    assert (diag.code, diag.line) == ("ParseWarning", 3)
    assert result.unparsed[0].text == "Order has a Status."


def test_fenced_code_is_ignored():
    """Test that fenced blocks are skipped entirely."""
    result = parse_text("**Person**\n```\n- Person has a Secret.\n```\n- Person has a Name.")
    facts = [s for s in result.statements if isinstance(s, AttributeFact)]
    assert [f.attribute for f in facts] == ["Name"]


def test_bullet_before_header_is_fatal():
    """Test that a bullet with no owning header raises DslSyntaxError."""
    with pytest.raises(DslSyntaxError) as exc_info:
        parse_text("- Person has a Name.\n**Person**")
    assert exc_info.value.line == 1
