"""Tests that described models compile back to an equivalent graph."""

import pytest
from semdown.compiler import compile_text
from semdown.generators import generate
from semdown.generators.describe import describe_graph


def signature(graph):
    """Name-based view of a graph, independent of line numbers and indexes."""
    def name(i):
        return graph.entities[i].name

    return {
        "entities": [(e.name, e.description, e.declared) for e in graph.entities],
        "attributes": sorted(
            (name(a.entity), a.name, a.semantic_type.value, a.identifying, a.example, a.nullable)
            for a in graph.attributes
        ),
        "derived": sorted((name(d.entity), d.name, d.semantic_type.value) for d in graph.derived),
        "relationships": sorted(
            (name(r.source), name(r.target), r.cardinality) for r in graph.relationships
        ),
        "constraints": sorted(
            (name(c.entity), c.kind, c.attribute or "", c.min_count or 0) for c in graph.constraints
        ),
        "subtypes": sorted(
            (name(s.subtype), name(s.base), type(s.predicate).__name__) for s in graph.subtype_rules
        ),
    }


@pytest.mark.parametrize("fixture", ["sales_graph", "order_graph"])
def test_describe_roundtrip(request, fixture):
    """Test that compiling the description gives the same graph."""
    graph = request.getfixturevalue(fixture)
    again = compile_text(describe_graph(graph))
    assert signature(again) == signature(graph)
    assert describe_graph(again) == describe_graph(graph)


def test_describe_output(sales_graph):
    """Test the canonical text of the Customer entity."""
    text = generate("postgres", "graph-describe", sales_graph)
    assert "**Customer**: A person who buys from us.\n" in text
    assert "- Customer has a **Person**.\n" in text
    assert '- Customer has a Zipcode, for example "90210".\n' in text
    assert "- Customer is a **Person** with at least 1 Order.\n" in text
    assert "- Order must have an Order Date in the past.\n" in text


def test_describe_keeps_declared_types():
    """Test that explicitly typed attributes keep their type."""
    graph = compile_text("**Account**\n- Account has a Balance (Number).\n- Account has a Code.\n")
    text = describe_graph(graph)
    assert "- Account has a Balance (Number).\n" in text
    assert "- Account has a Code.\n" in text


def test_describe_stub_facts():
    """Test that referenced-only entities round-trip as stubs."""
    model = "**Order**\n- Order has a **Shipment**.\n"
    graph = compile_text(model)
    again = compile_text(describe_graph(graph))
    assert signature(again) == signature(graph)
    assert not again.get_entity("Shipment").declared
