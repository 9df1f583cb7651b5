"""Tests for single-artifact generation and the concurrent fan-out."""

import pytest
from semdown.generators import generate_many
from semdown.generators.base import ANY_DIALECT, GENERATORS, register_generator


@pytest.fixture
def failing_kind():
    @register_generator("explode")
    def _explode(graph, physical, dialect):
        raise RuntimeError("boom")

    yield "explode"
    GENERATORS.pop(("explode", ANY_DIALECT), None)


def test_generate_many_keys_in_request_order(sales_graph):
    """Test that artifacts come back keyed by kind and dialect in request order."""
    requests = [("matrix", "postgres"), ("physical-ddl", "mysql"), ("physical-ddl", "postgres")]
    run = generate_many(sales_graph, requests, max_workers=3)
    assert run.ok
    assert list(run.artifacts) == ["matrix:postgres", "physical-ddl:mysql", "physical-ddl:postgres"]


def test_generate_many_dedupes(sales_graph):
    """Test that repeated requests are generated once."""
    run = generate_many(sales_graph, [("rag-doc", "postgres")] * 3, max_workers=2)
    assert list(run.artifacts) == ["rag-doc:postgres"]


def test_failure_does_not_abort_siblings(sales_graph, failing_kind):
    """Test that one failing generator is recorded while the others still finish."""
    requests = [("physical-ddl", "postgres"), (failing_kind, "postgres"), ("logical-views", "sqlite")]
    run = generate_many(sales_graph, requests, max_workers=2)
    assert not run.ok
    assert list(run.artifacts) == ["physical-ddl:postgres", "logical-views:sqlite"]
    error = run.errors["explode:postgres"]
    assert error.artifact == "explode"
    assert error.dialect == "postgres"
    assert "boom" in str(error)


def test_unknown_dialect_is_recorded(sales_graph):
    """Test that an unknown dialect is reported as an error of that artifact."""
    run = generate_many(sales_graph, [("physical-ddl", "oracle")])
    assert run.artifacts == {}
    assert "oracle" in str(run.errors["physical-ddl:oracle"])


def test_empty_request_list(sales_graph):
    """Test that no requests produce an empty, successful run."""
    run = generate_many(sales_graph, [])
    assert run.ok
    assert run.artifacts == {}
