"""Tests for the keyword resolver and the query planner."""

import pytest
from semdown.ask import KeywordResolver, QueryIntent, QueryPlanner
from semdown.compiler import compile_text
from semdown.errors import ResolverError, UngroundedReferenceError


class FixedResolver:
    """Returns the same intent for every question."""

    def __init__(self, intent):
        self.intent = intent

    def resolve(self, question, graph):
        return self.intent


def test_count(sales_graph):
    """Test a count question."""
    plan = QueryPlanner(sales_graph, KeywordResolver()).plan("How many orders are there?")
    assert plan.intent.shape == "count"
    assert plan.view == "logical_order"
    assert plan.sql == "SELECT COUNT(*) AS order_count FROM logical_order;"


def test_latest_date(sales_graph):
    """Test a max question over a Date attribute."""
    plan = QueryPlanner(sales_graph, KeywordResolver()).plan("What is the latest order date?")
    assert plan.intent.attribute == "Order Date"
    assert plan.columns == ["order_date"]
    assert plan.sql == "SELECT MAX(order_date) AS max_order_date FROM logical_order;"


def test_min_defaults_to_first_date(sales_graph):
    """Test that min without an attribute picks the first Date column."""
    planner = QueryPlanner(sales_graph, FixedResolver(QueryIntent(shape="min", entity="Order")))
    plan = planner.plan("When was the first order?")
    assert plan.intent.attribute == "Order Date"
    assert plan.sql == "SELECT MIN(order_date) AS min_order_date FROM logical_order;"


def test_filter(sales_graph):
    """Test an equality filter question."""
    plan = QueryPlanner(sales_graph, KeywordResolver()).plan("Which customers have zipcode 90210?")
    assert plan.intent.shape == "filter"
    assert plan.intent.filter_attribute == "Zipcode"
    assert plan.sql == "SELECT * FROM logical_customer WHERE zipcode = '90210';"


def test_filter_on_derived_attribute(sales_graph):
    """Test that a filter can use an attribute derived through a relationship."""
    intent = QueryIntent(
        shape="filter", entity="Order", filter_attribute="Customer Zipcode", filter_value="90210"
    )
    plan = QueryPlanner(sales_graph, FixedResolver(intent)).plan("Which orders ship to 90210?")
    assert plan.columns == ["customer_zipcode"]
    assert plan.sql == "SELECT * FROM logical_order WHERE customer_zipcode = '90210';"


def test_lookup_by_identifier(order_graph):
    """Test a lookup by the declared identifier."""
    plan = QueryPlanner(order_graph, KeywordResolver()).plan("What is the status of order SO-1001?")
    assert plan.intent.shape == "lookup"
    assert plan.intent.key_value == "SO-1001"
    assert plan.sql == "SELECT status FROM logical_order WHERE order_number = 'SO-1001';"


def test_mysql_dialect(sales_graph):
    """Test planning for another dialect."""
    plan = QueryPlanner(sales_graph, KeywordResolver(), dialect="mysql").plan("How many orders are there?")
    assert plan.dialect == "mysql"
    assert plan.sql.endswith("FROM logical_order;")


def test_unknown_attribute_is_ungrounded(sales_graph):
    """Test that an intent naming a missing attribute is rejected."""
    intent = QueryIntent(shape="max", entity="Order", attribute="Ship Date")
    with pytest.raises(UngroundedReferenceError):
        QueryPlanner(sales_graph, FixedResolver(intent)).plan("What is the latest ship date?")


def test_unknown_entity_is_ungrounded(sales_graph):
    """Test that an intent naming a missing entity is rejected."""
    intent = QueryIntent(shape="count", entity="Invoice")
    with pytest.raises(UngroundedReferenceError):
        QueryPlanner(sales_graph, FixedResolver(intent)).plan("How many invoices are there?")


def test_min_without_date_column():
    """Test that min on an entity with no Date attribute cannot be grounded."""
    graph = compile_text("**Tag**\n- Tag has a Label.\n")
    with pytest.raises(UngroundedReferenceError):
        QueryPlanner(graph, FixedResolver(QueryIntent(shape="min", entity="Tag"))).plan("?")


def test_hidden_derived_attribute_is_ungrounded():
    """Test that a derived attribute left out of its view does not bind to a same-named column."""
    graph = compile_text("**Customer**\n- Customer has an Id.\n**Order**\n- Order has a Customer.\n")
    intent = QueryIntent(shape="filter", entity="Order", filter_attribute="Customer Id", filter_value="7")
    with pytest.raises(UngroundedReferenceError):
        QueryPlanner(graph, FixedResolver(intent)).plan("Which orders have customer id 7?")


def test_resolver_needs_an_entity(sales_graph):
    """Test that a question naming no entity cannot be resolved."""
    with pytest.raises(ResolverError):
        KeywordResolver().resolve("What is the weather like?", sales_graph)
