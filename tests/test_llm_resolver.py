"""Tests for the chat-model resolver and its helpers (no network calls)."""

import pytest
from semdown.ask import LLMResolver, QueryPlanner, summarize_model
from semdown.ask.tools.json_parser import JSONParseError, extract_json
from semdown.ask.tools.retry import retry_with_backoff
from semdown.errors import ResolverError
from semdown.prompts import load_prompt, placeholders, render_prompt


def test_summarize_model(order_graph):
    """Test the per-entity attribute summary sent to the model."""
    summary = summarize_model(order_graph)
    assert summary.startswith("- Order: Order Number (Number, identifier), Order Date (Date)")


def test_build_messages(sales_graph):
    """Test that prompts carry the model summary and the question."""
    resolver = LLMResolver(chat=lambda messages: "{}")
    system, user = resolver.build_messages("How many orders?", sales_graph)
    assert system["role"] == "system"
    assert "Customer Zipcode (String, derived)" in system["content"]
    assert user["content"].rstrip().endswith("How many orders?")


def test_resolve_fenced_json(sales_graph):
    """Test that a fenced JSON reply becomes a grounded plan."""
    reply = 'Sure:\n```json\n{"shape": "max", "entity": "Order", "attribute": "Order Date"}\n```'
    planner = QueryPlanner(sales_graph, LLMResolver(chat=lambda messages: reply))
    plan = planner.plan("When was the latest order?")
    assert plan.sql == "SELECT MAX(order_date) AS max_order_date FROM logical_order;"


def test_resolve_invalid_reply(sales_graph):
    """Test that replies without a valid intent raise ResolverError."""
    with pytest.raises(ResolverError):
        LLMResolver(chat=lambda messages: "I don't know").resolve("?", sales_graph)
    with pytest.raises(ResolverError):
        LLMResolver(chat=lambda messages: '{"shape": "sum", "entity": "Order"}').resolve("?", sales_graph)


def test_extract_json_fixes_trailing_commas():
    """Test lenient JSON extraction."""
    assert extract_json('{"shape": "count", "entity": "Order",}') == {"shape": "count", "entity": "Order"}
    with pytest.raises(JSONParseError):
        extract_json("[1, 2]")


def test_retry_with_backoff():
    """Test that transient errors are retried with doubling delays."""
    delays = []
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise TimeoutError("request timed out")
        return "ok"

    result = retry_with_backoff(flaky, max_retries=3, base_delay=0.5, sleep=delays.append)
    assert result == "ok"
    assert delays == [0.5, 1.0]


def test_retry_does_not_retry_permanent_errors():
    """Test that non-transient errors are raised immediately."""
    delays = []

    def broken():
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        retry_with_backoff(broken, max_retries=3, base_delay=0.5, sleep=delays.append)
    assert delays == []


def test_prompt_templates():
    """Test that the shipped templates expose exactly the expected placeholders."""
    assert placeholders(load_prompt("resolver_system.txt")) == {"MODEL"}
    assert placeholders(load_prompt("resolver_user.txt")) == {"QUESTION"}
    with pytest.raises(ValueError):
        render_prompt(load_prompt("resolver_user.txt"))
    with pytest.raises(FileNotFoundError):
        load_prompt("missing.txt")
