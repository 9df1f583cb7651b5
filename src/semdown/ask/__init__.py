"""Question answering over the knowledge graph."""

from .intents import QueryIntent, QueryPlan, ReferenceResolver
from .llm_resolver import LLMResolver, summarize_model
from .planner import QueryPlanner
from .query import build_query
from .resolvers import KeywordResolver

__all__ = [
    "QueryIntent",
    "QueryPlan",
    "ReferenceResolver",
    "LLMResolver",
    "summarize_model",
    "QueryPlanner",
    "build_query",
    "KeywordResolver",
]
