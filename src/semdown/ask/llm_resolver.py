"""Resolver backed by a single chat-model call."""

from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from semdown.config.logging import get_logger
from semdown.errors import ResolverError
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.prompts import load_prompt, render_prompt
from .intents import QueryIntent
from .tools.json_parser import JSONParseError, extract_json

logger = get_logger(__name__)

ChatFn = Callable[[List[Dict[str, str]]], str]


def summarize_model(graph: KnowledgeGraph) -> str:
    """One line per entity listing the attributes a question may name."""
    lines = []
    for entity in graph.entities:
        parts = []
        for attr in graph.get_attributes(entity.index):
            if attr.semantic_type == SemanticType.REFERENCE:
                continue
            marker = ", identifier" if attr.identifying else ""
            parts.append(f"{attr.name} ({attr.semantic_type.value}{marker})")
        for d in graph.get_derived_attributes(entity.index):
            parts.append(f"{d.name} ({d.semantic_type.value}, derived)")
        lines.append(f"- {entity.name}: {', '.join(parts) if parts else '(no attributes)'}")
    return "\n".join(lines)


class LLMResolver:
    """
    Asks a chat model to turn a question into a QueryIntent.

    The default chat function is the OpenAI-compatible client configured in
    settings, which applies the configured timeout and retries with backoff.
    """

    def __init__(self, chat: Optional[ChatFn] = None):
        if chat is None:
            from .tools.llm_client import chat as default_chat

            chat = default_chat
        self.chat = chat

    def build_messages(self, question: str, graph: KnowledgeGraph) -> List[Dict[str, str]]:
        system = render_prompt(load_prompt("resolver_system.txt"), MODEL=summarize_model(graph))
        user = render_prompt(load_prompt("resolver_user.txt"), QUESTION=question)
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def resolve(self, question: str, graph: KnowledgeGraph) -> QueryIntent:
        """
        Raises:
            ResolverError: If the response holds no valid intent
        """
        raw = self.chat(self.build_messages(question, graph))
        try:
            data = extract_json(raw)
        except JSONParseError as e:
            raise ResolverError(f"Resolver response is not JSON: {e}") from e
        try:
            intent = QueryIntent.model_validate(data)
        except ValidationError as e:
            raise ResolverError(f"Resolver response is not a valid intent: {e}") from e
        logger.debug(f"LLM intent: {intent.model_dump(exclude_none=True)}")
        return intent
