"""Query intents, plans and the resolver protocol."""

from typing import List, Literal, Optional, Protocol, TYPE_CHECKING, runtime_checkable
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from semdown.graph.knowledge_graph import KnowledgeGraph

QueryShape = Literal["count", "lookup", "min", "max", "filter"]


class QueryIntent(BaseModel):
    """What a question asks for, in knowledge graph terms."""

    shape: QueryShape
    entity: str
    attribute: Optional[str] = None
    key_value: Optional[str] = None  # identifier value for lookups
    filter_attribute: Optional[str] = None
    filter_value: Optional[str] = None


class QueryPlan(BaseModel):
    """A grounded query over one logical view."""

    question: str
    intent: QueryIntent
    dialect: str
    view: str
    columns: List[str] = Field(default_factory=list)  # view columns the query references
    sql: str


@runtime_checkable
class ReferenceResolver(Protocol):
    """Maps a natural-language question to a query intent."""

    def resolve(self, question: str, graph: "KnowledgeGraph") -> QueryIntent:
        ...
