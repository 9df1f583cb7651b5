"""Question -> grounded SQL over the logical layer."""

from typing import Tuple, Union

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError

from semdown.config.logging import get_logger
from semdown.errors import UngroundedReferenceError
from semdown.generators.base import DialectConfig, get_dialect
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.physical.logical import LogicalView, build_logical_schema
from semdown.physical.mapper import map_physical
from .intents import QueryIntent, QueryPlan, ReferenceResolver
from .query import build_query

logger = get_logger(__name__)


class QueryPlanner:
    """
    Plans questions into SQL over the logical views of a knowledge graph.

    The resolver only proposes an intent; every name it returns is grounded
    against the graph and the planned SQL is parsed back with sqlglot to
    check that it references nothing outside the chosen view.
    """

    def __init__(
        self,
        graph: KnowledgeGraph,
        resolver: ReferenceResolver,
        dialect: Union[str, DialectConfig] = "postgres",
    ):
        self.graph = graph
        self.resolver = resolver
        self.dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect
        self.logical = build_logical_schema(graph, map_physical(graph))

    def ground(self, intent: QueryIntent) -> Tuple[QueryIntent, LogicalView]:
        """
        Check an intent against the graph and fill in defaults.

        Raises:
            UngroundedReferenceError: If the entity or an attribute is unknown
        """
        if not self.graph.has_entity(intent.entity):
            raise UngroundedReferenceError(f"Unknown entity '{intent.entity}'")
        entity = self.graph.get_entity(intent.entity)
        view = self.logical.view_for_entity(entity.index)

        for name in (intent.attribute, intent.filter_attribute):
            if name is not None and view.get_column(name) is None:
                raise UngroundedReferenceError(
                    f"'{entity.name}' has no attribute '{name}'"
                )

        updates = {"entity": entity.name}
        if intent.shape in ("min", "max") and intent.attribute is None:
            date_col = view.first_column_of_type(SemanticType.DATE)
            if date_col is None:
                raise UngroundedReferenceError(
                    f"'{entity.name}' has no Date attribute to take the {intent.shape} of"
                )
            updates["attribute"] = date_col.attribute
        return intent.model_copy(update=updates), view

    def verify(self, sql: str, view: LogicalView) -> None:
        """
        Parse planned SQL and check every table and column against the view.

        Raises:
            UngroundedReferenceError: If the SQL does not parse or references unknown names
        """
        try:
            parsed = sqlglot.parse_one(sql, read=self.dialect.sqlglot_dialect)
        except ParseError as e:
            raise UngroundedReferenceError(f"Planned SQL does not parse: {e}") from e

        columns = {c.name for c in view.columns}
        for column in parsed.find_all(exp.Column):
            if column.name not in columns:
                raise UngroundedReferenceError(
                    f"Column '{column.name}' is not in view '{view.name}'"
                )
        for table in parsed.find_all(exp.Table):
            if table.name != view.name:
                raise UngroundedReferenceError(
                    f"Table '{table.name}' is not the planned view '{view.name}'"
                )

    def plan_intent(self, intent: QueryIntent, question: str = "") -> QueryPlan:
        intent, view = self.ground(intent)
        sql, referenced = build_query(intent, view, self.dialect)
        self.verify(sql, view)
        return QueryPlan(
            question=question,
            intent=intent,
            dialect=self.dialect.name,
            view=view.name,
            columns=referenced,
            sql=sql,
        )

    def plan(self, question: str) -> QueryPlan:
        """
        Resolve a question and plan its SQL.

        Raises:
            ResolverError: If the resolver cannot produce an intent
            UngroundedReferenceError: If the intent names something absent from the graph
        """
        intent = self.resolver.resolve(question, self.graph)
        logger.info(f"Resolved intent: {intent.model_dump(exclude_none=True)}")
        plan = self.plan_intent(intent, question)
        logger.debug(f"Planned SQL: {plan.sql}")
        return plan
