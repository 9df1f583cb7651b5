"""SQL skeletons for each query shape over a logical view."""

import re
from typing import List, Tuple

from semdown.errors import UngroundedReferenceError
from semdown.generators.base import DialectConfig
from semdown.graph.models import SemanticType
from semdown.physical.logical import LogicalColumn, LogicalView
from semdown.utils.naming import snake_case
from .intents import QueryIntent

_NUMERIC = re.compile(r"^-?\d+(?:\.\d+)?$")


def sql_value(value: str, column: LogicalColumn) -> str:
    """Render a literal for a column: bare numbers for Number columns, quoted otherwise."""
    if column.semantic_type == SemanticType.NUMBER and _NUMERIC.match(value.strip()):
        return value.strip()
    return "'" + value.replace("'", "''") + "'"


def resolve_column(view: LogicalView, name: str) -> LogicalColumn:
    col = view.get_column(name)
    if col is None:
        raise UngroundedReferenceError(
            f"'{view.entity_name}' has no attribute '{name}' (view {view.name})"
        )
    return col


def build_query(intent: QueryIntent, view: LogicalView, dialect: DialectConfig) -> Tuple[str, List[str]]:
    """
    Build the SQL for an intent against a logical view.

    Shapes:
        count:  SELECT COUNT(*) ... [WHERE filter]
        lookup: SELECT <attribute | *> ... WHERE <key column> = <key_value>
        min/max: SELECT MIN|MAX(<attribute>) ...
        filter: SELECT <attribute | *> ... WHERE <filter_attribute> = <filter_value>

    Returns:
        Tuple of (sql, referenced view column names)

    Raises:
        UngroundedReferenceError: If an attribute or the view key cannot be resolved
    """
    q = dialect.quote
    source = q(view.name)
    referenced: List[str] = []

    where = ""
    if intent.filter_attribute is not None and intent.filter_value is not None:
        fcol = resolve_column(view, intent.filter_attribute)
        referenced.append(fcol.name)
        where = f" WHERE {q(fcol.name)} = {sql_value(intent.filter_value, fcol)}"

    if intent.shape == "count":
        alias = q(f"{snake_case(view.entity_name)}_count")
        return f"SELECT COUNT(*) AS {alias} FROM {source}{where};", referenced

    if intent.shape in ("min", "max"):
        if intent.attribute is None:
            raise UngroundedReferenceError(f"{intent.shape} needs an attribute of '{view.entity_name}'")
        col = resolve_column(view, intent.attribute)
        referenced.insert(0, col.name)
        fn = intent.shape.upper()
        alias = q(f"{intent.shape}_{col.name}")
        return f"SELECT {fn}({q(col.name)}) AS {alias} FROM {source}{where};", referenced

    select = "*"
    if intent.attribute is not None:
        col = resolve_column(view, intent.attribute)
        referenced.insert(0, col.name)
        select = q(col.name)

    if intent.shape == "lookup":
        if view.key_column is None or intent.key_value is None:
            raise UngroundedReferenceError(f"lookup on '{view.entity_name}' needs a key value")
        key = resolve_column(view, view.key_column)
        referenced.append(key.name)
        return (
            f"SELECT {select} FROM {source} WHERE {q(key.name)} = {sql_value(intent.key_value, key)};",
            referenced,
        )

    if not where:
        raise UngroundedReferenceError(
            f"filter on '{view.entity_name}' needs a filter attribute and value"
        )
    return f"SELECT {select} FROM {source}{where};", referenced
