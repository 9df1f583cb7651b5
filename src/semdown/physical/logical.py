"""Logical layer: one view per entity exposing stored and derived columns."""

from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, Field

from semdown.config.logging import get_logger
from semdown.diagnostics import Diagnostic
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.utils.naming import name_key, snake_case
from .mapper import TABLE_PREFIX
from .schema import PhysicalSchema

logger = get_logger(__name__)

VIEW_PREFIX = "logical_"
BASE_ALIAS = "t0"


class LogicalColumn(BaseModel):
    """A view column and where it comes from."""

    name: str
    attribute: str  # display name in the knowledge graph
    source_alias: str
    source_column: str
    semantic_type: SemanticType
    derived: bool = False
    path: Tuple[int, ...] = ()


class LogicalJoin(BaseModel):
    """`LEFT JOIN <table> <alias> ON <alias>.<ref_column> = <parent_alias>.<column>`."""

    alias: str
    table: str
    path: Tuple[int, ...]
    parent_alias: str
    column: str  # foreign key column on the parent side
    ref_column: str  # primary key column on the joined table


class LogicalView(BaseModel):
    """Logical view of one entity."""

    name: str
    entity: int
    entity_name: str
    base_table: str
    key_column: Optional[str] = None
    columns: List[LogicalColumn] = Field(default_factory=list)
    joins: List[LogicalJoin] = Field(default_factory=list)
    hidden: List[str] = Field(default_factory=list)  # derived attributes left out of the view
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    def get_column(self, name: str) -> Optional[LogicalColumn]:
        """
        Find a column by view column name, then by attribute display name.

        The snake_case form of the name is tried last, and never for a
        derived attribute that was left out of the view, so a hidden
        attribute cannot bind to an unrelated column of the same name.
        """
        for col in self.columns:
            if col.name == name:
                return col
        key = name_key(name)
        for col in self.columns:
            if name_key(col.attribute) == key:
                return col
        if any(name_key(h) == key for h in self.hidden):
            return None
        snake = snake_case(name)
        for col in self.columns:
            if col.name == snake:
                return col
        return None

    def first_column_of_type(self, semantic_type: SemanticType) -> Optional[LogicalColumn]:
        for col in self.columns:
            if col.semantic_type == semantic_type:
                return col
        return None


class LogicalSchema(BaseModel):
    """Logical views keyed by view name, in entity order."""

    views: Dict[str, LogicalView]

    def view_for_entity(self, entity: int) -> LogicalView:
        for view in self.views.values():
            if view.entity == entity:
                return view
        raise KeyError(f"No view for entity index {entity}")


def view_name(table: str) -> str:
    if table.startswith(TABLE_PREFIX):
        return VIEW_PREFIX + table[len(TABLE_PREFIX):]
    return VIEW_PREFIX + table


def _path_sort_key(graph: KnowledgeGraph, path: Tuple[int, ...]):
    names = tuple(
        graph.entities[graph.relationships[r].target].name.casefold() for r in path
    )
    return (len(path), names, path)


def _note(view: LogicalView, code: str, message: str, **details) -> None:
    logger.warning(f"{view.name}: {message}")
    view.diagnostics.append(
        Diagnostic(code=code, message=message, details={"view": view.name, **details})
    )


def build_logical_view(
    graph: KnowledgeGraph, physical: PhysicalSchema, entity: int
) -> LogicalView:
    """
    Build the logical view of one entity.

    Own physical columns come first, followed by one column per derived
    attribute. Each distinct derivation path prefix becomes one LEFT JOIN;
    joins are ordered shortest path first, then by entity names along the
    path, so aliases are stable across runs.
    """
    ent = graph.entities[entity]
    table = physical.table_for_entity(entity)
    view = LogicalView(
        name=view_name(table.name),
        entity=entity,
        entity_name=ent.name,
        base_table=table.name,
        key_column=table.primary_key[0] if table.primary_key else None,
    )

    for col in table.columns:
        if col.attribute is not None:
            attribute = graph.attributes[col.attribute].name
        else:
            attribute = col.name
        view.columns.append(
            LogicalColumn(
                name=col.name,
                attribute=attribute,
                source_alias=BASE_ALIAS,
                source_column=col.name,
                semantic_type=col.semantic_type,
            )
        )

    derived = graph.get_derived_attributes(entity)
    prefixes = set()
    for d in derived:
        for i in range(1, len(d.path) + 1):
            prefixes.add(d.path[:i])

    aliases: Dict[Tuple[int, ...], str] = {(): BASE_ALIAS}
    for n, path in enumerate(sorted(prefixes, key=lambda p: _path_sort_key(graph, p)), 1):
        rel = path[-1]
        fk = physical.foreign_key_for(rel)
        if fk is None or path[:-1] not in aliases:
            _note(
                view,
                "SkippedJoin",
                f"no foreign key backs relationship {rel}; join skipped",
                relationship=rel,
            )
            continue
        alias = f"t{n}"
        aliases[path] = alias
        view.joins.append(
            LogicalJoin(
                alias=alias,
                table=fk.ref_table,
                path=path,
                parent_alias=aliases[path[:-1]],
                column=fk.column,
                ref_column=fk.ref_column,
            )
        )

    taken = {c.name for c in view.columns}
    for d in derived:
        alias = aliases.get(d.path)
        source_table = physical.table_for_entity(graph.attributes[d.source_attribute].entity)
        source_col = source_table.column_for_attribute(d.source_attribute)
        if alias is None or source_col is None:
            view.hidden.append(d.name)
            _note(
                view,
                "UnsourcedDerivedColumn",
                f"derived attribute '{d.name}' has no physical source column",
                attribute=d.name,
            )
            continue
        col_name = snake_case(d.name)
        if col_name in taken:
            view.hidden.append(d.name)
            _note(
                view,
                "DerivedColumnClash",
                f"derived attribute '{d.name}' would be column '{col_name}', which is taken",
                attribute=d.name,
                column=col_name,
            )
            continue
        taken.add(col_name)
        view.columns.append(
            LogicalColumn(
                name=col_name,
                attribute=d.name,
                source_alias=alias,
                source_column=source_col.name,
                semantic_type=d.semantic_type,
                derived=True,
                path=d.path,
            )
        )
    return view


def build_logical_schema(graph: KnowledgeGraph, physical: PhysicalSchema) -> LogicalSchema:
    """Build one logical view per entity, in entity order."""
    views = [build_logical_view(graph, physical, e.index) for e in graph.entities]
    return LogicalSchema(views={v.name: v for v in views})
