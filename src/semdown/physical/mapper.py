"""Knowledge graph -> physical schema mapping."""

from typing import Dict, List

from semdown.config.logging import get_logger
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from semdown.utils.naming import snake_case
from .schema import ForeignKeySpec, PhysicalColumn, PhysicalSchema, PhysicalTable

logger = get_logger(__name__)

TABLE_PREFIX = "physical_"


def table_name(entity_name: str) -> str:
    return f"{TABLE_PREFIX}{snake_case(entity_name)}"


def table_names(graph: KnowledgeGraph) -> Dict[int, str]:
    """Table name per entity index; clashing snake-case names get a numeric suffix."""
    names: Dict[int, str] = {}
    used = set()
    for entity in graph.entities:
        name = table_name(entity.name)
        if name in used:
            suffix = 2
            while f"{name}_{suffix}" in used:
                suffix += 1
            logger.warning(f"Table name '{name}' is taken; using '{name}_{suffix}' for '{entity.name}'")
            name = f"{name}_{suffix}"
        used.add(name)
        names[entity.index] = name
    return names


def map_physical(graph: KnowledgeGraph) -> PhysicalSchema:
    """
    Map a knowledge graph to a physical schema.

    One table per entity (stubs included) with explicit attributes only;
    derived attributes belong to the logical layer. Reference attributes
    become `<target>_id` foreign key columns typed like the target's
    primary key, and `A has one or more B` adds an `<a>_id` foreign key to B.

    Args:
        graph: Knowledge graph

    Returns:
        PhysicalSchema with tables in entity order
    """
    pk_columns: Dict[int, PhysicalColumn] = {}
    tables: Dict[int, PhysicalTable] = {}
    names = table_names(graph)

    # Primary keys first so references can be typed like their targets
    for entity in graph.entities:
        ident = graph.get_identifier(entity.index)
        if ident is not None:
            pk_columns[entity.index] = PhysicalColumn(
                name=snake_case(ident.name),
                semantic_type=ident.semantic_type,
                nullable=False,
                role="primary_key",
                attribute=ident.index,
            )
        else:
            pk_columns[entity.index] = PhysicalColumn(
                name=f"{snake_case(entity.name)}_id",
                semantic_type=SemanticType.STRING,
                nullable=False,
                role="primary_key",
            )

    for entity in graph.entities:
        pk = pk_columns[entity.index]
        name = names[entity.index]
        columns: List[PhysicalColumn] = []
        if pk.attribute is None:
            columns.append(pk)
        foreign_keys: List[ForeignKeySpec] = []

        for attr in graph.get_attributes(entity.index):
            if attr.identifying:
                columns.append(pk)
                continue
            if attr.semantic_type == SemanticType.REFERENCE:
                target = graph.entities[attr.references]
                target_pk = pk_columns[target.index]
                col_name = f"{snake_case(target.name)}_id"
                relationship = next(
                    r.index
                    for r in graph.get_relationships(entity.index)
                    if r.target == target.index and r.derivable
                )
                if any(c.name == col_name for c in columns):
                    logger.warning(
                        f"{name}: column '{col_name}' already exists; "
                        f"reusing it as the foreign key to '{target.name}'"
                    )
                else:
                    columns.append(
                        PhysicalColumn(
                            name=col_name,
                            semantic_type=target_pk.semantic_type,
                            nullable=attr.nullable,
                            role="foreign_key",
                            references=f"{names[target.index]}.{target_pk.name}",
                            attribute=attr.index,
                        )
                    )
                foreign_keys.append(
                    ForeignKeySpec(
                        column=col_name,
                        ref_table=names[target.index],
                        ref_column=target_pk.name,
                        relationship=relationship,
                    )
                )
                continue

            col_name = snake_case(attr.name)
            if any(c.name == col_name for c in columns):
                logger.warning(f"{name}: duplicate column '{col_name}' skipped")
                continue
            columns.append(
                PhysicalColumn(
                    name=col_name,
                    semantic_type=attr.semantic_type,
                    nullable=attr.nullable,
                    attribute=attr.index,
                )
            )

        # Relationships whose reference attribute was shadowed by a plain attribute
        for rel in graph.get_relationships(entity.index):
            if not rel.derivable or any(fk.backs(rel.index) for fk in foreign_keys):
                continue
            target = graph.entities[rel.target]
            target_pk = pk_columns[target.index]
            col_name = f"{snake_case(target.name)}_ref_id"
            columns.append(
                PhysicalColumn(
                    name=col_name,
                    semantic_type=target_pk.semantic_type,
                    role="foreign_key",
                    references=f"{names[target.index]}.{target_pk.name}",
                )
            )
            foreign_keys.append(
                ForeignKeySpec(
                    column=col_name,
                    ref_table=names[target.index],
                    ref_column=target_pk.name,
                    relationship=rel.index,
                )
            )

        tables[entity.index] = PhysicalTable(
            name=name,
            entity=entity.index,
            columns=columns,
            primary_key=[pk.name],
            foreign_keys=foreign_keys,
        )

    # "A has one or more B": B carries the key of A
    for rel in graph.relationships:
        if rel.cardinality != "one_to_many":
            continue
        parent = graph.entities[rel.source]
        child = tables[rel.target]
        parent_pk = pk_columns[rel.source]
        col_name = f"{snake_case(parent.name)}_id"
        if rel.source == rel.target:
            col_name = f"parent_{col_name}"
        ref_table = names[rel.source]
        shared = next(
            (fk for fk in child.foreign_keys if fk.column == col_name and fk.ref_table == ref_table),
            None,
        )
        if shared is not None:
            # "B has an A" already put A's key on B
            shared.shared_by.append(rel.index)
            continue
        if child.get_column(col_name) is None:
            child.columns.append(
                PhysicalColumn(
                    name=col_name,
                    semantic_type=parent_pk.semantic_type,
                    nullable=True,
                    role="foreign_key",
                    references=f"{ref_table}.{parent_pk.name}",
                )
            )
        child.foreign_keys.append(
            ForeignKeySpec(
                column=col_name,
                ref_table=ref_table,
                ref_column=parent_pk.name,
                relationship=rel.index,
            )
        )

    schema = PhysicalSchema(tables={t.name: t for t in tables.values()})
    logger.debug(
        f"Mapped {len(schema.tables)} tables, "
        f"{sum(len(t.foreign_keys) for t in schema.tables.values())} foreign keys"
    )
    return schema
