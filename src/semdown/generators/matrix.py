"""Relationship matrix generator."""

import pandas as pd

from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.physical.schema import PhysicalSchema
from .base import DialectConfig, register_generator


def relationship_matrix(graph: KnowledgeGraph) -> pd.DataFrame:
    """
    Entity x entity matrix of derivation hop counts.

    Cell (row, column) holds the length of the shortest chain of 'has a'
    relationships from the row entity to the column entity: 0 on the
    diagonal, empty when the column entity is unreachable.
    """
    names = [e.name for e in graph.entities]
    rows = []
    for source in graph.entities:
        row = []
        for target in graph.entities:
            path = graph.derivation_path(source.index, target.index)
            row.append(None if path is None else len(path))
        rows.append(row)
    return pd.DataFrame(rows, index=names, columns=names).astype("Int64")


@register_generator("matrix")
def generate_matrix(graph: KnowledgeGraph, physical: PhysicalSchema, dialect: DialectConfig) -> str:
    """CSV rendering of the relationship matrix."""
    frame = relationship_matrix(graph)
    frame.index.name = "entity"
    return frame.to_csv(lineterminator="\n")
