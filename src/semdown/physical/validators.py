"""Checks for places where the physical and logical layers had to give way."""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional
from semdown.config.logging import get_logger
from semdown.graph.knowledge_graph import KnowledgeGraph
from semdown.graph.models import SemanticType
from .logical import LogicalSchema, build_logical_schema
from .mapper import table_name
from .schema import PhysicalSchema

logger = get_logger(__name__)

# View diagnostics reported as schema issues
VIEW_CODES = {
    "SkippedJoin": "JOIN_SKIPPED",
    "UnsourcedDerivedColumn": "DERIVED_COLUMN_UNSOURCED",
    "DerivedColumnClash": "DERIVED_COLUMN_CLASH",
}


@dataclass
class QaIssue:
    """QA issue found during validation."""

    stage: Literal["PhysicalSchema", "LogicalViews"]
    code: str  # e.g., "TABLE_NAME_SUFFIXED", "DERIVED_COLUMN_CLASH"
    location: str  # e.g., "table_name" or "table_name.column_name"
    message: str
    details: dict = field(default_factory=dict)


def _table_issues(graph: KnowledgeGraph, physical: PhysicalSchema) -> List[QaIssue]:
    issues: List[QaIssue] = []
    for entity in graph.entities:
        table = physical.table_for_entity(entity.index)
        wanted = table_name(entity.name)
        if table.name != wanted:
            issues.append(
                QaIssue(
                    stage="PhysicalSchema",
                    code="TABLE_NAME_SUFFIXED",
                    location=table.name,
                    message=f"'{entity.name}' maps to '{wanted}', which another entity "
                    f"already uses; stored as '{table.name}'",
                    details={"entity": entity.name, "table": table.name},
                )
            )

        for attr in graph.get_attributes(entity.index):
            if attr.semantic_type == SemanticType.REFERENCE or attr.identifying:
                continue
            if table.column_for_attribute(attr.index) is None:
                issues.append(
                    QaIssue(
                        stage="PhysicalSchema",
                        code="ATTRIBUTE_NOT_STORED",
                        location=table.name,
                        message=f"'{entity.name}.{attr.name}' has no column; its column "
                        f"name is taken by another attribute",
                        details={"entity": entity.name, "attribute": attr.name},
                    )
                )

        by_column: Dict[str, List[int]] = defaultdict(list)
        for fk in table.foreign_keys:
            by_column[fk.column].append(fk.relationship)
            col = table.get_column(fk.column)
            if col is not None and col.role == "attribute":
                issues.append(
                    QaIssue(
                        stage="PhysicalSchema",
                        code="FK_ON_ATTRIBUTE_COLUMN",
                        location=f"{table.name}.{fk.column}",
                        message=f"{table.name}: foreign key to '{fk.ref_table}' reuses the "
                        f"declared attribute column '{fk.column}'",
                        details={"table": table.name, "column": fk.column, "ref_table": fk.ref_table},
                    )
                )
        for column, rels in by_column.items():
            if len(rels) > 1:
                issues.append(
                    QaIssue(
                        stage="PhysicalSchema",
                        code="FK_COLUMN_SHARED",
                        location=f"{table.name}.{column}",
                        message=f"{table.name}: column '{column}' backs {len(rels)} "
                        f"unrelated relationships",
                        details={"table": table.name, "column": column, "relationships": rels},
                    )
                )
    return issues


def _view_issues(logical: LogicalSchema) -> List[QaIssue]:
    issues: List[QaIssue] = []
    for view in logical.views.values():
        for diag in view.diagnostics:
            column = diag.details.get("column") or diag.details.get("attribute", "")
            issues.append(
                QaIssue(
                    stage="LogicalViews",
                    code=VIEW_CODES.get(diag.code, diag.code),
                    location=f"{view.name}.{column}" if column else view.name,
                    message=f"{view.name}: {diag.message}",
                    details=dict(diag.details),
                )
            )
    return issues


def validate_physical(
    graph: KnowledgeGraph,
    physical: PhysicalSchema,
    logical: Optional[LogicalSchema] = None,
) -> List[QaIssue]:
    """
    Report what the mapping could not store or expose as declared.

    Covers renamed tables, attributes without a column, foreign keys that
    reuse attribute columns or share a column, and derived attributes the
    logical views had to leave out.

    Args:
        graph: Knowledge graph the schema was mapped from
        physical: Physical schema
        logical: Logical schema (built from the two above if omitted)

    Returns:
        List of QaIssue objects (empty if validation passes)
    """
    if logical is None:
        logical = build_logical_schema(graph, physical)
    issues = _table_issues(graph, physical) + _view_issues(logical)
    if issues:
        logger.warning(f"Schema validation found {len(issues)} issues")
    return issues
