"""Physical schema mapping and the logical layer built on top of it."""

from .schema import ForeignKeySpec, PhysicalColumn, PhysicalSchema, PhysicalTable
from .mapper import map_physical, table_name
from .logical import (
    LogicalColumn,
    LogicalJoin,
    LogicalSchema,
    LogicalView,
    build_logical_schema,
    build_logical_view,
)
from .validators import QaIssue, validate_physical

__all__ = [
    "ForeignKeySpec",
    "PhysicalColumn",
    "PhysicalSchema",
    "PhysicalTable",
    "map_physical",
    "table_name",
    "LogicalColumn",
    "LogicalJoin",
    "LogicalSchema",
    "LogicalView",
    "build_logical_schema",
    "build_logical_view",
    "QaIssue",
    "validate_physical",
]
