"""Physical schema models (stored facts only)."""

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field
from semdown.graph.models import SemanticType


class PhysicalColumn(BaseModel):
    """Specification for a table column."""

    name: str
    semantic_type: SemanticType
    nullable: bool = True
    role: Literal["primary_key", "foreign_key", "attribute"] = "attribute"
    references: Optional[str] = None  # "physical_person.person_id"
    attribute: Optional[int] = None  # explicit attribute index; None when synthesized


class ForeignKeySpec(BaseModel):
    """Specification for a foreign key constraint."""

    column: str
    ref_table: str
    ref_column: str
    relationship: int  # relationship index in the knowledge graph
    shared_by: List[int] = Field(default_factory=list)  # reverse declarations of the same link

    def backs(self, relationship: int) -> bool:
        return relationship == self.relationship or relationship in self.shared_by


class PhysicalTable(BaseModel):
    """Specification for a table backing one entity."""

    name: str
    entity: int
    columns: List[PhysicalColumn]
    primary_key: List[str] = Field(default_factory=list)
    foreign_keys: List[ForeignKeySpec] = Field(default_factory=list)

    def get_column(self, name: str) -> Optional[PhysicalColumn]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_for_attribute(self, attribute: int) -> Optional[PhysicalColumn]:
        for col in self.columns:
            if col.attribute == attribute:
                return col
        return None


class PhysicalSchema(BaseModel):
    """Physical relational schema, one table per entity in entity order."""

    tables: Dict[str, PhysicalTable]

    def table_for_entity(self, entity: int) -> PhysicalTable:
        for table in self.tables.values():
            if table.entity == entity:
                return table
        raise KeyError(f"No table for entity index {entity}")

    def foreign_key_for(self, relationship: int) -> Optional[ForeignKeySpec]:
        """Foreign key created for a relationship, if any."""
        for table in self.tables.values():
            for fk in table.foreign_keys:
                if fk.backs(relationship):
                    return fk
        return None

    def referencing_table(self, relationship: int) -> Optional[PhysicalTable]:
        """Table holding the foreign key created for a relationship."""
        for table in self.tables.values():
            if any(fk.backs(relationship) for fk in table.foreign_keys):
                return table
        return None
