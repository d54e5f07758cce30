"""Foreign-key dependency graph derived from the table metadata.

Cascades never name tables explicitly. They walk the edges collected here,
so a new dependent table only needs a ``ForeignKey`` to take part in delete
and rename propagation.
"""

from dataclasses import dataclass
from typing import Dict, List

from sqlalchemy import Column, MetaData, Table


@dataclass(frozen=True, eq=False)
class Reference:
    """One foreign-key edge: ``child.child_column`` -> ``parent.parent_column``."""

    child: Table
    child_column: Column
    parent: Table
    parent_column: Column

    def __str__(self) -> str:
        return f"{self.child.name}.{self.child_column.name} -> {self.parent.name}.{self.parent_column.name}"


class DependencyGraph:
    """Tables ordered topologically with the foreign-key edges between them."""

    def __init__(self, metadata: MetaData):
        self.metadata = metadata
        # Parents come before the tables that reference them
        self.tables: List[Table] = list(metadata.sorted_tables)
        self._rank: Dict[str, int] = {table.name: index for index, table in enumerate(self.tables)}
        self.references: List[Reference] = [
            Reference(
                child=table,
                child_column=fk.parent,
                parent=fk.column.table,
                parent_column=fk.column,
            )
            for table in self.tables
            for fk in sorted(table.foreign_keys, key=lambda fk: fk.parent.name)
        ]

    def dependents(self, table: Table) -> List[Reference]:
        """Edges pointing at ``table``, deepest dependents first."""
        edges = [ref for ref in self.references if ref.parent.name == table.name]
        return sorted(edges, key=lambda ref: (-self._rank[ref.child.name], ref.child_column.name))

    def references_to(self, column: Column) -> List[Reference]:
        """Edges whose target is exactly ``column``."""
        return [ref for ref in self.dependents(column.table) if ref.parent_column.name == column.name]

    def references_from(self, table: Table) -> List[Reference]:
        """Foreign keys declared on ``table``."""
        return [ref for ref in self.references if ref.child.name == table.name]
