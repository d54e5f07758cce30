"""Referential-integrity audit over the dependency graph."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session

from conduit.core.logging import get_logger
from conduit.models import Base
from conduit.store.graph import DependencyGraph

logger = get_logger(__name__)


@dataclass
class DanglingReference:
    """A child row whose foreign key matches no parent row."""

    reference: str
    row: Dict[str, Any]


def find_dangling_references(
    session: Session, graph: Optional[DependencyGraph] = None
) -> List[DanglingReference]:
    """Return every row whose foreign key points at a missing parent."""
    graph = graph or DependencyGraph(Base.metadata)
    dangling: List[DanglingReference] = []

    for ref in graph.references:
        parent_match = exists().where(ref.parent_column == ref.child_column)
        stmt = select(ref.child).where(ref.child_column.is_not(None), ~parent_match)
        for row in session.execute(stmt).mappings():
            dangling.append(DanglingReference(reference=str(ref), row=dict(row)))

    if dangling:
        logger.warning("Dangling references found", count=len(dangling))
    return dangling


def count_rows(session: Session, graph: Optional[DependencyGraph] = None) -> Dict[str, int]:
    """Row count per table, parents first."""
    graph = graph or DependencyGraph(Base.metadata)
    return {
        table.name: session.scalar(select(func.count()).select_from(table))
        for table in graph.tables
    }
