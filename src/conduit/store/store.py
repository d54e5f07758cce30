"""Relational store: inserts, renames and deletes that keep every reference valid.

Each public operation runs in one transaction. Passing ``session=`` joins a
transaction opened with :meth:`RelationalStore.transaction` instead, so a
caller can compose several operations atomically.
"""

from collections import Counter, defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy import Column, Table, and_, delete, exists, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import visitors

from conduit.core.exceptions import (
    ConstraintViolation,
    NotFound,
    ReferenceNotFound,
    StoreError,
    TransactionAborted,
)
from conduit.core.logging import get_logger
from conduit.models import Base
from conduit.store.graph import DependencyGraph, Reference

logger = get_logger(__name__)


@dataclass
class CascadeReport:
    """Rows removed or retargeted per table by one operation."""

    counts: Counter = field(default_factory=Counter)

    def add(self, table: str, rows: int) -> None:
        if rows > 0:
            self.counts[table] += rows

    def __getitem__(self, table: str) -> int:
        return self.counts[table]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def as_dict(self) -> dict:
        return dict(self.counts)


class RelationalStore:
    """Transactional access to the Conduit tables."""

    def __init__(self, session_factory: sessionmaker, graph: Optional[DependencyGraph] = None):
        self._session_factory = session_factory
        self.graph = graph or DependencyGraph(Base.metadata)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Open a session inside a single transaction.

        Any exception rolls the transaction back. Database errors are
        translated into the store's error taxonomy.
        """
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        except StoreError:
            raise
        except IntegrityError as e:
            logger.warning("Integrity constraint violated", error=str(e.orig))
            raise ConstraintViolation("Integrity constraint violated", {"error": str(e.orig)}) from e
        except SQLAlchemyError as e:
            logger.error("Transaction rolled back", error=str(e))
            raise TransactionAborted("Transaction rolled back", {"error": str(e)}) from e
        finally:
            session.close()

    @contextmanager
    def _scope(self, session: Optional[Session]) -> Iterator[Session]:
        if session is not None:
            yield session
        else:
            with self.transaction() as session:
                yield session

    # Key handling

    def _table(self, model: Type[Base]) -> Table:
        """The graph's table for ``model``; cascades only ever join graph tables."""
        try:
            return self.graph.metadata.tables[model.__tablename__]
        except KeyError:
            raise ValueError(f"{model.__tablename__} is not part of the store's graph") from None

    def _on_graph(self, clause):
        """Rebind columns of same-named tables onto the graph's tables."""
        tables = self.graph.metadata.tables

        def replace(element, **kw):
            if isinstance(element, Column) and isinstance(element.table, Table):
                table = tables.get(element.table.name)
                if table is not None and table is not element.table:
                    return table.c[element.key]
            return None

        return visitors.replacement_traverse(clause, {}, replace)

    def _key_criterion(self, table: Table, key: Any):
        columns = list(table.primary_key.columns)
        values = tuple(key) if isinstance(key, (tuple, list)) else (key,)
        if len(values) != len(columns):
            raise ValueError(
                f"{table.name} is keyed by {[c.name for c in columns]}, got {values!r}"
            )
        return and_(*(column == value for column, value in zip(columns, values)))

    def _row_exists(self, session: Session, table: Table, criterion) -> bool:
        return bool(session.scalar(select(exists().where(criterion))))

    def _check_references(self, session: Session, table: Table, values: dict) -> None:
        for ref in self.graph.references_from(table):
            value = values.get(ref.child_column.key)
            if value is None:
                continue
            if not self._row_exists(session, ref.parent, ref.parent_column == value):
                raise ReferenceNotFound(
                    f"{ref.parent.name} row referenced by {table.name}.{ref.child_column.name} does not exist",
                    {"table": ref.parent.name, "key": value},
                )

    def _check_columns(self, table: Table, values: dict) -> None:
        unknown = set(values) - set(table.c.keys())
        if unknown:
            raise ValueError(f"Unknown columns for {table.name}: {sorted(unknown)}")

    # Operations

    def exists(self, model: Type[Base], key: Any, session: Optional[Session] = None) -> bool:
        """Check whether a row with primary key ``key`` exists."""
        table = self._table(model)
        with self._scope(session) as session:
            return self._row_exists(session, table, self._key_criterion(table, key))

    def get(self, model: Type[Base], key: Any, session: Optional[Session] = None) -> Base:
        """Fetch one row or raise :class:`NotFound`."""
        # The ORM entity selects from the model's own table
        table = model.__table__
        with self._scope(session) as session:
            row = session.execute(
                select(model).where(self._key_criterion(table, key))
            ).scalar_one_or_none()
            if row is None:
                raise NotFound(f"{table.name} row not found", {"table": table.name, "key": key})
            return row

    def insert(self, model: Type[Base], session: Optional[Session] = None, **values: Any) -> Any:
        """Insert one row and return its primary key.

        Composite keys come back as tuples in primary-key column order.
        """
        table = self._table(model)
        self._check_columns(table, values)
        pk_columns = list(table.primary_key.columns)

        with self._scope(session) as session:
            self._check_references(session, table, values)

            if all(values.get(column.key) is not None for column in pk_columns):
                key = tuple(values[column.key] for column in pk_columns)
                if self._row_exists(session, table, self._key_criterion(table, key)):
                    raise ConstraintViolation(
                        f"{table.name} row already exists",
                        {"table": table.name, "key": key if len(key) > 1 else key[0]},
                    )

            result = session.execute(insert(table).values(**values))
            inserted = tuple(result.inserted_primary_key)

        logger.debug("Inserted row", table=table.name, key=inserted)
        return inserted if len(inserted) > 1 else inserted[0]

    def update(self, model: Type[Base], key: Any, session: Optional[Session] = None, **values: Any) -> None:
        """Update non-key columns of one row."""
        table = self._table(model)
        self._check_columns(table, values)
        key_columns = {column.key for column in table.primary_key.columns}
        changed_keys = key_columns & set(values)
        if changed_keys:
            raise ConstraintViolation(
                "Primary key columns can only change through rename",
                {"table": table.name, "columns": sorted(changed_keys)},
            )
        if not values:
            return

        criterion = self._key_criterion(table, key)
        with self._scope(session) as session:
            if not self._row_exists(session, table, criterion):
                raise NotFound(f"{table.name} row not found", {"table": table.name, "key": key})
            self._check_references(session, table, values)
            session.execute(update(table).where(criterion).values(**values))

        logger.debug("Updated row", table=table.name, key=key, columns=sorted(values))

    def rename(
        self, model: Type[Base], key: Any, new_key: Any, session: Optional[Session] = None
    ) -> CascadeReport:
        """Change a natural primary key and retarget every reference to it."""
        table = self._table(model)
        pk_columns = list(table.primary_key.columns)
        if len(pk_columns) != 1:
            raise ValueError(f"{table.name} has a composite key and cannot be renamed")
        pk_column = pk_columns[0]

        report = CascadeReport()
        if new_key == key:
            return report

        with self._scope(session) as session:
            if not self._row_exists(session, table, pk_column == key):
                raise NotFound(f"{table.name} row not found", {"table": table.name, "key": key})
            if self._row_exists(session, table, pk_column == new_key):
                raise ConstraintViolation(
                    f"{table.name} row already exists", {"table": table.name, "key": new_key}
                )

            # Counted up front: with native ON UPDATE CASCADE the engine
            # retargets these rows itself when the primary row changes.
            # A row referencing the key from two columns counts once.
            pending = self._count_references(session, pk_column, key)
            session.execute(update(table).where(pk_column == key).values({pk_column.key: new_key}))
            self._retarget(session, pk_column, key, new_key)
            for table_name, rows in pending.items():
                report.add(table_name, rows)

        logger.info(
            "Renamed row",
            table=table.name,
            key=key,
            new_key=new_key,
            retargeted=report.as_dict(),
        )
        return report

    def _count_references(self, session: Session, column, value) -> Dict[str, int]:
        by_table: Dict[str, List[Reference]] = defaultdict(list)
        self._collect_references(column, by_table)
        return {
            name: session.scalar(
                select(func.count())
                .select_from(refs[0].child)
                .where(or_(*(ref.child_column == value for ref in refs)))
            )
            for name, refs in by_table.items()
        }

    def _collect_references(self, column, by_table: Dict[str, List[Reference]]) -> None:
        for ref in self.graph.references_to(column):
            by_table[ref.child.name].append(ref)
            self._collect_references(ref.child_column, by_table)

    def _retarget(self, session: Session, column, old: Any, new: Any) -> None:
        for ref in self.graph.references_to(column):
            session.execute(
                update(ref.child)
                .where(ref.child_column == old)
                .values({ref.child_column.key: new})
            )
            self._retarget(session, ref.child_column, old, new)

    def delete(self, model: Type[Base], key: Any, session: Optional[Session] = None) -> CascadeReport:
        """Delete one row together with everything that depends on it."""
        table = self._table(model)
        criterion = self._key_criterion(table, key)
        report = CascadeReport()

        with self._scope(session) as session:
            if not self._row_exists(session, table, criterion):
                raise NotFound(f"{table.name} row not found", {"table": table.name, "key": key})
            self._cascade_delete(session, table, criterion, report)

        logger.info("Deleted row", table=table.name, key=key, removed=report.as_dict())
        return report

    def delete_where(self, model: Type[Base], criterion, session: Optional[Session] = None) -> CascadeReport:
        """Delete every row matching ``criterion`` with the same cascade as :meth:`delete`."""
        table = self._table(model)
        report = CascadeReport()
        with self._scope(session) as session:
            self._cascade_delete(session, table, self._on_graph(criterion), report)
        logger.debug("Deleted rows", table=table.name, removed=report.as_dict())
        return report

    def _cascade_delete(self, session: Session, table: Table, criterion, report: CascadeReport) -> None:
        for ref in self.graph.dependents(table):
            keys = select(ref.parent_column).where(criterion)
            self._cascade_delete(session, ref.child, ref.child_column.in_(keys), report)
        result = session.execute(delete(table).where(criterion))
        report.add(table.name, result.rowcount)

    def count(self, model: Type[Base], criterion=None, session: Optional[Session] = None) -> int:
        """Count rows of ``model``, optionally filtered."""
        table = self._table(model)
        stmt = select(func.count()).select_from(table)
        if criterion is not None:
            stmt = stmt.where(self._on_graph(criterion))
        with self._scope(session) as session:
            return session.scalar(stmt)
