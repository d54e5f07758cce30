"""Declarative base shared by every Conduit table."""

from typing import Any, Dict

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

# Deterministic constraint names keep migrations and the ORM metadata in step
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class _Base:
    """Helpers available on every model."""

    def to_dict(self) -> Dict[str, Any]:
        """Column values keyed by attribute name."""
        return {column.key: getattr(self, column.key) for column in self.__table__.columns}


Base = declarative_base(cls=_Base, metadata=MetaData(naming_convention=NAMING_CONVENTION))
