"""Article model."""

from datetime import date

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from conduit.models.base import Base


class Article(Base):
    """A published article, keyed by its slug."""

    __tablename__ = "articles"

    slug = Column(String(255), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(Date, nullable=False, default=date.today, server_default=func.current_date())
    updated_at = Column(DateTime, nullable=True)

    author = Column(
        String(100),
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    comments = relationship("Comment", viewonly=True, order_by="Comment.id")
    tags = relationship("Tag", viewonly=True, order_by="Tag.tag")
    favorites = relationship("Favorite", viewonly=True)

    def __repr__(self) -> str:
        return f"<Article(slug={self.slug}, author={self.author})>"
