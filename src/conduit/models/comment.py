"""Comment model."""

from datetime import date

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text, func

from conduit.models.base import Base


class Comment(Base):
    """A comment left by a user on an article."""

    __tablename__ = "comments"
    # AUTOINCREMENT keeps SQLite from reusing the id of a deleted newest row
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    body = Column(Text, nullable=False)
    created_at = Column(Date, nullable=False, default=date.today, server_default=func.current_date())

    article = Column(
        String(255),
        ForeignKey("articles.slug", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    user = Column(
        String(100),
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, article={self.article}, user={self.user})>"
