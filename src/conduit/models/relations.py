"""Junction tables with composite primary keys."""

from sqlalchemy import Column, ForeignKey, String

from conduit.models.base import Base


class Tag(Base):
    """A label on an article; the same tag string may recur across articles."""

    __tablename__ = "tags"

    tag = Column(String(100), primary_key=True)
    article = Column(
        String(255),
        ForeignKey("articles.slug", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Tag(tag={self.tag}, article={self.article})>"


class Follow(Base):
    """Directed edge: ``follower`` follows ``followed``."""

    __tablename__ = "follows"

    follower = Column(
        String(100),
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    followed = Column(
        String(100),
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Follow(follower={self.follower}, followed={self.followed})>"


class Favorite(Base):
    """A user liking an article."""

    __tablename__ = "favorites"

    user = Column(
        String(100),
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
    )
    article = Column(
        String(255),
        ForeignKey("articles.slug", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Favorite(user={self.user}, article={self.article})>"
