"""User model: root of the ownership graph."""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from conduit.models.base import Base


class User(Base):
    """A registered author, keyed by a mutable username."""

    __tablename__ = "users"

    username = Column(String(100), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # Already hashed by the caller
    bio = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)

    # Read-only collections; every write goes through the store
    articles = relationship("Article", viewonly=True, order_by="Article.created_at")
    comments = relationship("Comment", viewonly=True, order_by="Comment.id")
    favorites = relationship("Favorite", viewonly=True)
    following = relationship("Follow", foreign_keys="Follow.follower", viewonly=True)
    followers = relationship("Follow", foreign_keys="Follow.followed", viewonly=True)

    def __repr__(self) -> str:
        return f"<User(username={self.username}, email={self.email})>"
