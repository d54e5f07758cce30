"""Database models for Conduit."""

from conduit.models.base import Base
from conduit.models.user import User
from conduit.models.article import Article
from conduit.models.comment import Comment
from conduit.models.relations import Favorite, Follow, Tag

__all__ = [
    "Base",
    "User",
    "Article",
    "Comment",
    "Tag",
    "Follow",
    "Favorite",
]
