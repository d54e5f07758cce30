"""Collaborator-facing reads and writes built on the relational store."""

from conduit.repositories.articles import ArticleRepository, build_article_views, slug_from_title
from conduit.repositories.comments import CommentRepository
from conduit.repositories.feeds import FeedRepository
from conduit.repositories.users import UserRepository

__all__ = [
    "ArticleRepository",
    "CommentRepository",
    "FeedRepository",
    "UserRepository",
    "build_article_views",
    "slug_from_title",
]
