"""Paged article listings."""

from typing import Optional

from sqlalchemy import func, select

from conduit.models import Article, Favorite, Follow, Tag, User
from conduit.repositories.articles import build_article_views
from conduit.schemas import Feed, FeedOptions
from conduit.store import RelationalStore


class FeedRepository:
    """Article listings, newest first, paged by :class:`FeedOptions`."""

    def __init__(self, store: RelationalStore):
        self.store = store

    def global_feed(self, options: Optional[FeedOptions] = None) -> Feed:
        return self._feed(None, options)

    def by_author(self, author: str, options: Optional[FeedOptions] = None) -> Feed:
        return self._feed(Article.author == author, options)

    def favorited_by(self, user: str, options: Optional[FeedOptions] = None) -> Feed:
        favorites = select(Favorite.article).where(Favorite.user == user)
        return self._feed(Article.slug.in_(favorites), options)

    def tagged(self, tag: str, options: Optional[FeedOptions] = None) -> Feed:
        tagged = select(Tag.article).where(Tag.tag == tag)
        return self._feed(Article.slug.in_(tagged), options)

    def followed_by(self, user: str, options: Optional[FeedOptions] = None) -> Feed:
        """Articles written by the users ``user`` follows."""
        followed = select(Follow.followed).where(Follow.follower == user)
        return self._feed(Article.author.in_(followed), options)

    def _feed(self, criterion, options: Optional[FeedOptions]) -> Feed:
        options = options or FeedOptions()
        count_stmt = select(func.count()).select_from(Article)
        page_stmt = select(Article, User).join(User, Article.author == User.username)
        if criterion is not None:
            count_stmt = count_stmt.where(criterion)
            page_stmt = page_stmt.where(criterion)
        page_stmt = (
            page_stmt.order_by(Article.created_at.desc(), Article.slug)
            .limit(options.limit)
            .offset(options.offset)
        )

        with self.store.transaction() as session:
            count = session.scalar(count_stmt)
            rows = [tuple(row) for row in session.execute(page_stmt)]
            articles = build_article_views(session, rows, options.user)
        return Feed(articles=articles, count=count)
