"""Articles, their tags and favorites."""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conduit.core.exceptions import NotFound
from conduit.core.logging import get_logger
from conduit.models import Article, Favorite, Follow, Tag, User
from conduit.schemas import ArticleEditFields, ArticleView, Profile
from conduit.store import CascadeReport, RelationalStore

logger = get_logger(__name__)


def slug_from_title(title: str) -> str:
    """Derive an article slug from its title.

    Spaces become dashes, ASCII letters and digits are kept, everything else
    is dropped. Leading dashes are stripped and a trailing dash gets an ``x``
    appended so the slug never ends with a separator.
    """
    kept = "".join(
        "-" if char == " " else char
        for char in title
        if char == " " or (char.isascii() and char.isalnum())
    )
    slug = kept.lstrip("-").lower()
    if slug.endswith("-"):
        slug += "x"
    return slug


def _unique(tags: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def build_article_views(
    session: Session, rows: Sequence[Tuple[Article, User]], viewer: Optional[str] = None
) -> List[ArticleView]:
    """Attach tags, favorite counts and viewer flags to (article, author) rows."""
    slugs = [article.slug for article, _ in rows]
    if not slugs:
        return []

    tags: Dict[str, List[str]] = defaultdict(list)
    for slug, tag in session.execute(
        select(Tag.article, Tag.tag).where(Tag.article.in_(slugs)).order_by(Tag.article, Tag.tag)
    ):
        tags[slug].append(tag)

    favorites_count = dict(
        session.execute(
            select(Favorite.article, func.count())
            .where(Favorite.article.in_(slugs))
            .group_by(Favorite.article)
        ).all()
    )

    favorited: Set[str] = set()
    following: Set[str] = set()
    if viewer is not None:
        favorited = set(
            session.scalars(
                select(Favorite.article).where(Favorite.user == viewer, Favorite.article.in_(slugs))
            )
        )
        authors = {author.username for _, author in rows}
        following = set(
            session.scalars(
                select(Follow.followed).where(Follow.follower == viewer, Follow.followed.in_(authors))
            )
        )

    return [
        ArticleView(
            slug=article.slug,
            title=article.title,
            description=article.description,
            body=article.body,
            created_at=article.created_at,
            updated_at=article.updated_at,
            tags=tags.get(article.slug, []),
            favorited=article.slug in favorited,
            favorites_count=favorites_count.get(article.slug, 0),
            author=Profile(
                username=author.username,
                bio=author.bio,
                image=author.image,
                following=author.username in following,
            ),
        )
        for article, author in rows
    ]


class ArticleRepository:
    """Operations on ``articles``, ``tags`` and ``favorites``."""

    def __init__(self, store: RelationalStore):
        self.store = store

    def create(
        self,
        author: str,
        title: str,
        description: str,
        body: str,
        tags: Sequence[str] = (),
    ) -> str:
        """Publish an article with its tags in one transaction; returns the slug."""
        slug = slug_from_title(title)
        if not slug:
            raise ValueError(f"Title {title!r} does not produce a slug")

        with self.store.transaction() as session:
            self.store.insert(
                Article,
                session=session,
                slug=slug,
                title=title,
                description=description,
                body=body,
                author=author,
            )
            self._add_tags(session, slug, tags)

        logger.info("Article created", slug=slug, author=author, tags=len(tags))
        return slug

    def get(self, slug: str, viewer: Optional[str] = None) -> ArticleView:
        with self.store.transaction() as session:
            row = session.execute(
                select(Article, User).join(User, Article.author == User.username).where(Article.slug == slug)
            ).first()
            if row is None:
                raise NotFound("articles row not found", {"table": "articles", "key": slug})
            return build_article_views(session, [tuple(row)], viewer)[0]

    def for_editing(self, slug: str, author: str) -> ArticleEditFields:
        """Load the editable fields of an article owned by ``author``."""
        with self.store.transaction() as session:
            article = self._owned(session, slug, author)
            tags = session.scalars(select(Tag.tag).where(Tag.article == slug).order_by(Tag.tag)).all()
            return ArticleEditFields(
                title=article.title,
                description=article.description,
                body=article.body,
                tags=list(tags),
            )

    def update(
        self,
        author: str,
        slug: str,
        title: str,
        description: str,
        body: str,
        tags: Sequence[str] = (),
    ) -> None:
        """Rewrite an article owned by ``author`` and replace its tags.

        The slug is left as is; use :meth:`rename` to change it.
        """
        with self.store.transaction() as session:
            self._owned(session, slug, author)
            self.store.update(
                Article,
                slug,
                session=session,
                title=title,
                description=description,
                body=body,
                updated_at=datetime.now(),
            )
            self.store.delete_where(Tag, Tag.article == slug, session=session)
            self._add_tags(session, slug, tags)

        logger.info("Article updated", slug=slug, author=author)

    def delete(self, slug: str, author: Optional[str] = None) -> CascadeReport:
        """Delete an article with its comments, tags and favorites.

        When ``author`` is given the article must belong to them.
        """
        with self.store.transaction() as session:
            if author is not None:
                self._owned(session, slug, author)
            return self.store.delete(Article, slug, session=session)

    def rename(self, slug: str, new_slug: str) -> CascadeReport:
        return self.store.rename(Article, slug, new_slug)

    def favorite(self, user: str, slug: str) -> None:
        self.store.insert(Favorite, user=user, article=slug)

    def unfavorite(self, user: str, slug: str) -> None:
        self.store.delete(Favorite, (user, slug))

    def tags(self, slug: str) -> List[str]:
        with self.store.transaction() as session:
            return list(session.scalars(select(Tag.tag).where(Tag.article == slug).order_by(Tag.tag)))

    def popular_tags(self, limit: int = 20) -> List[str]:
        """Distinct tags, most used first."""
        with self.store.transaction() as session:
            return list(
                session.scalars(
                    select(Tag.tag).group_by(Tag.tag).order_by(func.count().desc(), Tag.tag).limit(limit)
                )
            )

    def _owned(self, session: Session, slug: str, author: str) -> Article:
        article = session.execute(
            select(Article).where(Article.slug == slug, Article.author == author)
        ).scalar_one_or_none()
        if article is None:
            raise NotFound(
                "articles row not found for author",
                {"table": "articles", "key": slug, "author": author},
            )
        return article

    def _add_tags(self, session: Session, slug: str, tags: Iterable[str]) -> None:
        for tag in _unique(tags):
            self.store.insert(Tag, session=session, tag=tag, article=slug)
