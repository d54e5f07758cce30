"""Comments on articles."""

from typing import List

from sqlalchemy import select

from conduit.core.exceptions import NotFound
from conduit.core.logging import get_logger
from conduit.models import Comment, User
from conduit.schemas import CommentView, Profile
from conduit.store import RelationalStore

logger = get_logger(__name__)


class CommentRepository:
    """Operations on ``comments``."""

    def __init__(self, store: RelationalStore):
        self.store = store

    def create(self, slug: str, user: str, body: str) -> int:
        """Attach a comment to an article and return its id."""
        comment_id = self.store.insert(Comment, article=slug, user=user, body=body)
        logger.info("Comment created", id=comment_id, article=slug, user=user)
        return comment_id

    def for_article(self, slug: str) -> List[CommentView]:
        """Comments on ``slug``, oldest first."""
        with self.store.transaction() as session:
            rows = session.execute(
                select(Comment, User)
                .join(User, Comment.user == User.username)
                .where(Comment.article == slug)
                .order_by(Comment.created_at, Comment.id)
            ).all()
            return [
                CommentView(
                    id=comment.id,
                    body=comment.body,
                    created_at=comment.created_at,
                    author=Profile(username=author.username, bio=author.bio, image=author.image),
                )
                for comment, author in rows
            ]

    def delete(self, comment_id: int, user: str) -> None:
        """Delete a comment; only its author may do so."""
        with self.store.transaction() as session:
            comment = self.store.get(Comment, comment_id, session=session)
            if comment.user != user:
                raise NotFound(
                    "comments row not found for user",
                    {"table": "comments", "key": comment_id, "user": user},
                )
            self.store.delete(Comment, comment_id, session=session)
        logger.info("Comment deleted", id=comment_id, user=user)
