"""User accounts, profiles and follow relationships."""

from typing import Any, Optional

from sqlalchemy.orm import Session

from conduit.core.logging import get_logger
from conduit.models import Follow, User
from conduit.schemas import Profile, UserView
from conduit.store import CascadeReport, RelationalStore

logger = get_logger(__name__)

EDITABLE_FIELDS = ("email", "password", "bio", "image")


def _user_view(user: User) -> UserView:
    return UserView(username=user.username, email=user.email, bio=user.bio, image=user.image)


class UserRepository:
    """Operations on ``users`` and ``follows``."""

    def __init__(self, store: RelationalStore):
        self.store = store

    def create(self, username: str, email: str, password: str) -> UserView:
        """Register a user. ``password`` must already be hashed."""
        self.store.insert(User, username=username, email=email, password=password)
        logger.info("User created", username=username)
        return UserView(username=username, email=email)

    def get(self, username: str) -> UserView:
        return _user_view(self.store.get(User, username))

    def update(self, username: str, **changes: Any) -> UserView:
        """Update account fields.

        A ``password`` of ``None`` leaves the stored hash alone, while
        ``bio=None`` or ``image=None`` clears the value.
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        if changes.get("password", "") is None:
            del changes["password"]

        with self.store.transaction() as session:
            self.store.update(User, username, session=session, **changes)
            return _user_view(self.store.get(User, username, session=session))

    def rename(self, username: str, new_username: str) -> CascadeReport:
        return self.store.rename(User, username, new_username)

    def delete(self, username: str) -> CascadeReport:
        """Delete a user with their articles, comments, follows and favorites."""
        return self.store.delete(User, username)

    def profile(self, username: str, viewer: Optional[str] = None) -> Profile:
        """Public profile of ``username``; ``following`` is relative to ``viewer``."""
        with self.store.transaction() as session:
            user = self.store.get(User, username, session=session)
            following = viewer is not None and self._is_following(session, viewer, username)
            return Profile(
                username=user.username,
                bio=user.bio,
                image=user.image,
                following=following,
            )

    def follow(self, follower: str, followed: str) -> None:
        # Self-follow is accepted as the schema allows it
        self.store.insert(Follow, follower=follower, followed=followed)
        logger.info("User followed", follower=follower, followed=followed)

    def unfollow(self, follower: str, followed: str) -> None:
        self.store.delete(Follow, (follower, followed))
        logger.info("User unfollowed", follower=follower, followed=followed)

    def is_following(self, follower: str, followed: str) -> bool:
        return self.store.exists(Follow, (follower, followed))

    def _is_following(self, session: Session, follower: str, followed: str) -> bool:
        return self.store.exists(Follow, (follower, followed), session=session)
