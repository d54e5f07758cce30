"""Read models handed to the collaborator layer."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """Public view of a user, relative to an optional viewer."""

    username: str
    bio: Optional[str] = None
    image: Optional[str] = None
    following: bool = False


class UserView(BaseModel):
    """A user as seen by themselves; never carries the password."""

    username: str
    email: str
    bio: Optional[str] = None
    image: Optional[str] = None


class ArticleView(BaseModel):
    """An article with its tags and favorite details filled in."""

    slug: str
    title: str
    description: str
    body: str
    created_at: date
    updated_at: Optional[datetime] = None

    tags: List[str] = Field(default_factory=list)
    favorited: bool = False
    favorites_count: int = 0
    author: Profile


class ArticleEditFields(BaseModel):
    """Editable fields of an article, as loaded into an editor."""

    title: str
    description: str
    body: str
    tags: List[str] = Field(default_factory=list)


class CommentView(BaseModel):
    id: int
    body: str
    created_at: date
    author: Profile


class FeedOptions(BaseModel):
    """Paging and viewer for feed queries."""

    offset: int = Field(default=0, ge=0, description="Articles to skip")
    limit: int = Field(default=20, ge=1, le=255, description="Maximum articles returned")
    user: Optional[str] = Field(default=None, description="Viewer used for favorited/following flags")


class Feed(BaseModel):
    """One page of articles plus the total number of matches."""

    articles: List[ArticleView] = Field(default_factory=list)
    count: int = 0
