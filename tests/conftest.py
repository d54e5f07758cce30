"""Pytest configuration and fixtures."""

import os
from typing import Generator

import pytest

# Set test environment
os.environ["CONDUIT_ENVIRONMENT"] = "test"
os.environ["CONDUIT_DB_URL"] = "sqlite://"
os.environ["CONDUIT_LOG_LEVEL"] = "WARNING"

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from conduit.core.database import create_db_engine, create_session_factory
from conduit.models import Article, Base, Comment, Favorite, Follow, Tag, User
from conduit.repositories import ArticleRepository, CommentRepository, FeedRepository, UserRepository
from conduit.store import RelationalStore, count_rows, find_dangling_references


@pytest.fixture(params=[True, False], ids=["native-fk", "app-fk"])
def engine(request, tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite engine, with and without foreign key enforcement.

    The store performs every cascade itself, so each test must pass whether
    or not the engine enforces the declared constraints.
    """
    engine = create_db_engine(
        f"sqlite:///{tmp_path / 'conduit.db'}", echo=False, foreign_keys=request.param
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> RelationalStore:
    return RelationalStore(create_session_factory(engine))


@pytest.fixture
def db_session(store) -> Generator[Session, None, None]:
    """Session inside one transaction, for assertions after an operation."""
    with store.transaction() as session:
        yield session


@pytest.fixture
def users(store) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def articles(store) -> ArticleRepository:
    return ArticleRepository(store)


@pytest.fixture
def comments(store) -> CommentRepository:
    return CommentRepository(store)


@pytest.fixture
def feeds(store) -> FeedRepository:
    return FeedRepository(store)


# Test data fixtures
@pytest.fixture
def sample_user_data():
    """Sample user data for testing."""
    return {
        "username": "alice",
        "email": "alice@example.com",
        "password": "$argon2id$v=19$hashed",
        "bio": None,
        "image": None,
    }


@pytest.fixture
def sample_article_data():
    """Sample article data for testing."""
    return {
        "slug": "a1",
        "title": "A1",
        "description": "First article",
        "body": "Body of the first article",
        "author": "alice",
    }


@pytest.fixture
def alice(store, sample_user_data) -> str:
    return store.insert(User, **sample_user_data)


@pytest.fixture
def bob(store) -> str:
    return store.insert(User, username="bob", email="bob@example.com", password="hashed")


@pytest.fixture
def article(store, alice, sample_article_data) -> str:
    return store.insert(Article, **sample_article_data)


@pytest.fixture
def populated(store, alice, bob, article):
    """alice wrote a1; bob follows alice, comments on and favorites a1."""
    store.insert(Comment, article=article, user=alice, body="Thanks for reading")
    store.insert(Comment, article=article, user=bob, body="Great read")
    store.insert(Tag, tag="x", article=article)
    store.insert(Tag, tag="y", article=article)
    store.insert(Favorite, user=alice, article=article)
    store.insert(Favorite, user=bob, article=article)
    store.insert(Follow, follower=bob, followed=alice)
    store.insert(Follow, follower=alice, followed=bob)
    return store


@pytest.fixture
def snapshot(store):
    """Row counts per table, for before/after comparisons."""

    def _snapshot():
        with store.transaction() as session:
            return count_rows(session, store.graph)

    return _snapshot


@pytest.fixture
def assert_integrity(store):
    """Fail if any foreign key points at a missing row."""

    def _assert_integrity():
        with store.transaction() as session:
            dangling = find_dangling_references(session, store.graph)
        assert dangling == []

    return _assert_integrity
