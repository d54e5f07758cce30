"""Tests for the Alembic migrations."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from conduit.core.database import create_db_engine, create_session_factory
from conduit.models import Article, Comment, User
from conduit.store import RelationalStore

ROOT = Path(__file__).resolve().parents[2]

pytestmark = pytest.mark.integration


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrated.db'}"


@pytest.fixture
def alembic_config(database_url):
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url)
    config.attributes["configure_logger"] = False
    return config


class TestMigrations:
    """Test upgrading and downgrading the schema."""

    def test_upgrade_creates_schema(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")

        engine = create_db_engine(database_url, echo=False)
        inspector = inspect(engine)
        assert set(inspector.get_table_names()) == {
            "alembic_version",
            "users",
            "articles",
            "comments",
            "tags",
            "follows",
            "favorites",
        }
        assert inspector.get_pk_constraint("tags")["constrained_columns"] == ["tag", "article"]
        assert {fk["referred_table"] for fk in inspector.get_foreign_keys("comments")} == {
            "articles",
            "users",
        }
        engine.dispose()

    def test_store_runs_on_migrated_schema(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")
        engine = create_db_engine(database_url, echo=False)
        store = RelationalStore(create_session_factory(engine))

        store.insert(User, username="alice", email="alice@example.com", password="h")
        store.insert(Article, slug="a1", title="A1", description="d", body="b", author="alice")
        store.insert(Comment, article="a1", user="alice", body="hi")

        assert store.get(Article, "a1").created_at is not None
        report = store.delete(User, "alice")
        assert report.as_dict() == {"users": 1, "articles": 1, "comments": 1}
        engine.dispose()

    def test_downgrade_removes_schema(self, alembic_config, database_url):
        command.upgrade(alembic_config, "head")
        command.downgrade(alembic_config, "base")

        engine = create_db_engine(database_url, echo=False)
        assert inspect(engine).get_table_names() == ["alembic_version"]
        engine.dispose()
