"""Tests for delete and rename propagation."""

import pytest
from sqlalchemy import Column, ForeignKey, MetaData, String, Table, event, insert, or_, select
from sqlalchemy.exc import OperationalError

from conduit.core.database import create_session_factory
from conduit.core.exceptions import ConstraintViolation, NotFound, TransactionAborted
from conduit.models import Article, Base, Comment, Favorite, Follow, Tag, User
from conduit.store import DependencyGraph, RelationalStore


def _references_to_user(store, username):
    return sum(
        [
            store.count(Article, Article.author == username),
            store.count(Comment, Comment.user == username),
            store.count(Follow, or_(Follow.follower == username, Follow.followed == username)),
            store.count(Favorite, Favorite.user == username),
        ]
    )


def _references_to_article(store, slug):
    return sum(
        [
            store.count(Comment, Comment.article == slug),
            store.count(Tag, Tag.article == slug),
            store.count(Favorite, Favorite.article == slug),
        ]
    )


class TestDeleteCascade:
    """Test RelationalStore.delete."""

    def test_delete_user_removes_everything_referencing_it(self, populated, assert_integrity):
        """Test deleting alice removes a1 and every row pointing at either."""
        store = populated

        report = store.delete(User, "alice")

        assert not store.exists(User, "alice")
        assert not store.exists(Article, "a1")
        assert _references_to_user(store, "alice") == 0
        assert _references_to_article(store, "a1") == 0
        assert report.as_dict() == {
            "users": 1,
            "articles": 1,
            "comments": 2,
            "tags": 2,
            "favorites": 2,
            "follows": 2,
        }
        assert store.exists(User, "bob")
        assert_integrity()

    def test_delete_user_keeps_other_authors_articles(self, populated, assert_integrity):
        """Test bob's deletion only removes bob's rows."""
        store = populated
        store.insert(Article, slug="b1", title="B1", description="d", body="b", author="bob")
        store.insert(Comment, article="b1", user="alice", body="Nice")

        report = store.delete(User, "bob")

        assert report["articles"] == 1
        assert report["comments"] == 2  # bob's comment on a1 and alice's on b1
        assert store.exists(Article, "a1")
        assert store.count(Comment, Comment.article == "a1") == 1
        assert store.exists(Favorite, ("alice", "a1"))
        assert not store.exists(Favorite, ("bob", "a1"))
        assert store.count(Follow) == 0
        assert_integrity()

    def test_delete_article(self, populated, assert_integrity):
        """Test deleting an article removes its comments, tags and favorites."""
        store = populated

        report = store.delete(Article, "a1")

        assert report.as_dict() == {"articles": 1, "comments": 2, "tags": 2, "favorites": 2}
        assert _references_to_article(store, "a1") == 0
        assert store.exists(User, "alice")
        assert store.count(Follow) == 2
        assert_integrity()

    def test_delete_relation_rows(self, populated):
        """Test junction rows delete on their composite key without cascading."""
        store = populated

        assert store.delete(Follow, ("bob", "alice")).total == 1
        assert store.delete(Tag, ("x", "a1")).total == 1
        assert store.delete(Favorite, ("bob", "a1")).total == 1
        assert store.exists(User, "bob")
        assert store.exists(Article, "a1")

    def test_delete_missing_row(self, store, snapshot):
        """Test deleting a missing key raises NotFound and changes nothing."""
        before = snapshot()

        with pytest.raises(NotFound):
            store.delete(User, "nobody")
        with pytest.raises(NotFound):
            store.delete(Favorite, ("nobody", "a1"))

        assert snapshot() == before

    def test_delete_where(self, populated):
        """Test criterion deletes cascade like keyed deletes."""
        store = populated

        report = store.delete_where(Article, Article.author == "alice")

        assert report["articles"] == 1
        assert report["comments"] == 2
        assert store.count(Article) == 0

    def test_fault_mid_cascade_rolls_everything_back(self, populated, engine, snapshot, assert_integrity):
        """Test a failure while deleting articles undoes the rows already removed."""
        store = populated
        before = snapshot()
        statements = []

        def fail_on_article_delete(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)
            if statement.startswith("DELETE FROM articles"):
                raise OperationalError(statement, parameters, Exception("simulated disk failure"))

        event.listen(engine, "before_cursor_execute", fail_on_article_delete)
        try:
            with pytest.raises(TransactionAborted):
                store.delete(User, "alice")
        finally:
            event.remove(engine, "before_cursor_execute", fail_on_article_delete)

        # Leaf rows were already deleted when the fault hit
        assert any(statement.startswith("DELETE FROM comments") for statement in statements)
        assert snapshot() == before
        assert store.exists(User, "alice")
        assert store.exists(Favorite, ("bob", "a1"))
        assert_integrity()


class TestRenameCascade:
    """Test RelationalStore.rename."""

    def test_rename_article(self, populated, assert_integrity):
        """Test renaming a1 to a2 retargets comments, tags and favorites."""
        store = populated

        report = store.rename(Article, "a1", "a2")

        assert not store.exists(Article, "a1")
        assert store.exists(Article, "a2")
        assert _references_to_article(store, "a1") == 0
        assert _references_to_article(store, "a2") == 6
        assert report.as_dict() == {"comments": 2, "tags": 2, "favorites": 2}
        assert_integrity()

    def test_rename_user(self, populated, assert_integrity):
        """Test renaming a user retargets every column typed as a user reference."""
        store = populated

        report = store.rename(User, "alice", "alicia")

        assert not store.exists(User, "alice")
        assert _references_to_user(store, "alice") == 0
        assert store.get(Article, "a1").author == "alicia"
        assert store.exists(Follow, ("bob", "alicia"))
        assert store.exists(Follow, ("alicia", "bob"))
        assert store.exists(Favorite, ("alicia", "a1"))
        assert store.count(Comment, Comment.user == "alicia") == 1
        assert report.as_dict() == {"articles": 1, "comments": 1, "favorites": 1, "follows": 2}
        assert_integrity()

    def test_rename_keeps_attributes(self, populated):
        """Test a rename only changes the key."""
        store = populated
        store.rename(User, "alice", "alicia")

        user = store.get(User, "alicia")
        assert user.email == "alice@example.com"
        assert user.password == "$argon2id$v=19$hashed"

    def test_rename_to_existing_key(self, populated, snapshot):
        """Test renaming onto a taken username fails without side effects."""
        store = populated
        before = snapshot()

        with pytest.raises(ConstraintViolation):
            store.rename(User, "alice", "bob")

        assert snapshot() == before
        assert store.get(Article, "a1").author == "alice"

    def test_rename_missing_row(self, store):
        """Test renaming a missing key raises NotFound."""
        with pytest.raises(NotFound):
            store.rename(Article, "missing", "other")

    def test_rename_to_same_key(self, populated):
        """Test renaming to the current key is a no-op."""
        assert populated.rename(User, "alice", "alice").total == 0
        assert populated.exists(User, "alice")

    def test_rename_composite_key(self, populated):
        """Test junction rows cannot be renamed."""
        with pytest.raises(ValueError):
            populated.rename(Follow, ("bob", "alice"), ("bob", "bob"))

    def test_self_follow_counts_once(self, store, alice):
        """Test a row referencing the key from two columns is reported once."""
        store.insert(Follow, follower=alice, followed=alice)

        report = store.rename(User, "alice", "alicia")

        assert report["follows"] == 1
        assert store.exists(Follow, ("alicia", "alicia"))
        assert store.count(Follow) == 1

    def test_fault_during_rename_rolls_back(self, populated, engine, snapshot):
        """Test a failure while retargeting leaves the old key in place."""
        store = populated
        before = snapshot()

        def fail_on_tag_update(conn, cursor, statement, parameters, context, executemany):
            if statement.startswith("UPDATE tags"):
                raise OperationalError(statement, parameters, Exception("simulated lock timeout"))

        event.listen(engine, "before_cursor_execute", fail_on_tag_update)
        try:
            with pytest.raises(TransactionAborted):
                store.rename(Article, "a1", "a2")
        finally:
            event.remove(engine, "before_cursor_execute", fail_on_tag_update)

        assert store.exists(Article, "a1")
        assert not store.exists(Article, "a2")
        assert _references_to_article(store, "a1") == 6
        assert snapshot() == before


class TestGraphDrivenCascade:
    """Test that new dependent tables take part without code changes."""

    def test_new_dependent_table(self, engine, populated):
        metadata = MetaData()
        for table in Base.metadata.sorted_tables:
            table.to_metadata(metadata)
        bookmarks = Table(
            "bookmarks",
            metadata,
            Column(
                "user",
                String(100),
                ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
                primary_key=True,
            ),
            Column(
                "article",
                String(255),
                ForeignKey("articles.slug", ondelete="CASCADE", onupdate="CASCADE"),
                primary_key=True,
            ),
        )
        bookmarks.create(bind=engine)

        store = RelationalStore(create_session_factory(engine), DependencyGraph(metadata))
        with store.transaction() as session:
            session.execute(insert(bookmarks).values(user="bob", article="a1"))

        report = store.rename(Article, "a1", "a2")
        assert report["bookmarks"] == 1

        report = store.delete(Article, "a2")
        assert report["bookmarks"] == 1
        with store.transaction() as session:
            assert session.execute(select(bookmarks)).all() == []

    def test_extended_graph_accepts_model_criteria(self, engine, populated):
        """Test criteria written against the models run on the extended tables."""
        metadata = MetaData()
        for table in Base.metadata.sorted_tables:
            table.to_metadata(metadata)
        bookmarks = Table(
            "bookmarks",
            metadata,
            Column("user", String(100), ForeignKey("users.username"), primary_key=True),
            Column("article", String(255), ForeignKey("articles.slug"), primary_key=True),
        )
        bookmarks.create(bind=engine)
        store = RelationalStore(create_session_factory(engine), DependencyGraph(metadata))

        store.insert(Comment, article="a1", user="bob", body="Bookmarked it")
        with store.transaction() as session:
            session.execute(insert(bookmarks).values(user="alice", article="a1"))

        assert store.exists(Article, "a1")
        assert store.count(Comment, Comment.user == "bob") == 2

        report = store.delete_where(User, User.username == "alice")
        assert report["bookmarks"] == 1
        assert report["articles"] == 1
        assert store.count(Article) == 0
