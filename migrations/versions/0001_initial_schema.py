"""initial schema

Revision ID: 0001
Revises:
Create Date: 2024-04-23 10:12:18

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("image", sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint("username", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )

    op.create_table(
        "articles",
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Date(), server_default=sa.text("(CURRENT_DATE)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("author", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(
            ["author"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_articles_author_users"),
        ),
        sa.PrimaryKeyConstraint("slug", name=op.f("pk_articles")),
    )
    op.create_index(op.f("ix_articles_author"), "articles", ["author"], unique=False)

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Date(), server_default=sa.text("(CURRENT_DATE)"), nullable=False),
        sa.Column("article", sa.String(length=255), nullable=False),
        sa.Column("user", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(
            ["article"], ["articles.slug"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_comments_article_articles"),
        ),
        sa.ForeignKeyConstraint(
            ["user"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_comments_user_users"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_comments")),
        sqlite_autoincrement=True,
    )
    op.create_index(op.f("ix_comments_article"), "comments", ["article"], unique=False)
    op.create_index(op.f("ix_comments_user"), "comments", ["user"], unique=False)

    op.create_table(
        "tags",
        sa.Column("tag", sa.String(length=100), nullable=False),
        sa.Column("article", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["article"], ["articles.slug"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_tags_article_articles"),
        ),
        sa.PrimaryKeyConstraint("tag", "article", name=op.f("pk_tags")),
    )
    op.create_index(op.f("ix_tags_article"), "tags", ["article"], unique=False)

    op.create_table(
        "follows",
        sa.Column("follower", sa.String(length=100), nullable=False),
        sa.Column("followed", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(
            ["follower"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_follows_follower_users"),
        ),
        sa.ForeignKeyConstraint(
            ["followed"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_follows_followed_users"),
        ),
        sa.PrimaryKeyConstraint("follower", "followed", name=op.f("pk_follows")),
    )
    op.create_index(op.f("ix_follows_followed"), "follows", ["followed"], unique=False)

    op.create_table(
        "favorites",
        sa.Column("user", sa.String(length=100), nullable=False),
        sa.Column("article", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["user"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_favorites_user_users"),
        ),
        sa.ForeignKeyConstraint(
            ["article"], ["articles.slug"], ondelete="CASCADE", onupdate="CASCADE",
            name=op.f("fk_favorites_article_articles"),
        ),
        sa.PrimaryKeyConstraint("user", "article", name=op.f("pk_favorites")),
    )
    op.create_index(op.f("ix_favorites_article"), "favorites", ["article"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_favorites_article"), table_name="favorites")
    op.drop_table("favorites")
    op.drop_index(op.f("ix_follows_followed"), table_name="follows")
    op.drop_table("follows")
    op.drop_index(op.f("ix_tags_article"), table_name="tags")
    op.drop_table("tags")
    op.drop_index(op.f("ix_comments_user"), table_name="comments")
    op.drop_index(op.f("ix_comments_article"), table_name="comments")
    op.drop_table("comments")
    op.drop_index(op.f("ix_articles_author"), table_name="articles")
    op.drop_table("articles")
    op.drop_table("users")
