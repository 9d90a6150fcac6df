"""create_store_finder_tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "stores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=220), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String(length=100)),
            server_default="{}",
            nullable=False,
        ),
        sa.Column("location_type", sa.String(length=20), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=False),
        sa.Column("photo", sa.String(length=200), nullable=True),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column(
            "search_vector",
            postgresql.TSVECTOR(),
            sa.Computed(
                "to_tsvector('english', coalesce(name, '') || ' ' || coalesce(description, ''))",
                persisted=True,
            ),
            nullable=True,
        ),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stores_slug"), "stores", ["slug"], unique=False)
    op.create_index(op.f("ix_stores_author_id"), "stores", ["author_id"], unique=False)
    op.create_index(op.f("ix_stores_created"), "stores", ["created"], unique=False)
    op.create_index("ix_stores_lat_lng", "stores", ["lat", "lng"], unique=False)
    op.create_index("ix_stores_tags", "stores", ["tags"], unique=False, postgresql_using="gin")
    op.create_index(
        "ix_stores_search_vector",
        "stores",
        ["search_vector"],
        unique=False,
        postgresql_using="gin",
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reviews_store_id"), "reviews", ["store_id"], unique=False)
    op.create_index(op.f("ix_reviews_author_id"), "reviews", ["author_id"], unique=False)

    op.create_table(
        "user_hearts",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("store_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "store_id"),
    )


def downgrade() -> None:
    op.drop_table("user_hearts")

    op.drop_index(op.f("ix_reviews_author_id"), table_name="reviews")
    op.drop_index(op.f("ix_reviews_store_id"), table_name="reviews")
    op.drop_table("reviews")

    op.drop_index("ix_stores_search_vector", table_name="stores")
    op.drop_index("ix_stores_tags", table_name="stores")
    op.drop_index("ix_stores_lat_lng", table_name="stores")
    op.drop_index(op.f("ix_stores_created"), table_name="stores")
    op.drop_index(op.f("ix_stores_author_id"), table_name="stores")
    op.drop_index(op.f("ix_stores_slug"), table_name="stores")
    op.drop_table("stores")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
