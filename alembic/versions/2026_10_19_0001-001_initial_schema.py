"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

All 3 tables as defined in app/models/database_models.py:
users, user_preferences, explanations.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("image", sa.String(1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── user_preferences ──────────────────────────────────────────────────
    op.create_table(
        "user_preferences",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("ai_experience", sa.String(100), nullable=True),
        sa.Column("coding_experience", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── explanations ──────────────────────────────────────────────────────
    op.create_table(
        "explanations",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("page_path", sa.String(512), nullable=False),
        sa.Column("page_title", sa.String(512), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("ai_level", sa.String(100), nullable=True),
        sa.Column("coding_level", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "page_path", "page_title", name="uq_explanation_user_page"),
    )


def downgrade() -> None:
    op.drop_table("explanations")
    op.drop_table("user_preferences")
    op.drop_table("users")
