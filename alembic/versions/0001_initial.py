"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Создаем таблицу сообщений чата.
    op.create_table(
        "chats",
        sa.Column("id", sa.String(length=16), primary_key=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(length=120), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_chats_created_at", "chats", ["created_at"], unique=False)
    op.create_index("ix_chats_ip_address_created_at", "chats", ["ip_address", "created_at"], unique=False)

    # Создаем счетчики просмотров страниц.
    op.create_table(
        "page_views",
        sa.Column("page", sa.String(length=255), primary_key=True),
        sa.Column("total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hits", sa.Integer(), nullable=False, server_default="0"),
    )

    # Создаем журнал уникальных посетителей (страница, IP).
    op.create_table(
        "page_visitors",
        sa.Column("page", sa.String(length=255), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("page", "ip_address"),
    )


def downgrade() -> None:
    # Откатываем схему до пустого состояния.
    op.drop_table("page_visitors")
    op.drop_table("page_views")
    op.drop_index("ix_chats_ip_address_created_at", table_name="chats")
    op.drop_index("ix_chats_created_at", table_name="chats")
    op.drop_table("chats")
