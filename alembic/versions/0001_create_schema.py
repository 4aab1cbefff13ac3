from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def _has_index(inspector, table_name: str, index_name: str) -> bool:
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)

    if "users" not in inspector.get_table_names():
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="EMPLOYEE"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    inspector = inspect(bind)
    if "customers" not in inspector.get_table_names():
        op.create_table(
            "customers",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("phone", sa.String(length=30), nullable=False),
            sa.Column("company", sa.String(length=120), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_customers_email", "customers", ["email"], unique=True)
        op.create_index("ix_customers_phone", "customers", ["phone"], unique=True)
        op.create_index("ix_customers_created_at", "customers", ["created_at"], unique=False)

    inspector = inspect(bind)
    if "tasks" not in inspector.get_table_names():
        op.create_table(
            "tasks",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
            sa.Column("assigned_to", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
            sa.Column(
                "customer_id",
                sa.String(length=36),
                sa.ForeignKey("customers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"], unique=False)
        op.create_index("ix_tasks_customer_id", "tasks", ["customer_id"], unique=False)
        op.create_index("ix_tasks_created_at", "tasks", ["created_at"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()

    for table_name, index_names in (
        ("tasks", ["ix_tasks_created_at", "ix_tasks_customer_id", "ix_tasks_assigned_to"]),
        ("customers", ["ix_customers_created_at", "ix_customers_phone", "ix_customers_email"]),
        ("users", ["ix_users_email"]),
    ):
        inspector = inspect(bind)
        if table_name not in inspector.get_table_names():
            continue
        for index_name in index_names:
            if _has_index(inspector, table_name, index_name):
                op.drop_index(index_name, table_name=table_name)
        op.drop_table(table_name)
