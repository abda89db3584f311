"""initial schema: pvz, receptions, products, users

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-04-11 18:57:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


city = sa.Enum("Москва", "Санкт-Петербург", "Казань", name="city")
reception_status = sa.Enum("in_progress", "close", name="receptionstatus")
product_type = sa.Enum("электроника", "одежда", "обувь", name="producttype")
user_role = sa.Enum("employee", "moderator", name="userrole")


def upgrade() -> None:
    op.create_table(
        "pvz",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("city", city, nullable=False),
    )
    op.create_index("ix_pvz_registration_date", "pvz", ["registration_date"])

    op.create_table(
        "receptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pvz_id", sa.Uuid(), sa.ForeignKey("pvz.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", reception_status, nullable=False),
    )
    op.create_index("ix_receptions_date_time", "receptions", ["date_time"])
    op.create_index("ix_receptions_pvz_id", "receptions", ["pvz_id"])
    op.create_index(
        "uq_receptions_pvz_in_progress",
        "receptions",
        ["pvz_id"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
        sqlite_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("type", product_type, nullable=False),
        sa.Column(
            "reception_id",
            sa.Uuid(),
            sa.ForeignKey("receptions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
    )
    op.create_index("ix_products_date_time", "products", ["date_time"])
    op.create_index("ix_products_reception_id", "products", ["reception_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_products_reception_id", table_name="products")
    op.drop_index("ix_products_date_time", table_name="products")
    op.drop_table("products")
    op.drop_index("uq_receptions_pvz_in_progress", table_name="receptions")
    op.drop_index("ix_receptions_pvz_id", table_name="receptions")
    op.drop_index("ix_receptions_date_time", table_name="receptions")
    op.drop_table("receptions")
    op.drop_index("ix_pvz_registration_date", table_name="pvz")
    op.drop_table("pvz")

    bind = op.get_bind()
    for enum_type in (user_role, product_type, reception_status, city):
        enum_type.drop(bind, checkfirst=True)
