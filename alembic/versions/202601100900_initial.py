"""initial schema

Revision ID: 202601100900
Revises:
Create Date: 2026-01-10 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202601100900"
down_revision = None
branch_labels = None
depends_on = None


CATEGORY = sa.Enum(
    "Receita", "Fixo", "Variável", "Diversos", "Investimento", name="category"
)
PAYMENT_METHOD = sa.Enum(
    "Dinheiro",
    "Pix",
    "Cartão de Crédito",
    "Cartão de Débito",
    name="paymentmethod",
)


def upgrade():
    op.create_table(
        "entries",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("category", CATEGORY, nullable=False),
        sa.Column("payment_method", PAYMENT_METHOD, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_entries_amount_positive"),
    )
    op.create_index("ix_entries_date", "entries", ["date"])
    op.create_index("ix_entries_category_date", "entries", ["category", "date"])

    op.create_table(
        "preferences",
        sa.Column("key", sa.String(length=50), primary_key=True),
        sa.Column("value", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "gastos",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("descricao", sa.Text(), nullable=False),
        sa.Column("data", sa.Date(), nullable=False),
        sa.Column("categoria", sa.String(length=40), nullable=False),
        sa.Column("metodo_pagamento", sa.String(length=40), nullable=False),
        sa.Column("valor", sa.Float(), nullable=False),
        sa.Column("sincronizado_em", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_gastos_data", "gastos", ["data"])


def downgrade():
    op.drop_index("ix_gastos_data", table_name="gastos")
    op.drop_table("gastos")
    op.drop_table("preferences")
    op.drop_index("ix_entries_category_date", table_name="entries")
    op.drop_index("ix_entries_date", table_name="entries")
    op.drop_table("entries")
    CATEGORY.drop(op.get_bind(), checkfirst=True)
    PAYMENT_METHOD.drop(op.get_bind(), checkfirst=True)
