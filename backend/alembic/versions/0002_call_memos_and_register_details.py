"""Call memos; receiver and attachment on petty cash lines; asset register details.

Revision ID: 0002_call_memos_and_register_details
Revises: 0001_initial_schema
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0002_call_memos_and_register_details"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


ASSET_CONDITION = ("Excellent", "Good", "Fair", "Poor")


def _is_sqlite() -> bool:
    return op.get_bind().dialect.name == "sqlite"


def _asset_condition():
    if _is_sqlite():
        return sa.Enum(*ASSET_CONDITION, name="asset_condition")
    return postgresql.ENUM(*ASSET_CONDITION, name="asset_condition", create_type=False)


def upgrade() -> None:
    if not _is_sqlite():
        postgresql.ENUM(*ASSET_CONDITION, name="asset_condition").create(op.get_bind(), checkfirst=True)

    op.create_table(
        "call_memos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("client_name", sa.String(length=255), nullable=False),
        sa.Column("participants", sa.Text(), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("call_date", sa.Date(), nullable=False),
        sa.Column("discussion", sa.Text(), nullable=False),
        sa.Column("service_needed", sa.String(length=255), nullable=False),
        sa.Column("service_other", sa.String(length=255), nullable=True),
        sa.Column("department_needed", sa.String(length=255), nullable=True),
        sa.Column("next_visitation_date", sa.Date(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_call_memos_id", "call_memos", ["id"])
    op.create_index("ix_call_memos_client_id", "call_memos", ["client_id"])
    op.create_index("ix_call_memos_call_date", "call_memos", ["call_date"])
    op.create_index("ix_call_memos_created_by", "call_memos", ["created_by"])

    with op.batch_alter_table("petty_cash_transactions") as batch:
        batch.add_column(sa.Column("received_by_staff_id", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("attachment", sa.JSON(), nullable=True))
        batch.create_foreign_key(
            "fk_petty_cash_transactions_received_by_staff_id_staff",
            "staff",
            ["received_by_staff_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch.create_index("ix_petty_cash_transactions_received_by_staff_id", ["received_by_staff_id"])

    with op.batch_alter_table("assets") as batch:
        batch.add_column(sa.Column("asset_condition", _asset_condition(), nullable=False, server_default="Good"))
        batch.add_column(sa.Column("warranty_expiry_date", sa.Date(), nullable=True))
        batch.add_column(sa.Column("expected_useful_life_years", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("responsible_person_id", sa.Integer(), nullable=True))
        batch.add_column(sa.Column("attachment", sa.JSON(), nullable=True))
        batch.create_foreign_key(
            "fk_assets_responsible_person_id_users",
            "users",
            ["responsible_person_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch.create_index("ix_assets_responsible_person_id", ["responsible_person_id"])


def downgrade() -> None:
    with op.batch_alter_table("assets") as batch:
        batch.drop_index("ix_assets_responsible_person_id")
        batch.drop_constraint("fk_assets_responsible_person_id_users", type_="foreignkey")
        for column in (
            "attachment",
            "responsible_person_id",
            "expected_useful_life_years",
            "warranty_expiry_date",
            "asset_condition",
        ):
            batch.drop_column(column)

    with op.batch_alter_table("petty_cash_transactions") as batch:
        batch.drop_index("ix_petty_cash_transactions_received_by_staff_id")
        batch.drop_constraint("fk_petty_cash_transactions_received_by_staff_id_staff", type_="foreignkey")
        batch.drop_column("attachment")
        batch.drop_column("received_by_staff_id")

    op.drop_table("call_memos")

    if not _is_sqlite():
        postgresql.ENUM(name="asset_condition").drop(op.get_bind(), checkfirst=True)
