"""Initial OfficeHub schema: accounts, directory, finance, notifications, progress.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "role": ("Admin", "Staff", "DepartmentHead", "Instructor", "Student", "Client", "Partner"),
    "notification_type": ("info", "success", "warning", "error"),
    "stage_status": ("Pending", "Approved", "Rejected"),
    "approval_status": ("Pending_DeptHead", "Pending_Admin", "Approved", "Rejected"),
    "employment_type": ("Full-time", "Part-time", "Internship"),
    "partner_type": ("Affiliate", "Sponsor", "Collaborator", "Vendor"),
    "record_status": ("Active", "Inactive"),
    "report_category": ("Client for Consultancy", "Client for Audit", "Student", "Others"),
    "report_status": ("Pending", "Signed Contract", "Pipeline Client", "Submitted", "Approved", "Rejected"),
    "target_status": ("Active", "Completed", "Cancelled"),
    "progress_status": ("Pending", "Approved", "Rejected"),
}


def _is_sqlite() -> bool:
    return op.get_bind().dialect.name == "sqlite"


def _enum(name: str):
    # Shared types are created once up front on PostgreSQL.
    if _is_sqlite():
        return sa.Enum(*ENUMS[name], name=name)
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _approval_columns() -> list[sa.Column]:
    return [
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("dept_head_status", _enum("stage_status"), nullable=False, server_default="Pending"),
        sa.Column("admin_status", _enum("stage_status"), nullable=False, server_default="Pending"),
        sa.Column("approval_status", _enum("approval_status"), nullable=False, server_default="Pending_DeptHead"),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dept_head_approved_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("dept_head_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_approved_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("admin_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
    ]


def _index(table: str, *columns: str, unique: bool = False) -> None:
    op.create_index(f"ix_{table}_{columns[0]}", table, list(columns), unique=unique)


def upgrade() -> None:
    if not _is_sqlite():
        bind = op.get_bind()
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    _index("departments", "id")
    _index("departments", "name", unique=True)
    _index("departments", "manager_id")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("role", _enum("role"), nullable=False, server_default="Staff"),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    _index("users", "id")
    _index("users", "email", unique=True)
    _index("users", "role")
    _index("users", "department_id")
    _index("users", "is_active")

    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("employment_type", _enum("employment_type"), nullable=False, server_default="Full-time"),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("base_salary", sa.Numeric(14, 2), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("emergency_contact", sa.String(length=255), nullable=True),
        sa.Column("status", _enum("record_status"), nullable=False, server_default="Active"),
        *_timestamps(),
    )
    _index("staff", "id")
    _index("staff", "staff_id", unique=True)
    _index("staff", "user_id", unique=True)
    _index("staff", "department_id")

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("service_type", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("progress_status", sa.String(length=50), nullable=True),
        sa.Column("status", _enum("record_status"), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index("clients", "id")
    _index("clients", "client_id", unique=True)
    _index("clients", "user_id")
    _index("clients", "name")
    _index("clients", "company_name")
    _index("clients", "category")
    _index("clients", "progress_status")
    _index("clients", "status")

    op.create_table(
        "consultations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("consultation_date", sa.Date(), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("consultant_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index("consultations", "id")
    _index("consultations", "client_id")

    op.create_table(
        "partners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact_person", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("partner_type", _enum("partner_type"), nullable=False, server_default="Affiliate"),
        sa.Column("status", _enum("record_status"), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    _index("partners", "id")
    _index("partners", "partner_id", unique=True)
    _index("partners", "user_id")
    _index("partners", "name")

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("notifications.id", ondelete="CASCADE"), nullable=True),
        sa.Column("thread_id", sa.Integer(), sa.ForeignKey("notifications.id", ondelete="CASCADE"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", _enum("notification_type"), nullable=False, server_default="info"),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    _index("notifications", "id")
    _index("notifications", "sender_id")
    _index("notifications", "parent_id")
    _index("notifications", "thread_id")

    op.create_table(
        "notification_recipients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "notification_id",
            sa.Integer(),
            sa.ForeignKey("notifications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("notification_id", "user_id", name="uq_notification_recipient"),
    )
    _index("notification_recipients", "id")
    _index("notification_recipients", "notification_id")
    _index("notification_recipients", "user_id")
    _index("notification_recipients", "is_read")

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    _index("activity_logs", "id")
    _index("activity_logs", "actor_user_id")
    _index("activity_logs", "type")
    _index("activity_logs", "entity_type")

    op.create_table(
        "petty_cash_ledgers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slip_number", sa.String(length=50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("starting_balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_deposits", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_withdrawals", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("closing_balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("custodian", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("date_signed", sa.Date(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_approval_columns(),
        *_timestamps(),
        sa.UniqueConstraint("department_id", "year", "month", name="uq_petty_cash_ledgers_period"),
    )
    _index("petty_cash_ledgers", "id")
    _index("petty_cash_ledgers", "slip_number", unique=True)
    _index("petty_cash_ledgers", "department_id")
    _index("petty_cash_ledgers", "created_by")
    _index("petty_cash_ledgers", "approval_status")

    op.create_table(
        "petty_cash_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ledger_id",
            sa.Integer(),
            sa.ForeignKey("petty_cash_ledgers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("deposit", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("withdrawal", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False),
        sa.Column("charged_to", sa.String(length=255), nullable=True),
        sa.Column("received_by", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("ledger_id", "sequence", name="uq_petty_cash_transactions_line"),
    )
    _index("petty_cash_transactions", "id")
    _index("petty_cash_transactions", "ledger_id")

    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("serial_number", sa.String(length=255), nullable=True),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("purchase_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("date_acquired", sa.Date(), nullable=False),
        sa.Column("depreciation_rate_annual", sa.Numeric(6, 4), nullable=False, server_default="0.05"),
        sa.Column("depreciation_expense_per_annum", sa.Numeric(14, 2), nullable=False),
        sa.Column("depreciation_expense_per_month", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_approval_columns(),
        *_timestamps(),
    )
    _index("assets", "id")
    _index("assets", "asset_id", unique=True)
    _index("assets", "category")
    _index("assets", "location")
    _index("assets", "date_acquired")
    _index("assets", "department_id")
    _index("assets", "created_by")
    _index("assets", "approval_status")

    op.create_table(
        "asset_depreciation",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("as_of", sa.Date(), nullable=False),
        sa.Column("years_elapsed", sa.Float(), nullable=False),
        sa.Column("accumulated_depreciation", sa.Numeric(14, 2), nullable=False),
        sa.Column("book_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("recorded_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("asset_id", "as_of", name="uq_asset_depreciation_as_of"),
    )
    _index("asset_depreciation", "id")
    _index("asset_depreciation", "asset_id")

    op.create_table(
        "progress_reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("category", _enum("report_category"), nullable=False),
        sa.Column("status", _enum("report_status"), nullable=False, server_default="Pending"),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    _index("progress_reports", "id")
    _index("progress_reports", "report_date")
    _index("progress_reports", "category")
    _index("progress_reports", "status")
    _index("progress_reports", "client_id")
    _index("progress_reports", "department_id")
    _index("progress_reports", "created_by")

    op.create_table(
        "targets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("target_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column("status", _enum("target_status"), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    _index("targets", "id")
    _index("targets", "user_id")
    _index("targets", "status")

    op.create_table(
        "target_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("target_id", sa.Integer(), sa.ForeignKey("targets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "progress_report_id",
            sa.Integer(),
            sa.ForeignKey("progress_reports.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("status", _enum("progress_status"), nullable=False, server_default="Pending"),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    _index("target_progress", "id")
    _index("target_progress", "target_id")
    _index("target_progress", "user_id")


def downgrade() -> None:
    for table in (
        "target_progress",
        "targets",
        "progress_reports",
        "asset_depreciation",
        "assets",
        "petty_cash_transactions",
        "petty_cash_ledgers",
        "activity_logs",
        "notification_recipients",
        "notifications",
        "partners",
        "consultations",
        "clients",
        "staff",
        "users",
        "departments",
    ):
        op.drop_table(table)

    if not _is_sqlite():
        bind = op.get_bind()
        for name in ENUMS:
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
