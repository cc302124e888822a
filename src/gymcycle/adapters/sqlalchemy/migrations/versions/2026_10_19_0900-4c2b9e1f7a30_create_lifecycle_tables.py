"""Create contract and subscription_organization tables

Revision ID: 4c2b9e1f7a30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4c2b9e1f7a30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create lifecycle tables."""
    op.create_table(
        "contract",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("plan_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        # Freeze window
        sa.Column("freeze_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("freeze_end_date", sa.DateTime(timezone=True), nullable=True),
        # Renewal chain and payment
        sa.Column("parent_contract_id", sa.Uuid(), nullable=True),
        sa.Column("final_amount", sa.Numeric(12, 2), nullable=True),
        # Audit
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_contract"),
    )
    op.create_index("ix_contract_status_end_date", "contract", ["status", "end_date"])
    op.create_index("ix_contract_gym_id", "contract", ["gym_id"])
    op.create_index("ix_contract_parent_contract_id", "contract", ["parent_contract_id"])

    op.create_table(
        "subscription_organization",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("metadata", sa.JSON(), nullable=False),
        # Audit
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_subscription_organization"),
    )
    op.create_index(
        "ix_subscription_organization_status_end_date",
        "subscription_organization",
        ["status", "end_date"],
    )
    op.create_index(
        "ix_subscription_organization_organization_id",
        "subscription_organization",
        ["organization_id"],
    )


def downgrade() -> None:
    """Drop lifecycle tables."""
    op.drop_index(
        "ix_subscription_organization_organization_id", table_name="subscription_organization"
    )
    op.drop_index(
        "ix_subscription_organization_status_end_date", table_name="subscription_organization"
    )
    op.drop_table("subscription_organization")
    op.drop_index("ix_contract_parent_contract_id", table_name="contract")
    op.drop_index("ix_contract_gym_id", table_name="contract")
    op.drop_index("ix_contract_status_end_date", table_name="contract")
    op.drop_table("contract")
