"""assignment_history_partner_config

Revision ID: 8b2e4d6f1a90
Revises: 3f9a1c2b7d4e
Create Date: 2024-02-02 14:30:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b2e4d6f1a90"
down_revision: Union[str, Sequence[str], None] = "3f9a1c2b7d4e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # Configuration values may now be scoped to a partner
    op.drop_index("ix_configurations_key", table_name="configurations")
    op.add_column("configurations", sa.Column("partner_id", sa.Integer(), nullable=True))
    op.create_foreign_key(
        "fk_configurations_partner_id", "configurations", "partners", ["partner_id"], ["id"]
    )
    op.create_index("ix_configurations_key", "configurations", ["key"])
    op.create_index("ix_configurations_partner_id", "configurations", ["partner_id"])
    op.create_unique_constraint(
        "uq_configurations_key_partner", "configurations", ["key", "partner_id"]
    )
    op.create_index(
        "uq_configurations_global_key",
        "configurations",
        ["key"],
        unique=True,
        postgresql_where=sa.text("partner_id IS NULL"),
    )

    op.create_table(
        "request_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("partner_id", sa.Integer(), nullable=False),
        sa.Column("branch_id", sa.Integer(), nullable=False),
        sa.Column("assigned_by", sa.Integer(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sla_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("response", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["request_id"], ["service_requests.id"]),
        sa.ForeignKeyConstraint(["partner_id"], ["partners.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_request_assignments_partner_id", "request_assignments", ["partner_id"]
    )
    op.create_index(
        "idx_request_assignments_request_active",
        "request_assignments",
        ["request_id", "is_active"],
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("idx_request_assignments_request_active", table_name="request_assignments")
    op.drop_index("ix_request_assignments_partner_id", table_name="request_assignments")
    op.drop_table("request_assignments")

    op.drop_index("uq_configurations_global_key", table_name="configurations")
    op.drop_constraint("uq_configurations_key_partner", "configurations", type_="unique")
    op.drop_index("ix_configurations_partner_id", table_name="configurations")
    op.drop_index("ix_configurations_key", table_name="configurations")
    op.drop_constraint("fk_configurations_partner_id", "configurations", type_="foreignkey")
    op.drop_column("configurations", "partner_id")
    op.create_index("ix_configurations_key", "configurations", ["key"], unique=True)
