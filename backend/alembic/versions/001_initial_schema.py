"""Initial schema: coupons, pending_verifications, access_users.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "coupons",
        sa.Column("coupon_id", sa.String(36), primary_key=True),
        sa.Column("holder_name", sa.String(255), nullable=False),
        sa.Column("holder_phone", sa.String(20), nullable=False),
        sa.Column("holder_address", sa.Text(), nullable=False),
        sa.Column("fixed_code", sa.String(50), nullable=False),
        sa.Column(
            "status",
            sa.Enum("UNUSED", "USED", "EXPIRED", name="couponstatus"),
            nullable=False,
            server_default="UNUSED",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(status = 'USED') = (used_at IS NOT NULL)",
            name="ck_coupons_used_at_iff_used",
        ),
    )
    op.create_index("ix_coupons_coupon_id", "coupons", ["coupon_id"])
    op.create_index("ix_coupons_holder_phone", "coupons", ["holder_phone"], unique=True)
    op.create_index("ix_coupons_status", "coupons", ["status"])

    op.create_table(
        "pending_verifications",
        sa.Column("phone_key", sa.String(20), primary_key=True),
        sa.Column("code", sa.String(6), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_pending_verifications_expires_at", "pending_verifications", ["expires_at"])

    op.create_table(
        "access_users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("STAFF", "ADMIN", name="accessrole"), nullable=False, server_default="STAFF"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_access_users_id", "access_users", ["id"])
    op.create_index("ix_access_users_username", "access_users", ["username"], unique=True)


def downgrade() -> None:
    op.drop_table("access_users")
    op.drop_table("pending_verifications")
    op.drop_table("coupons")
    op.execute("DROP TYPE IF EXISTS accessrole")
    op.execute("DROP TYPE IF EXISTS couponstatus")
