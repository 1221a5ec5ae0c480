"""Initial schema – users and vessels

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Creates both tables with the uniqueness and ETD-after-ETA constraints and
the per-field indexes used by the vessel search.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "user", name="user_role"),
            nullable=False,
            server_default="user",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_user_id", "users", ["user_id"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # -- vessels --------------------------------------------------------
    op.create_table(
        "vessels",
        # canonical UUID text
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("vessel_name", sa.String(100), nullable=False),
        sa.Column("voyage_no", sa.String(50), nullable=False),
        sa.Column("country", sa.String(60), nullable=False),
        sa.Column("port_name", sa.String(80), nullable=False),
        sa.Column("eta", sa.DateTime(timezone=True), nullable=False),
        sa.Column("etd", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("vessel_name", "voyage_no", name="uq_vessels_name_voyage"),
        sa.CheckConstraint("etd > eta", name="ck_vessels_etd_after_eta"),
    )

    for column in ("vessel_name", "voyage_no", "country", "port_name", "eta", "etd"):
        op.create_index(f"ix_vessels_{column}", "vessels", [column])
    op.create_index("idx_vessels_created_at", "vessels", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_vessels_created_at", table_name="vessels")
    for column in ("vessel_name", "voyage_no", "country", "port_name", "eta", "etd"):
        op.drop_index(f"ix_vessels_{column}", table_name="vessels")
    op.drop_table("vessels")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_user_id", table_name="users")
    op.drop_table("users")
