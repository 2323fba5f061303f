"""Create organizations, users, sessions and tax configurations

Revision ID: 20260301_01
Revises:
Create Date: 2026-03-01 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260301_01"
down_revision = None
branch_labels = None
depends_on = None


organization_type = sa.Enum(
    "RESTAURANT", "HOTEL", "CAFE", "FOOD_TRUCK", "BAR", name="organization_type"
)
tax_type = sa.Enum("GST", name="tax_type")
service_type = sa.Enum("DINE_IN", "TAKEAWAY", "DELIVERY", "ALL", name="service_type")


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", organization_type, nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.Uuid(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="staff"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("refresh_token", sa.String(length=1000), nullable=False),
        sa.Column("access_token", sa.String(length=1000), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("device_type", sa.String(length=50), nullable=True),
        sa.Column("browser", sa.String(length=100), nullable=True),
        sa.Column("os", sa.String(length=100), nullable=True),
        sa.Column("fingerprint", sa.String(length=255), nullable=True),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_refresh_token", "sessions", ["refresh_token"], unique=True)

    op.create_table(
        "tax_configurations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.Uuid(),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("organization_type", organization_type, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tax_type", tax_type, nullable=False, server_default="GST"),
        sa.Column("tax_rate", sa.DECIMAL(precision=5, scale=2), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_tax_exempt", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_price_inclusive", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("applicable_region", sa.String(length=255), nullable=True),
        sa.Column("service_type", service_type, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("tax_rate >= 0 AND tax_rate <= 100", name="ck_tax_rate_range"),
    )
    op.create_index(
        "ix_tax_configurations_organization_id", "tax_configurations", ["organization_id"]
    )
    op.create_index(
        "ix_tax_configurations_lookup",
        "tax_configurations",
        ["organization_id", "organization_type", "is_active"],
    )


def downgrade() -> None:
    op.drop_index("ix_tax_configurations_lookup", table_name="tax_configurations")
    op.drop_index("ix_tax_configurations_organization_id", table_name="tax_configurations")
    op.drop_table("tax_configurations")

    op.drop_index("ix_sessions_refresh_token", table_name="sessions")
    op.drop_index("ix_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")

    op.drop_index("ix_users_organization_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_organizations_slug", table_name="organizations")
    op.drop_table("organizations")

    service_type.drop(op.get_bind(), checkfirst=True)
    tax_type.drop(op.get_bind(), checkfirst=True)
    organization_type.drop(op.get_bind(), checkfirst=True)
