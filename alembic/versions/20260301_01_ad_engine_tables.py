"""
Ad engine tables.

- ad_networks, ad_scripts, ad_zones: admin-managed ad configuration.
- ad_settings: singleton row (`id = 'global'`), created on first write.

Enums are stored as VARCHAR (non-native) so new ad types need no type migration.
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20260301_01_ad_engine_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "ad_networks",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("length(trim(name)) > 0", name="ck_ad_networks_name_not_blank"),
        sa.PrimaryKeyConstraint("id", name="pk_ad_networks"),
    )

    op.create_table(
        "ad_scripts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("network_id", sa.String(64), nullable=False),
        sa.Column("ad_type", sa.String(32), nullable=False),
        sa.Column("script", sa.Text(), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_ad_scripts"),
    )
    op.create_index("ix_ad_scripts_network_id", "ad_scripts", ["network_id"])
    op.create_index("ix_ad_scripts_type_enabled", "ad_scripts", ["ad_type", "is_enabled"])

    op.create_table(
        "ad_zones",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("page", sa.String(16), nullable=False),
        sa.Column("position", sa.String(120), nullable=False),
        sa.Column("ad_type", sa.String(32), nullable=False),
        sa.Column("script_id", sa.String(64), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("rotation", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("lazy_load", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("trigger", sa.String(16), nullable=False),
        sa.Column("delay", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("frequency", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("delay >= 0", name="ck_ad_zones_delay_nonneg"),
        sa.CheckConstraint("(frequency IS NULL OR frequency >= 0)", name="ck_ad_zones_frequency_nonneg"),
        sa.PrimaryKeyConstraint("id", name="pk_ad_zones"),
    )
    op.create_index("ix_ad_zones_page_position", "ad_zones", ["page", "position"])

    op.create_table(
        "ad_settings",
        sa.Column("id", sa.String(16), nullable=False),
        sa.Column("master_enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("test_mode", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("popup_frequency_cap", sa.Integer(), server_default=sa.text("2"), nullable=False),
        sa.Column("header_scripts", sa.Text(), server_default="", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_ad_settings"),
    )


def downgrade() -> None:
    op.drop_table("ad_settings")
    op.drop_index("ix_ad_zones_page_position", table_name="ad_zones")
    op.drop_table("ad_zones")
    op.drop_index("ix_ad_scripts_type_enabled", table_name="ad_scripts")
    op.drop_index("ix_ad_scripts_network_id", table_name="ad_scripts")
    op.drop_table("ad_scripts")
    op.drop_table("ad_networks")
