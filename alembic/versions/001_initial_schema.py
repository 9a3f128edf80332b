"""Initial schema — groups, products, prices

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- groups (one row per tcgcsv set) ---
    op.create_table(
        "groups",
        sa.Column("group_id", sa.INTEGER(), nullable=False, comment="tcgcsv groupId"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("abbreviation", sa.String(), nullable=False),
        sa.Column("synced_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("group_id"),
    )
    op.create_index("ix_groups_abbreviation", "groups", ["abbreviation"])

    # --- products (upserted by sync, keyed on product_id) ---
    op.create_table(
        "products",
        sa.Column("product_id", sa.INTEGER(), nullable=False, comment="tcgcsv productId"),
        sa.Column("group_id", sa.INTEGER(), sa.ForeignKey("groups.group_id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("clean_name", sa.String(), nullable=True),
        sa.Column("card_number", sa.String(), nullable=True),
        sa.Column("card_type", sa.String(), nullable=True),
        sa.Column("colors", sa.JSON(), nullable=False),
        sa.Column("rarity", sa.String(), nullable=True),
        sa.Column("cost", sa.INTEGER(), nullable=True),
        sa.Column("power", sa.INTEGER(), nullable=True),
        sa.Column("life", sa.INTEGER(), nullable=True),
        sa.Column("attribute", sa.String(), nullable=True),
        sa.Column("subtypes", sa.JSON(), nullable=False),
        sa.Column("counter_plus", sa.INTEGER(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_alt_art", sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column("is_manga", sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column("is_sp", sa.BOOLEAN(), nullable=False, server_default=sa.false()),
        sa.Column("url", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("synced_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("product_id"),
    )
    op.create_index("ix_products_group_id", "products", ["group_id"])
    op.create_index("ix_products_card_number", "products", ["card_number"])

    # --- prices (append-only time series) ---
    op.create_table(
        "prices",
        sa.Column("id", sa.INTEGER(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.INTEGER(), sa.ForeignKey("products.product_id"), nullable=False),
        sa.Column("sub_type_name", sa.String(), nullable=False),
        sa.Column("low_price", sa.DECIMAL(10, 2), nullable=True),
        sa.Column("mid_price", sa.DECIMAL(10, 2), nullable=True),
        sa.Column("high_price", sa.DECIMAL(10, 2), nullable=True),
        sa.Column("market_price", sa.DECIMAL(10, 2), nullable=True),
        sa.Column(
            "recorded_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_prices_product_recorded", "prices", ["product_id", "recorded_at"])


def downgrade() -> None:
    op.drop_index("ix_prices_product_recorded", table_name="prices")
    op.drop_table("prices")
    op.drop_index("ix_products_card_number", table_name="products")
    op.drop_index("ix_products_group_id", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_groups_abbreviation", table_name="groups")
    op.drop_table("groups")
