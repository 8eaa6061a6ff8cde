"""add_product_catalog

Revision ID: 7c4d2e9a1f35
Revises: 3f1c9a7e2b10
Create Date: 2026-10-19 12:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "7c4d2e9a1f35"
down_revision: str | None = "3f1c9a7e2b10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_PRODUCT_TYPE = postgresql.ENUM(
	"fertilizer",
	"water",
	"phytosanitary",
	name="product_type",
	create_type=False,
)


def upgrade() -> None:
	ENUM_PRODUCT_TYPE.create(op.get_bind(), checkfirst=True)

	op.create_table(
		"product_prices",
		sa.Column(
			"id",
			postgresql.UUID(as_uuid=True),
			server_default=sa.text("uuid_generate_v4()"),
			nullable=False,
		),
		sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
		sa.Column("name", sa.String(length=255), nullable=False),
		sa.Column("type", ENUM_PRODUCT_TYPE, nullable=False),
		sa.Column("price_per_unit", sa.Float(), nullable=False),
		sa.Column("unit", sa.String(length=16), nullable=False),
		sa.Column("category", sa.String(length=100), nullable=True),
		sa.Column("description", sa.Text(), nullable=True),
		sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
		sa.Column(
			"created_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.Column(
			"updated_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_product_prices_owner_type", "product_prices", ["owner_id", "type"])
	op.create_index("ix_product_prices_owner_active", "product_prices", ["owner_id", "active"])

	op.add_column(
		"inventory_items",
		sa.Column("product_id", postgresql.UUID(as_uuid=True), nullable=True),
	)
	op.create_foreign_key(
		"fk_inventory_items_product_id",
		"inventory_items",
		"product_prices",
		["product_id"],
		["id"],
		ondelete="SET NULL",
	)
	op.create_index("ix_inventory_items_owner_product", "inventory_items", ["owner_id", "product_id"])


def downgrade() -> None:
	op.drop_index("ix_inventory_items_owner_product", table_name="inventory_items")
	op.drop_constraint("fk_inventory_items_product_id", "inventory_items", type_="foreignkey")
	op.drop_column("inventory_items", "product_id")
	op.drop_index("ix_product_prices_owner_active", table_name="product_prices")
	op.drop_index("ix_product_prices_owner_type", table_name="product_prices")
	op.drop_table("product_prices")
	ENUM_PRODUCT_TYPE.drop(op.get_bind(), checkfirst=True)
