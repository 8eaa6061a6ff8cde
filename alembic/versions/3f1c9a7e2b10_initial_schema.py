"""initial_schema

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the AgroLedger schema: users, activities, the inventory ledger
(items, movements, alerts), suppliers, purchases, templates and the waitlist,
with their PostgreSQL enum types and indexes.  Enables the uuid-ossp and
postgis extensions if they are not present yet.
"""

from collections.abc import Sequence

import geoalchemy2
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum types (PostgreSQL CREATE TYPE) ─────────────────────────────────────
ENUM_USER_ROLE = postgresql.ENUM("admin", "farmer", name="user_role", create_type=False)
ENUM_AREA_UNIT = postgresql.ENUM("ha", "m2", name="area_unit", create_type=False)
ENUM_INVENTORY_CATEGORY = postgresql.ENUM(
    "fertilizer",
    "phytosanitary",
    "seed",
    "water",
    "tools",
    "machinery",
    "fuel",
    "other",
    name="inventory_category",
    create_type=False,
)
ENUM_STOCK_UNIT = postgresql.ENUM(
    "g", "kg", "t", "ml", "L", "m3", name="stock_unit", create_type=False
)
ENUM_MOVEMENT_OPERATION = postgresql.ENUM(
    "add", "subtract", name="movement_operation", create_type=False
)
ENUM_MOVEMENT_MODULE = postgresql.ENUM(
    "fertigation", "phytosanitary", "water", name="movement_module", create_type=False
)
ENUM_ALERT_KIND = postgresql.ENUM(
    "low_stock", "critical_stock", "expiry_warning", name="alert_kind", create_type=False
)
ENUM_ALERT_SEVERITY = postgresql.ENUM(
    "warning", "critical", name="alert_severity", create_type=False
)
ENUM_TEMPLATE_KIND = postgresql.ENUM(
    "fertigation", "phytosanitary", name="template_kind", create_type=False
)
ENUM_WAITLIST_LANGUAGE = postgresql.ENUM(
    "es", "en", name="waitlist_language", create_type=False
)

ALL_ENUMS = (
    ENUM_USER_ROLE,
    ENUM_AREA_UNIT,
    ENUM_INVENTORY_CATEGORY,
    ENUM_STOCK_UNIT,
    ENUM_MOVEMENT_OPERATION,
    ENUM_MOVEMENT_MODULE,
    ENUM_ALERT_KIND,
    ENUM_ALERT_SEVERITY,
    ENUM_TEMPLATE_KIND,
    ENUM_WAITLIST_LANGUAGE,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _owner_fk() -> sa.Column:
    return sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def _owner_constraint() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── 1. Enum types ───────────────────────────────────────────────────
    for enum_type in ALL_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    # ── 2. Users ────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("hashed_password", sa.String(128), nullable=False),
        sa.Column(
            "role",
            ENUM_USER_ROLE,
            server_default=sa.text("'farmer'"),
            nullable=False,
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── 3. Activities ───────────────────────────────────────────────────
    op.create_table(
        "activities",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("crop_type", sa.String(100), nullable=False),
        sa.Column("variety", sa.String(100), nullable=False),
        sa.Column("transplant_date", sa.Date(), nullable=False),
        sa.Column("plants_count", sa.Integer(), nullable=False),
        sa.Column("surface_area", sa.Float(), nullable=False),
        sa.Column(
            "area_unit",
            ENUM_AREA_UNIT,
            server_default=sa.text("'ha'"),
            nullable=False,
        ),
        sa.Column("water_used", sa.Float(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column(
            "location",
            geoalchemy2.types.Geography(
                geometry_type="POINT", srid=4326, from_text="ST_GeogFromText"
            ),
            nullable=True,
        ),
        sa.Column("products", postgresql.JSONB(), nullable=False),
        sa.Column("fertigation", postgresql.JSONB(), nullable=False),
        sa.Column("sigpac", postgresql.JSONB(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.Column("cost_per_hectare", sa.Float(), nullable=False),
        *_timestamps(),
        _owner_constraint(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_owner_date", "activities", ["owner_id", "date"])
    op.create_index(
        "ix_activities_owner_crop_type", "activities", ["owner_id", "crop_type"]
    )

    # ── 4. Inventory ledger ─────────────────────────────────────────────
    op.create_table(
        "inventory_items",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", ENUM_INVENTORY_CATEGORY, nullable=False),
        sa.Column("quantity", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("unit", ENUM_STOCK_UNIT, nullable=False),
        sa.Column("min_stock", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "critical_stock", sa.Float(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column(
            "price_per_unit", sa.Float(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("supplier", sa.String(255), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        *_timestamps(),
        _owner_constraint(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
    )
    op.create_index(
        "ix_inventory_items_owner_active", "inventory_items", ["owner_id", "active"]
    )
    op.create_index(
        "ix_inventory_items_owner_category", "inventory_items", ["owner_id", "category"]
    )

    op.create_table(
        "inventory_movements",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("clock_timestamp()"),
            nullable=False,
        ),
        _owner_fk(),
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("operation", ENUM_MOVEMENT_OPERATION, nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(16), nullable=False),
        sa.Column("amount_in_item_unit", sa.Float(), nullable=False),
        sa.Column("balance_after", sa.Float(), nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("activity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("module", ENUM_MOVEMENT_MODULE, nullable=True),
        sa.Column("day_index", sa.Integer(), nullable=True),
        _owner_constraint(),
        sa.ForeignKeyConstraint(
            ["item_id"], ["inventory_items.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_inventory_movements_item_seq", "inventory_movements", ["item_id", "id"]
    )
    op.create_index(
        "ix_inventory_movements_owner_activity_module_day",
        "inventory_movements",
        ["owner_id", "activity_id", "module", "day_index"],
    )

    op.create_table(
        "inventory_alerts",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("kind", ENUM_ALERT_KIND, nullable=False),
        sa.Column("severity", ENUM_ALERT_SEVERITY, nullable=False),
        sa.Column("message", sa.String(512), nullable=False),
        sa.Column("read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        _owner_constraint(),
        sa.ForeignKeyConstraint(
            ["item_id"], ["inventory_items.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_inventory_alerts_owner_read", "inventory_alerts", ["owner_id", "read"]
    )
    op.create_index("ix_inventory_alerts_item", "inventory_alerts", ["item_id"])

    # ── 5. Suppliers & purchases ────────────────────────────────────────
    op.create_table(
        "suppliers",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("address", sa.String(512), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        _owner_constraint(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_suppliers_owner_active", "suppliers", ["owner_id", "active"])

    op.create_table(
        "product_purchases",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("brand", sa.String(255), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("price_per_unit", sa.Float(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(16), nullable=False),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("inventory_item_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        _owner_constraint(),
        sa.ForeignKeyConstraint(
            ["inventory_item_id"], ["inventory_items.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_product_purchases_owner_product",
        "product_purchases",
        ["owner_id", "product_name"],
    )
    op.create_index(
        "ix_product_purchases_owner_supplier",
        "product_purchases",
        ["owner_id", "supplier"],
    )
    op.create_index(
        "ix_product_purchases_owner_date",
        "product_purchases",
        ["owner_id", "purchase_date"],
    )

    # ── 6. Templates ────────────────────────────────────────────────────
    op.create_table(
        "templates",
        _uuid_pk(),
        _owner_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("kind", ENUM_TEMPLATE_KIND, nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        _owner_constraint(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "name", "kind", name="uq_templates_owner_name_kind"),
    )
    op.create_index("ix_templates_owner_id", "templates", ["owner_id"])

    # ── 7. Waitlist ─────────────────────────────────────────────────────
    op.create_table(
        "waitlist_entries",
        _uuid_pk(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column(
            "source",
            sa.String(64),
            server_default=sa.text("'landing_page'"),
            nullable=False,
        ),
        sa.Column(
            "language",
            ENUM_WAITLIST_LANGUAGE,
            server_default=sa.text("'es'"),
            nullable=False,
        ),
        sa.Column("ip", sa.String(64), nullable=False),
        sa.Column("user_agent", sa.String(512), nullable=False),
        sa.Column(
            "status",
            sa.String(32),
            server_default=sa.text("'active'"),
            nullable=False,
        ),
        sa.Column(
            "subscribed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_waitlist_entries_email", "waitlist_entries", ["email"], unique=True
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("waitlist_entries")
    op.drop_table("templates")
    op.drop_table("product_purchases")
    op.drop_table("suppliers")
    op.drop_table("inventory_alerts")
    op.drop_table("inventory_movements")
    op.drop_table("inventory_items")
    op.drop_table("activities")
    op.drop_table("users")

    # ── Drop enum types ─────────────────────────────────────────────────
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
