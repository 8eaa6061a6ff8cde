"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from agroledger.models import Activity, InventoryItem, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from agroledger.models.base import (
    Base,
    LedgerEntryMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Activity ────────────────────────────────────────────────────────────────
from agroledger.models.activity import Activity

# ── Enums ───────────────────────────────────────────────────────────────────
from agroledger.models.enums import (
    AlertKindEnum,
    AlertSeverityEnum,
    AreaUnitEnum,
    InventoryCategoryEnum,
    MovementModuleEnum,
    MovementOperationEnum,
    ProductCategoryEnum,
    ProductTypeEnum,
    StockUnitEnum,
    TemplateKindEnum,
    UsageUnitEnum,
    UserRoleEnum,
    WaitlistLanguageEnum,
)

# ── Inventory ledger ────────────────────────────────────────────────────────
from agroledger.models.inventory import InventoryAlert, InventoryItem, InventoryMovement

# ── Purchasing & templates ──────────────────────────────────────────────────
from agroledger.models.products import ProductPrice
from agroledger.models.suppliers import ProductPurchase, Supplier
from agroledger.models.templates import Template

# ── Users ───────────────────────────────────────────────────────────────────
from agroledger.models.user import User
from agroledger.models.waitlist import WaitlistEntry

__all__ = [
    # Activity
    "Activity",
    "AlertKindEnum",
    "AlertSeverityEnum",
    "AreaUnitEnum",
    # Base & mixins
    "Base",
    "InventoryAlert",
    "InventoryCategoryEnum",
    # Inventory ledger
    "InventoryItem",
    "InventoryMovement",
    "LedgerEntryMixin",
    "MovementModuleEnum",
    "MovementOperationEnum",
    "ProductCategoryEnum",
    "ProductPrice",
    "ProductPurchase",
    "ProductTypeEnum",
    "StockUnitEnum",
    # Purchasing & templates
    "Supplier",
    "Template",
    "TemplateKindEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UsageUnitEnum",
    # Auth
    "User",
    "UserRoleEnum",
    "WaitlistEntry",
    "WaitlistLanguageEnum",
]
