"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM and doubles as
the value set accepted by the pydantic request schemas.
"""

from enum import StrEnum

# ── Activity enums ──────────────────────────────────────────────────────────


class AreaUnitEnum(StrEnum):
    """Unit of an activity's surface area."""

    ha = "ha"
    m2 = "m2"


class UsageUnitEnum(StrEnum):
    """Units accepted on product-usage line items."""

    kg = "kg"
    g = "g"
    l = "l"  # noqa: E741
    ml = "ml"


class ProductCategoryEnum(StrEnum):
    """Category of a product-usage line item."""

    fertilizer = "fertilizer"
    pesticide = "pesticide"
    seed = "seed"
    other = "other"


# ── Product catalog enums ───────────────────────────────────────────────────


class ProductTypeEnum(StrEnum):
    """Kind of priced product in an owner's catalog."""

    fertilizer = "fertilizer"
    water = "water"
    phytosanitary = "phytosanitary"


# ── Inventory enums ─────────────────────────────────────────────────────────


class InventoryCategoryEnum(StrEnum):
    """Classification of stocked items."""

    fertilizer = "fertilizer"
    phytosanitary = "phytosanitary"
    seed = "seed"
    water = "water"
    tools = "tools"
    machinery = "machinery"
    fuel = "fuel"
    other = "other"


class StockUnitEnum(StrEnum):
    """Native units an inventory item can be stocked in."""

    g = "g"
    kg = "kg"
    t = "t"
    ml = "ml"
    L = "L"
    m3 = "m3"


class MovementOperationEnum(StrEnum):
    """Direction of an inventory movement."""

    add = "add"
    subtract = "subtract"


class MovementModuleEnum(StrEnum):
    """Activity module that caused an inventory movement.

    Fertigation days tag their own stock draws.  Phytosanitary and water
    draws are booked as manual movements carrying this tag.
    """

    fertigation = "fertigation"
    phytosanitary = "phytosanitary"
    water = "water"


class AlertKindEnum(StrEnum):
    """Inventory alert classification."""

    low_stock = "low_stock"
    critical_stock = "critical_stock"
    expiry_warning = "expiry_warning"


class AlertSeverityEnum(StrEnum):
    warning = "warning"
    critical = "critical"


# ── Template / waitlist enums ───────────────────────────────────────────────


class TemplateKindEnum(StrEnum):
    """Which day-record form a template pre-fills."""

    fertigation = "fertigation"
    phytosanitary = "phytosanitary"


class WaitlistLanguageEnum(StrEnum):
    es = "es"
    en = "en"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles."""

    admin = "admin"
    farmer = "farmer"
