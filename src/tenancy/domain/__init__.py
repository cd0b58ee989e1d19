from .entities import (
    Alert,
    Dish,
    DishSeed,
    MonitoringConfig,
    Order,
    Recommendation,
    Setting,
    ShopSetup,
    ShopUpdate,
    Tenant,
)
from .reports import (
    BackupResult,
    BatchUpdateResult,
    CollectionOutcome,
    FleetHealthReport,
    HealthCheckResult,
    HealthReport,
    ProvisioningReport,
    StepResult,
)
from .value_objects import (
    DEFAULT_SHOP_SETTINGS,
    AlertChannel,
    AlertRules,
    AlertType,
    CheckStatus,
    CollectionName,
    OrderStatus,
    StepStatus,
)

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertRules",
    "AlertType",
    "BackupResult",
    "BatchUpdateResult",
    "CheckStatus",
    "CollectionName",
    "CollectionOutcome",
    "DEFAULT_SHOP_SETTINGS",
    "Dish",
    "DishSeed",
    "FleetHealthReport",
    "HealthCheckResult",
    "HealthReport",
    "MonitoringConfig",
    "Order",
    "OrderStatus",
    "ProvisioningReport",
    "Recommendation",
    "Setting",
    "ShopSetup",
    "ShopUpdate",
    "StepResult",
    "StepStatus",
    "Tenant",
]
