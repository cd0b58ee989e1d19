from .models import (
    COLLECTION_MODELS,
    AlertORM,
    DishORM,
    MonitoringConfigORM,
    OrderORM,
    RecommendationORM,
    SettingORM,
    TenantORM,
)
from .schema_registry import SchemaRegistry
from .tenant_store import TenantStore

__all__ = [
    "COLLECTION_MODELS",
    "AlertORM",
    "DishORM",
    "MonitoringConfigORM",
    "OrderORM",
    "RecommendationORM",
    "SettingORM",
    "TenantORM",
    "SchemaRegistry",
    "TenantStore",
]
