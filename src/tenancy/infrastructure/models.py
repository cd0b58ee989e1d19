from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from shared.infrastructure.database.base_model import Base, JSONType
from shared.utils.clock import utcnow
from tenancy.domain.value_objects import AlertRules, CollectionName, OrderStatus


def _tenant_fk() -> ForeignKey:
    return ForeignKey("tenants.tenant_id", ondelete="CASCADE")


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


# --- Tables ------------------------------------------------------------------

class TenantORM(Base):
    """
    Mirrors public.tenants.

    - tenant_id varchar(50) UNIQUE NOT NULL (the business key every other table references)
    - is_active soft-deactivation flag; rows are not deleted by this core
    """
    __tablename__ = "tenants"

    tenant_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(50))
    contact_name: Mapped[Optional[str]] = mapped_column(String(50))
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20))
    contact_email: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    shop_type: Mapped[Optional[str]] = mapped_column(String(20))
    theme_color: Mapped[Optional[str]] = mapped_column(String(20))
    wechat_qr_url: Mapped[Optional[str]] = mapped_column(Text)
    alipay_qr_url: Mapped[Optional[str]] = mapped_column(Text)
    admin_password: Mapped[Optional[str]] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    updated_at: Mapped[datetime] = _updated_at()


class DishORM(Base):
    __tablename__ = "dishes"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50))
    emoji: Mapped[Optional[str]] = mapped_column(String(10))
    tags: Mapped[List[Any]] = mapped_column(JSONType, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_dishes__price_non_negative"),
        Index("ix_dishes__tenant_sort", "tenant_id", "sort_order"),
    )


class RecommendationORM(Base):
    __tablename__ = "recommendations"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), nullable=False)
    dish_id: Mapped[int] = mapped_column(Integer, ForeignKey("dishes.id", ondelete="CASCADE"), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        UniqueConstraint("tenant_id", "dish_id", name="uq_recommendations__tenant_dish"),
    )


class MonitoringConfigORM(Base):
    """One row per tenant; alert_rules holds the AlertRules JSON document."""
    __tablename__ = "monitoring_configs"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), unique=True, nullable=False)
    shop_name: Mapped[Optional[str]] = mapped_column(String(100))
    alert_rules: Mapped[Dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=lambda: AlertRules().to_dict()
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    updated_at: Mapped[datetime] = _updated_at()


class AlertORM(Base):
    __tablename__ = "alerts_history"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), nullable=False)
    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)
    alert_title: Mapped[str] = mapped_column(String(200), nullable=False)
    alert_description: Mapped[Optional[str]] = mapped_column(Text)
    alert_data: Mapped[Any] = mapped_column(JSONType, nullable=False, default=dict)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_alerts_history__tenant_created", "tenant_id", "created_at"),
    )


class SettingORM(Base):
    __tablename__ = "settings"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), nullable=False)
    setting_key: Mapped[str] = mapped_column(String(50), nullable=False)
    setting_value: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("tenant_id", "setting_key", name="uq_settings__tenant_key"),
    )


class OrderORM(Base):
    __tablename__ = "orders"

    tenant_id: Mapped[str] = mapped_column(String(50), _tenant_fk(), nullable=False)
    order_no: Mapped[Optional[str]] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.NEW.value)
    items: Mapped[Any] = mapped_column(JSONType, nullable=False, default=list)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    updated_at: Mapped[datetime] = _updated_at()

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders__total_non_negative"),
        Index("ix_orders__tenant_status_created", "tenant_id", "status", "created_at"),
    )


# Declaration order doubles as foreign-key creation order
COLLECTION_MODELS: Dict[CollectionName, Type[Base]] = {
    CollectionName.TENANTS: TenantORM,
    CollectionName.DISHES: DishORM,
    CollectionName.RECOMMENDATIONS: RecommendationORM,
    CollectionName.MONITORING_CONFIGS: MonitoringConfigORM,
    CollectionName.ALERTS_HISTORY: AlertORM,
    CollectionName.SETTINGS: SettingORM,
    CollectionName.ORDERS: OrderORM,
}
