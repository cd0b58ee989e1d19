"""
Tenant Store
Session-scoped CRUD over the tenancy collections. No business rules live here;
callers own the transaction (see SQLAlchemyUnitOfWork).
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import BackingStoreUnavailable, NotFoundError, TenantNotFound, UniquenessViolation, ValidationError
from shared.infrastructure.observability.logger import get_logger
from shared.utils.clock import utcnow
from tenancy.domain.entities import (
    Alert,
    Dish,
    DishSeed,
    MonitoringConfig,
    Order,
    Recommendation,
    Setting,
    Tenant,
)
from tenancy.domain.value_objects import AlertRules, OrderStatus

from .models import (
    AlertORM,
    DishORM,
    MonitoringConfigORM,
    OrderORM,
    RecommendationORM,
    SettingORM,
    TenantORM,
)

logger = get_logger(__name__)

TENANT_COLUMNS: Tuple[str, ...] = (
    "tenant_id",
    "name",
    "slug",
    "contact_name",
    "contact_phone",
    "contact_email",
    "description",
    "shop_type",
    "theme_color",
    "wechat_qr_url",
    "alipay_qr_url",
    "admin_password",
    "is_active",
)

# tenant_id is the identity and never changes after provisioning
UPDATABLE_TENANT_COLUMNS = frozenset(TENANT_COLUMNS) - {"tenant_id"}


def _is_unique_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "sqlstate", None) == "23505":
        return True
    msg = str(exc.orig).lower()
    return "unique" in msg or "duplicate key" in msg


# --- mappers -----------------------------------------------------------------

def _tenant(row: TenantORM) -> Tenant:
    return Tenant(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        slug=row.slug,
        contact_name=row.contact_name,
        contact_phone=row.contact_phone,
        contact_email=row.contact_email,
        description=row.description,
        shop_type=row.shop_type,
        theme_color=row.theme_color,
        wechat_qr_url=row.wechat_qr_url,
        alipay_qr_url=row.alipay_qr_url,
        admin_password=row.admin_password,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _dish(row: DishORM) -> Dish:
    return Dish(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        price=Decimal(row.price),
        category=row.category,
        emoji=row.emoji,
        tags=list(row.tags or []),
        is_active=row.is_active,
        sort_order=row.sort_order,
        created_at=row.created_at,
    )


def _recommendation(row: RecommendationORM) -> Recommendation:
    return Recommendation(
        id=row.id,
        tenant_id=row.tenant_id,
        dish_id=row.dish_id,
        sort_order=row.sort_order,
        created_at=row.created_at,
    )


def _monitoring_config(row: MonitoringConfigORM) -> MonitoringConfig:
    rules_valid = True
    try:
        rules = AlertRules.from_dict(row.alert_rules)
    except (TypeError, ValueError) as e:
        logger.warning("Stored alert rules are invalid, using defaults", tenant_id=row.tenant_id, error=str(e))
        rules, rules_valid = AlertRules(), False
    return MonitoringConfig(
        id=row.id,
        tenant_id=row.tenant_id,
        shop_name=row.shop_name,
        alert_rules=rules,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
        rules_valid=rules_valid,
    )


def _alert(row: AlertORM) -> Alert:
    return Alert(
        id=row.id,
        tenant_id=row.tenant_id,
        alert_type=row.alert_type,
        alert_title=row.alert_title,
        alert_description=row.alert_description,
        alert_data=row.alert_data,
        acknowledged=row.acknowledged,
        acknowledged_at=row.acknowledged_at,
        created_at=row.created_at,
    )


def _setting(row: SettingORM) -> Setting:
    return Setting(
        id=row.id,
        tenant_id=row.tenant_id,
        setting_key=row.setting_key,
        setting_value=row.setting_value,
        created_at=row.created_at,
    )


def _order(row: OrderORM) -> Order:
    return Order(
        id=row.id,
        tenant_id=row.tenant_id,
        order_no=row.order_no,
        status=row.status,
        items=row.items,
        total_amount=Decimal(row.total_amount),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TenantStore:
    """
    Async store over tenants, dishes, recommendations, monitoring configs,
    alerts, settings and orders.

    Writes are flushed, not committed. Unique-constraint failures surface as
    UniquenessViolation and never overwrite the existing row.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _flush(self, what: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise UniquenessViolation(f"{what} already exists", details={"error": str(e.orig)}) from e
            raise

    # ---------- connectivity ----------

    async def ping(self) -> None:
        try:
            result = await self.session.execute(text("SELECT 1"))
            if result.scalar() != 1:
                raise BackingStoreUnavailable("Backing store returned an unexpected health result")
        except (DBAPIError, OSError) as e:
            raise BackingStoreUnavailable(f"Backing store unreachable: {e}") from e

    # ---------- tenants ----------

    async def create_tenant(self, fields: Mapping[str, Any]) -> Tenant:
        unknown = set(fields) - set(TENANT_COLUMNS)
        if unknown:
            raise ValidationError("Unknown tenant fields", details={"fields": sorted(unknown)})
        if not fields.get("tenant_id") or not fields.get("name"):
            raise ValidationError("tenant_id and name are required")

        row = TenantORM(**dict(fields))
        self.session.add(row)
        await self._flush(f"tenant {fields['tenant_id']!r}")
        return _tenant(row)

    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        row = await self.session.scalar(select(TenantORM).where(TenantORM.tenant_id == tenant_id))
        return _tenant(row) if row is not None else None

    async def require_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFound(f"Tenant {tenant_id!r} not found", details={"tenant_id": tenant_id})
        return tenant

    async def list_tenant_ids(self, *, active_only: bool = True) -> List[str]:
        stmt = select(TenantORM.tenant_id).order_by(TenantORM.id)
        if active_only:
            stmt = stmt.where(TenantORM.is_active.is_(True))
        return list((await self.session.scalars(stmt)).all())

    async def update_tenant(self, tenant_id: str, data: Mapping[str, Any]) -> Tenant:
        if not data:
            raise ValidationError("No fields to update", details={"tenant_id": tenant_id})
        unknown = set(data) - UPDATABLE_TENANT_COLUMNS
        if unknown:
            raise ValidationError("Fields cannot be updated", details={"fields": sorted(unknown)})

        result = await self.session.execute(
            update(TenantORM)
            .where(TenantORM.tenant_id == tenant_id)
            .values(**dict(data), updated_at=utcnow())
        )
        if result.rowcount == 0:
            raise TenantNotFound(f"Tenant {tenant_id!r} not found", details={"tenant_id": tenant_id})
        await self._flush(f"tenant {tenant_id!r}")
        return await self.require_tenant(tenant_id)

    async def deactivate_tenant(self, tenant_id: str) -> Tenant:
        return await self.update_tenant(tenant_id, {"is_active": False})

    # ---------- settings ----------

    async def seed_settings(self, tenant_id: str, pairs: Iterable[Tuple[str, str]]) -> List[Setting]:
        rows = [SettingORM(tenant_id=tenant_id, setting_key=k, setting_value=v) for k, v in pairs]
        self.session.add_all(rows)
        await self._flush(f"settings for {tenant_id!r}")
        return [_setting(r) for r in rows]

    async def list_settings(self, tenant_id: str) -> List[Setting]:
        rows = await self.session.scalars(
            select(SettingORM).where(SettingORM.tenant_id == tenant_id).order_by(SettingORM.id)
        )
        return [_setting(r) for r in rows]

    async def count_settings(self, tenant_id: str) -> int:
        stmt = select(func.count()).select_from(SettingORM).where(SettingORM.tenant_id == tenant_id)
        return int(await self.session.scalar(stmt) or 0)

    # ---------- dishes ----------

    async def add_dishes(self, tenant_id: str, seeds: Sequence[DishSeed]) -> List[Dish]:
        rows = [
            DishORM(
                tenant_id=tenant_id,
                name=seed.name,
                price=seed.price,
                category=seed.category,
                emoji=seed.emoji,
                tags=list(seed.tags),
                sort_order=seed.id,
            )
            for seed in seeds
        ]
        self.session.add_all(rows)
        await self._flush(f"dishes for {tenant_id!r}")
        return [_dish(r) for r in rows]

    async def list_dishes(self, tenant_id: str, *, active_only: bool = False) -> List[Dish]:
        stmt = select(DishORM).where(DishORM.tenant_id == tenant_id).order_by(DishORM.sort_order, DishORM.id)
        if active_only:
            stmt = stmt.where(DishORM.is_active.is_(True))
        return [_dish(r) for r in await self.session.scalars(stmt)]

    # ---------- recommendations ----------

    async def add_recommendations(self, tenant_id: str, dish_ids: Sequence[int]) -> List[Recommendation]:
        rows = [
            RecommendationORM(tenant_id=tenant_id, dish_id=dish_id, sort_order=position)
            for position, dish_id in enumerate(dish_ids, start=1)
        ]
        self.session.add_all(rows)
        await self._flush(f"recommendation for {tenant_id!r}")
        return [_recommendation(r) for r in rows]

    async def list_recommendations(self, tenant_id: str) -> List[Recommendation]:
        rows = await self.session.scalars(
            select(RecommendationORM)
            .where(RecommendationORM.tenant_id == tenant_id)
            .order_by(RecommendationORM.sort_order)
        )
        return [_recommendation(r) for r in rows]

    # ---------- monitoring configs ----------

    async def create_monitoring_config(
        self, tenant_id: str, shop_name: Optional[str], rules: AlertRules
    ) -> MonitoringConfig:
        row = MonitoringConfigORM(tenant_id=tenant_id, shop_name=shop_name, alert_rules=rules.to_dict())
        self.session.add(row)
        await self._flush(f"monitoring config for {tenant_id!r}")
        return _monitoring_config(row)

    async def get_monitoring_config(self, tenant_id: str) -> Optional[MonitoringConfig]:
        row = await self.session.scalar(
            select(MonitoringConfigORM).where(MonitoringConfigORM.tenant_id == tenant_id)
        )
        return _monitoring_config(row) if row is not None else None

    # ---------- alerts ----------

    async def add_alert(
        self,
        tenant_id: str,
        *,
        alert_type: str,
        title: str,
        description: Optional[str],
        data: Any,
    ) -> Alert:
        row = AlertORM(
            tenant_id=tenant_id,
            alert_type=alert_type,
            alert_title=title,
            alert_description=description,
            alert_data=data,
            acknowledged=False,
        )
        self.session.add(row)
        await self._flush(f"alert for {tenant_id!r}")
        return _alert(row)

    async def acknowledge_alert(self, alert_id: int) -> Alert:
        row = await self.session.get(AlertORM, alert_id)
        if row is None:
            raise NotFoundError(f"Alert {alert_id} not found", code="alert_not_found")
        if not row.acknowledged:
            row.acknowledged = True
            row.acknowledged_at = utcnow()
            await self._flush(f"alert {alert_id}")
        return _alert(row)

    async def list_alerts(self, tenant_id: str, *, unacknowledged_only: bool = False) -> List[Alert]:
        stmt = select(AlertORM).where(AlertORM.tenant_id == tenant_id).order_by(AlertORM.id.desc())
        if unacknowledged_only:
            stmt = stmt.where(AlertORM.acknowledged.is_(False))
        return [_alert(r) for r in await self.session.scalars(stmt)]

    # ---------- orders ----------

    async def add_order(
        self,
        tenant_id: str,
        *,
        order_no: Optional[str] = None,
        status: OrderStatus = OrderStatus.NEW,
        items: Optional[List[Dict[str, Any]]] = None,
        total_amount: Decimal = Decimal("0"),
        created_at: Optional[Any] = None,
    ) -> Order:
        row = OrderORM(
            tenant_id=tenant_id,
            order_no=order_no,
            status=status.value,
            items=items or [],
            total_amount=total_amount,
        )
        if created_at is not None:
            row.created_at = created_at
        self.session.add(row)
        await self._flush(f"order for {tenant_id!r}")
        return _order(row)

    async def list_pending_orders(self, tenant_id: str) -> List[Order]:
        rows = await self.session.scalars(
            select(OrderORM)
            .where(OrderORM.tenant_id == tenant_id, OrderORM.status == OrderStatus.NEW.value)
            .order_by(OrderORM.created_at.asc(), OrderORM.id.asc())
        )
        return [_order(r) for r in rows]

    async def list_recent_orders(self, tenant_id: str, *, limit: int = 100) -> List[Order]:
        rows = await self.session.scalars(
            select(OrderORM)
            .where(OrderORM.tenant_id == tenant_id)
            .order_by(OrderORM.created_at.desc(), OrderORM.id.desc())
            .limit(limit)
        )
        return [_order(r) for r in rows]
