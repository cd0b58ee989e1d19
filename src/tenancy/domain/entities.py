from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .value_objects import AlertRules


@dataclass(frozen=True, slots=True)
class Tenant:
    """
    A shop on the shared platform. Identity is `tenant_id`.

    Tenants are never physically deleted by this core; `is_active=False` is
    the soft-deactivated state. `admin_password` is passed through opaquely.
    """
    id: int
    tenant_id: str
    name: str
    slug: Optional[str]
    contact_name: Optional[str]
    contact_phone: Optional[str]
    contact_email: Optional[str]
    description: Optional[str]
    shop_type: Optional[str]
    theme_color: Optional[str]
    wechat_qr_url: Optional[str]
    alipay_qr_url: Optional[str]
    admin_password: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Dish:
    id: int
    tenant_id: str
    name: str
    price: Decimal
    category: Optional[str]
    emoji: Optional[str]
    tags: List[str]
    is_active: bool
    sort_order: int
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Recommendation:
    id: int
    tenant_id: str
    dish_id: int
    sort_order: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    id: int
    tenant_id: str
    shop_name: Optional[str]
    alert_rules: AlertRules
    is_active: bool
    created_at: datetime
    updated_at: datetime
    # false when the stored alert_rules did not parse and defaults are in use
    rules_valid: bool = True


@dataclass(frozen=True, slots=True)
class Alert:
    """Append-only; acknowledgement is the only mutation."""
    id: int
    tenant_id: str
    alert_type: str
    alert_title: str
    alert_description: Optional[str]
    alert_data: Any
    acknowledged: bool
    acknowledged_at: Optional[datetime]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Setting:
    id: int
    tenant_id: str
    setting_key: str
    setting_value: Optional[str]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Order:
    id: int
    tenant_id: str
    order_no: Optional[str]
    status: str
    items: Any
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --- Inputs -------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DishSeed:
    """A dish as supplied at onboarding; `id` is its position in the source menu."""
    id: int
    name: str
    price: Decimal
    category: Optional[str] = None
    emoji: Optional[str] = None
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ShopSetup:
    tenant_id: str
    name: str
    slug: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    description: Optional[str] = None
    shop_type: Optional[str] = None
    theme_color: Optional[str] = None
    wechat_qr_url: Optional[str] = None
    alipay_qr_url: Optional[str] = None
    admin_password: Optional[str] = None
    is_active: bool = True
    dishes: Tuple[DishSeed, ...] = ()
    recommend_dishes: Optional[Tuple[int, ...]] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ShopSetup":
        """Build from a loose onboarding document (accepts `recommendDishes` too)."""
        payload = dict(data)
        dishes = tuple(
            DishSeed(
                id=int(item["id"]),
                name=item["name"],
                price=Decimal(str(item["price"])),
                category=item.get("category"),
                emoji=item.get("emoji"),
                tags=tuple(item.get("tags") or ()),
            )
            for item in payload.pop("dishes", None) or ()
        )
        recommend = payload.pop("recommendDishes", None)
        recommend = payload.pop("recommend_dishes", recommend)
        return cls(
            dishes=dishes,
            recommend_dishes=tuple(int(x) for x in recommend) if recommend is not None else None,
            **payload,
        )

    def tenant_fields(self) -> Dict[str, Any]:
        """Columns of the tenant row; catalog data is excluded."""
        data = asdict(self)
        data.pop("dishes")
        data.pop("recommend_dishes")
        return data


@dataclass(frozen=True, slots=True)
class ShopUpdate:
    tenant_id: str
    data: Dict[str, Any] = field(default_factory=dict)
