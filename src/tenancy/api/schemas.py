from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tenancy.domain.entities import DishSeed, ShopSetup, ShopUpdate


class DishSeedRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: int = Field(ge=0)
    name: str = Field(min_length=1, max_length=100)
    price: Decimal
    category: Optional[str] = None
    emoji: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ShopSetupRequest(BaseModel):
    """Onboarding document; `recommendDishes` lists source dish ids in display order."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    tenant_id: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
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
    dishes: List[DishSeedRequest] = Field(default_factory=list)
    recommend_dishes: Optional[List[int]] = Field(default=None, alias="recommendDishes")

    def to_domain(self) -> ShopSetup:
        fields = self.model_dump(exclude={"dishes", "recommend_dishes"})
        return ShopSetup(
            **fields,
            dishes=tuple(
                DishSeed(
                    id=d.id,
                    name=d.name,
                    price=d.price,
                    category=d.category,
                    emoji=d.emoji,
                    tags=tuple(d.tags),
                )
                for d in self.dishes
            ),
            recommend_dishes=tuple(self.recommend_dishes) if self.recommend_dishes is not None else None,
        )


class ShopUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    tenant_id: str = Field(min_length=1, alias="shopId")
    data: Dict[str, Any]

    def to_domain(self) -> ShopUpdate:
        return ShopUpdate(tenant_id=self.tenant_id, data=dict(self.data))


class BatchUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    updates: List[ShopUpdateRequest]


class FleetHealthRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tenant_ids: Optional[List[str]] = None


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    tenant_id: str
    alert_type: str
    alert_title: str
    alert_description: Optional[str] = None
    alert_data: Any = None
    acknowledged: bool
    acknowledged_at: Optional[datetime] = None
    created_at: datetime
