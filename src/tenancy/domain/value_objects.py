from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


class CollectionName(str, Enum):
    """Logical record collections known to the schema registry."""
    TENANTS = "tenants"
    DISHES = "dishes"
    RECOMMENDATIONS = "recommendations"
    MONITORING_CONFIGS = "monitoring_configs"
    ALERTS_HISTORY = "alerts_history"
    SETTINGS = "settings"
    ORDERS = "orders"

    @classmethod
    def parse(cls, value: "str | CollectionName") -> Optional["CollectionName"]:
        try:
            return cls(value)
        except ValueError:
            return None


class AlertType(str, Enum):
    HEALTH_CHECK = "health_check"
    ORDER_OVERFLOW = "order_overflow"
    CONNECTION_LOST = "connection_lost"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "str | AlertType") -> "AlertType":
        """Unrecognised names map to UNKNOWN instead of failing."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class CheckStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


class AlertChannel(str, Enum):
    DASHBOARD = "dashboard"
    EMAIL = "email"
    SMS = "sms"
    WEBHOOK = "webhook"


class OrderStatus(str, Enum):
    NEW = "new"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StepStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class AlertRules:
    """
    Typed alert thresholds stored in monitoring_configs.alert_rules.

    max_waiting_time and check_interval are minutes. The bare default channel
    list is dashboard only; provisioning passes its configured list explicitly.
    """
    max_pending_orders: int = 10
    max_waiting_time: int = 30
    check_interval: int = 5
    alert_channels: Tuple[AlertChannel, ...] = (AlertChannel.DASHBOARD,)

    def __post_init__(self) -> None:
        for name in ("max_pending_orders", "max_waiting_time", "check_interval"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        # accept plain strings from JSON; unknown channel names raise ValueError
        object.__setattr__(
            self, "alert_channels", tuple(AlertChannel(c) for c in self.alert_channels)
        )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AlertRules":
        if not data:
            return cls()
        defaults = cls()
        return cls(
            max_pending_orders=int(data.get("max_pending_orders", defaults.max_pending_orders)),
            max_waiting_time=int(data.get("max_waiting_time", defaults.max_waiting_time)),
            check_interval=int(data.get("check_interval", defaults.check_interval)),
            alert_channels=tuple(data.get("alert_channels") or defaults.alert_channels),
        )

    @classmethod
    def with_channels(cls, channels: Sequence[str]) -> "AlertRules":
        return cls(alert_channels=tuple(channels))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_pending_orders": self.max_pending_orders,
            "max_waiting_time": self.max_waiting_time,
            "check_interval": self.check_interval,
            "alert_channels": [c.value for c in self.alert_channels],
        }


# Rows seeded into `settings` for every new tenant
DEFAULT_SHOP_SETTINGS: Tuple[Tuple[str, str], ...] = (
    ("sequence_prefix", "A"),
    ("sequence_counter", "1"),
    ("auto_refresh", "true"),
    ("notification_enabled", "true"),
)
