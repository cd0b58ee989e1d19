from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.exceptions import AlertPersistFailed
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from shared.infrastructure.observability.logger import get_logger
from shared.utils.retry import retry
from shared.utils.serialization import to_jsonable
from tenancy.domain.entities import Alert
from tenancy.domain.value_objects import AlertType
from tenancy.infrastructure.tenant_store import TenantStore

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AlertTemplate:
    title: str
    description: str


ALERT_TEMPLATES: Dict[AlertType, AlertTemplate] = {
    AlertType.HEALTH_CHECK: AlertTemplate(
        title="System health check failed",
        description="Detected an abnormal configuration or runtime state",
    ),
    AlertType.ORDER_OVERFLOW: AlertTemplate(
        title="Order backlog alert",
        description="Pending orders exceed the configured threshold",
    ),
    AlertType.CONNECTION_LOST: AlertTemplate(
        title="Backing store connection lost",
        description="Unable to reach the backing store",
    ),
    AlertType.UNKNOWN: AlertTemplate(
        title="System alert",
        description="Detected a system anomaly",
    ),
}


class AlertDispatcher:
    """
    Turns detected problems into persisted alert rows.

    create_alert never raises: alerting must not fail the monitoring pass
    that triggered it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        persist_attempts: int = 2,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._attempts = persist_attempts
        self._timeout = timeout_seconds

    @staticmethod
    def template_for(alert_type: Union[str, AlertType]) -> AlertTemplate:
        return ALERT_TEMPLATES[AlertType.parse(alert_type)]

    async def create_alert(
        self,
        tenant_id: str,
        alert_type: Union[str, AlertType],
        payload: Any,
    ) -> Optional[Alert]:
        raw_type = alert_type.value if isinstance(alert_type, AlertType) else str(alert_type)
        resolved = AlertType.parse(raw_type)
        if resolved is AlertType.UNKNOWN and raw_type != AlertType.UNKNOWN.value:
            logger.warning("Unrecognised alert type, using generic template", tenant_id=tenant_id, alert_type=raw_type)
        template = ALERT_TEMPLATES[resolved]

        async def _persist() -> Alert:
            async with SQLAlchemyUnitOfWork(self._session_factory) as uow:
                alert = await TenantStore(uow.session).add_alert(
                    tenant_id,
                    alert_type=raw_type,
                    title=template.title,
                    description=f"{template.description} - {tenant_id}",
                    data=to_jsonable(payload),
                )
                await uow.commit()
                return alert

        try:
            alert = await retry(
                lambda: asyncio.wait_for(_persist(), timeout=self._timeout),
                attempts=self._attempts,
                # a timed-out commit may still land, so only connection errors are retried
                retry_on=(OperationalError, OSError),
            )
        except Exception as e:
            failure = AlertPersistFailed(
                f"Failed to persist {raw_type} alert",
                details={"tenant_id": tenant_id, "error": str(e)},
            )
            logger.error(failure.message, code=failure.code, **(failure.details or {}))
            return None

        logger.info("Alert created", tenant_id=tenant_id, alert_type=raw_type, alert_id=alert.id)
        return alert

    async def acknowledge_alert(self, alert_id: int) -> Alert:
        async with SQLAlchemyUnitOfWork(self._session_factory) as uow:
            alert = await TenantStore(uow.session).acknowledge_alert(alert_id)
            await uow.commit()
        logger.info("Alert acknowledged", alert_id=alert_id, tenant_id=alert.tenant_id)
        return alert

    async def list_alerts(self, tenant_id: str, *, unacknowledged_only: bool = False) -> List[Alert]:
        async with self._session_factory() as session:
            return await TenantStore(session).list_alerts(tenant_id, unacknowledged_only=unacknowledged_only)
