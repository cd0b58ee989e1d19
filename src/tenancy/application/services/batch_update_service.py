from __future__ import annotations

import asyncio
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from shared.infrastructure.observability.logger import get_logger
from shared.utils.concurrency import run_bounded
from tenancy.domain.entities import ShopUpdate, Tenant
from tenancy.domain.reports import BatchUpdateResult
from tenancy.infrastructure.tenant_store import TenantStore

logger = get_logger(__name__)


def _as_update(item: Union[ShopUpdate, Mapping[str, Any]]) -> ShopUpdate:
    if isinstance(item, ShopUpdate):
        return item
    tenant_id = item.get("tenant_id", item.get("shopId"))
    return ShopUpdate(tenant_id=str(tenant_id), data=dict(item.get("data") or {}))


class BatchUpdateService:
    """
    Applies partial tenant updates independently: each runs in its own
    transaction, one failure never blocks the others, nothing is rolled back
    across items. Results come back in input order.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        concurrency: int = 8,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._concurrency = concurrency
        self._timeout = timeout_seconds

    async def _apply(self, update: ShopUpdate) -> Tenant:
        async def _run() -> Tenant:
            async with SQLAlchemyUnitOfWork(self._session_factory) as uow:
                tenant = await TenantStore(uow.session).update_tenant(update.tenant_id, update.data)
                await uow.commit()
                return tenant

        return await asyncio.wait_for(_run(), timeout=self._timeout)

    async def batch_update_shops(
        self,
        updates: Sequence[Union[ShopUpdate, Mapping[str, Any]]],
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[BatchUpdateResult]:
        items = [_as_update(u) for u in updates]
        outcomes = await run_bounded(
            items, self._apply, concurrency=self._concurrency, cancel_event=cancel_event
        )

        results: List[BatchUpdateResult] = []
        for item, outcome in zip(items, outcomes):
            if outcome is None:
                results.append(BatchUpdateResult(item.tenant_id, success=False, error="cancelled", skipped=True))
            elif outcome.is_success():
                results.append(BatchUpdateResult(item.tenant_id, success=True))
            else:
                results.append(BatchUpdateResult(item.tenant_id, success=False, error=outcome.message))

        logger.info(
            "Batch shop update finished",
            total=len(results),
            succeeded=sum(1 for r in results if r.success),
            failed=[r.tenant_id for r in results if not r.success and not r.skipped],
            skipped=sum(1 for r in results if r.skipped),
        )
        return results
