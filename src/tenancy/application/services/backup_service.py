from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.exceptions import BackingStoreUnavailable, TenantNotFound
from shared.infrastructure.observability.logger import get_logger
from shared.utils.clock import utcnow
from shared.utils.serialization import dumps, to_jsonable
from tenancy.domain.reports import BackupResult
from tenancy.infrastructure.tenant_store import TenantStore

logger = get_logger(__name__)


class BackupService:
    """
    Snapshots one tenant into a single portable JSON document:

        {"shop": {...}, "dishes": [...], "settings": [...], "recentOrders": [...]}

    The tenant row is required. Settings and orders are optional sections: a
    read failure there yields an empty list and the section name is recorded
    in `BackupResult.degraded`.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        recent_orders_limit: int = 100,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._session_factory = session_factory
        self._orders_limit = recent_orders_limit
        self._timeout = timeout_seconds

    async def _read(self, fn: Callable[[TenantStore], Awaitable[Any]]) -> Any:
        async def _run() -> Any:
            async with self._session_factory() as session:
                return await fn(TenantStore(session))

        try:
            return await asyncio.wait_for(_run(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise BackingStoreUnavailable(f"Backing store read timed out after {self._timeout}s") from e

    async def _read_optional(self, section: str, tenant_id: str, fn: Callable[[TenantStore], Awaitable[List[Any]]]) -> Optional[List[Any]]:
        try:
            return await self._read(fn)
        except Exception as e:
            logger.warning("Backup section degraded to empty", tenant_id=tenant_id, section=section, error=str(e))
            return None

    async def backup_shop(self, tenant_id: str) -> BackupResult:
        """
        Raises:
            TenantNotFound: the tenant row does not exist
            BackingStoreUnavailable: the tenant or dish read timed out
        """
        tenant = await self._read(lambda store: store.get_tenant(tenant_id))
        if tenant is None:
            raise TenantNotFound(f"Tenant {tenant_id!r} not found", details={"tenant_id": tenant_id})

        dishes = await self._read(lambda store: store.list_dishes(tenant_id))
        settings = await self._read_optional("settings", tenant_id, lambda store: store.list_settings(tenant_id))
        orders = await self._read_optional(
            "recentOrders", tenant_id, lambda store: store.list_recent_orders(tenant_id, limit=self._orders_limit)
        )

        degraded = tuple(name for name, rows in (("settings", settings), ("recentOrders", orders)) if rows is None)
        document: Dict[str, Any] = to_jsonable(
            {
                "shop": tenant.to_dict(),
                "dishes": [d.to_dict() for d in dishes],
                "settings": [s.to_dict() for s in settings or []],
                "recentOrders": [o.to_dict() for o in orders or []],
            }
        )
        content = dumps(document, indent=2)
        now = utcnow()

        logger.info(
            "Shop backed up",
            tenant_id=tenant_id,
            dishes=len(document["dishes"]),
            settings=len(document["settings"]),
            orders=len(document["recentOrders"]),
            degraded=list(degraded),
        )
        return BackupResult(
            filename=f"backup_{tenant_id}_{now.date().isoformat()}.json",
            data=content,
            size=len(content),
            timestamp=now.isoformat(),
            document=document,
            degraded=degraded,
        )
