from __future__ import annotations

import asyncio
from datetime import timedelta
from time import perf_counter
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.exceptions import CheckFailed
from shared.infrastructure.observability.logger import get_logger, log_context
from shared.utils.clock import as_utc, utcnow
from shared.utils.concurrency import run_bounded
from tenancy.domain.reports import FleetHealthReport, HealthCheckResult, HealthReport
from tenancy.domain.value_objects import AlertRules, AlertType, CheckStatus
from tenancy.infrastructure.tenant_store import TenantStore

from .alert_dispatcher import AlertDispatcher

logger = get_logger(__name__)

CheckFn = Callable[[str], Awaitable[HealthCheckResult]]


class HealthMonitor:
    """
    Per-tenant health checks.

    The three checks touch disjoint data and run concurrently, each in its own
    session and under its own timeout. A check that raises or times out is
    reported with status=error; it never aborts the other checks. Any
    non-healthy result produces a single health_check alert listing all of
    them.
    """

    ORDER_CHECK = "order_processing"
    CONNECTIVITY_CHECK = "connectivity"
    CONFIG_CHECK = "configuration"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        alerts: AlertDispatcher,
        *,
        timeout_seconds: float = 5.0,
        concurrency: int = 8,
    ) -> None:
        self._session_factory = session_factory
        self._alerts = alerts
        self._timeout = timeout_seconds
        self._concurrency = concurrency

    # ---------- individual checks ----------

    async def check_order_health(self, tenant_id: str) -> HealthCheckResult:
        async with self._session_factory() as session:
            store = TenantStore(session)
            config = await store.get_monitoring_config(tenant_id)
            pending = await store.list_pending_orders(tenant_id)

        rules = config.alert_rules if config is not None else AlertRules()
        threshold = timedelta(minutes=rules.max_waiting_time)
        now = utcnow()
        long_waiting = [o for o in pending if now - as_utc(o.created_at) > threshold]
        oldest = as_utc(pending[0].created_at) if pending else None

        return HealthCheckResult(
            check=self.ORDER_CHECK,
            status=CheckStatus.WARNING if long_waiting else CheckStatus.HEALTHY,
            details={
                "pendingOrders": len(pending),
                "longWaitingOrders": len(long_waiting),
                "oldestOrder": oldest.isoformat() if oldest else None,
                "thresholdMinutes": rules.max_waiting_time,
            },
        )

    async def ping_store(self) -> int:
        """Round-trip the backing store; returns the response time in ms."""
        t0 = perf_counter()
        async with self._session_factory() as session:
            await TenantStore(session).ping()
        return int((perf_counter() - t0) * 1000)

    async def check_connection_health(self, tenant_id: str) -> HealthCheckResult:
        return HealthCheckResult(
            check=self.CONNECTIVITY_CHECK,
            status=CheckStatus.HEALTHY,
            details={"responseTimeMs": await self.ping_store()},
        )

    async def check_config_health(self, tenant_id: str) -> HealthCheckResult:
        async with self._session_factory() as session:
            store = TenantStore(session)
            config = await store.get_monitoring_config(tenant_id)
            settings_count = await store.count_settings(tenant_id)

        missing: List[str] = []
        if config is None:
            missing.append("monitoring_config")
        if settings_count == 0:
            missing.append("settings")
        invalid = config is not None and not config.rules_valid
        return HealthCheckResult(
            check=self.CONFIG_CHECK,
            status=CheckStatus.WARNING if missing or invalid else CheckStatus.HEALTHY,
            details={
                "monitoringConfig": config is not None,
                "settingsCount": settings_count,
                "missing": missing,
                "invalidAlertRules": invalid,
            },
        )

    async def _guarded(self, name: str, fn: CheckFn, tenant_id: str) -> HealthCheckResult:
        try:
            return await asyncio.wait_for(fn(tenant_id), timeout=self._timeout)
        except asyncio.TimeoutError:
            error = CheckFailed(f"{name} timed out after {self._timeout}s")
        except Exception as e:
            error = CheckFailed(str(e) or e.__class__.__name__)
        logger.warning("Health check failed", tenant_id=tenant_id, check=name, error=error.message)
        return HealthCheckResult(check=name, status=CheckStatus.ERROR, details={"error": error.message})

    # ---------- composite ----------

    async def check_shop_health(self, tenant_id: str, *, require_tenant: bool = False) -> HealthReport:
        """
        Raises:
            TenantNotFound: only with `require_tenant=True`, before any check runs
        """
        if require_tenant:
            async with self._session_factory() as session:
                await TenantStore(session).require_tenant(tenant_id)

        with log_context(tenant_id=tenant_id):
            checks = await asyncio.gather(
                self._guarded(self.ORDER_CHECK, self.check_order_health, tenant_id),
                self._guarded(self.CONNECTIVITY_CHECK, self.check_connection_health, tenant_id),
                self._guarded(self.CONFIG_CHECK, self.check_config_health, tenant_id),
            )
        problems = [c for c in checks if not c.is_healthy]
        overall = CheckStatus.WARNING if problems else CheckStatus.HEALTHY

        alert_id: Optional[int] = None
        if problems:
            alert = await self._alerts.create_alert(
                tenant_id, AlertType.HEALTH_CHECK, [p.to_dict() for p in problems]
            )
            alert_id = alert.id if alert is not None else None

        logger.info(
            "Shop health checked",
            tenant_id=tenant_id,
            overall_status=overall.value,
            problems=[p.check for p in problems],
        )
        return HealthReport(
            tenant_id=tenant_id,
            timestamp=utcnow().isoformat(),
            checks=tuple(checks),
            overall_status=overall,
            alert_id=alert_id,
        )

    async def check_all_shops(
        self,
        tenant_ids: Optional[Sequence[str]] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FleetHealthReport:
        """
        Health-check many tenants through a bounded pool (all active tenants by default).

        Setting `cancel_event` stops new tenants from being scheduled; tenants
        already in flight finish and are included in the report.
        """
        if tenant_ids is None:
            async with self._session_factory() as session:
                tenant_ids = await TenantStore(session).list_tenant_ids(active_only=True)

        outcomes = await run_bounded(
            list(tenant_ids),
            self.check_shop_health,
            concurrency=self._concurrency,
            cancel_event=cancel_event,
        )

        reports: List[HealthReport] = []
        failed: Dict[str, str] = {}
        skipped: List[str] = []
        for tenant_id, outcome in zip(tenant_ids, outcomes):
            if outcome is None:
                skipped.append(tenant_id)
            elif outcome.is_success():
                reports.append(outcome.value)
            else:
                failed[tenant_id] = outcome.message

        if skipped:
            logger.warning("Fleet health pass cancelled", checked=len(reports), skipped=len(skipped))
        return FleetHealthReport(reports=tuple(reports), failed=failed, skipped=tuple(skipped))
