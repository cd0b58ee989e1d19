from typing import Optional

from shared.infrastructure.observability.logger import get_logger
from tenancy.application.services.health_monitor import HealthMonitor
from tenancy.domain.reports import FleetHealthReport
from workers.base_worker import BaseWorker

logger = get_logger(__name__)


class HealthCheckWorker(BaseWorker):
    """Runs the fleet health pass over all active shops on an interval."""

    def __init__(self, monitor: HealthMonitor, interval: float = 300):
        super().__init__(worker_name="health_check", interval=interval)
        self.monitor = monitor
        self.last_report: Optional[FleetHealthReport] = None

    async def execute(self) -> bool:
        report = await self.monitor.check_all_shops(cancel_event=self.shutdown_event)
        self.last_report = report

        unhealthy = [r.tenant_id for r in report.reports if r.problems]
        if report.failed or unhealthy:
            logger.warning(
                "Fleet health pass found problems",
                checked=len(report.reports),
                unhealthy=unhealthy,
                failed=list(report.failed),
                skipped=len(report.skipped),
            )
        else:
            logger.info("All shops healthy", checked=len(report.reports))
        return not report.failed
