from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.config import Settings, get_settings
from shared.infrastructure.database.session import DatabaseSessionFactory

from .application.services import (
    AlertDispatcher,
    BackupService,
    BatchUpdateService,
    HealthMonitor,
    ProvisioningOrchestrator,
)
from .infrastructure.schema_registry import SchemaRegistry


@dataclass
class TenancyContainer:
    """
    Explicit wiring of the tenancy components around one store handle.

    Build one per process (API app, worker, CLI) and pass it down; nothing
    reaches for a module-level connection.
    """

    settings: Settings
    database: DatabaseSessionFactory
    schema: SchemaRegistry
    alerts: AlertDispatcher
    provisioning: ProvisioningOrchestrator
    monitor: HealthMonitor
    backups: BackupService
    batch: BatchUpdateService

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        database: Optional[DatabaseSessionFactory] = None,
    ) -> "TenancyContainer":
        settings = settings or get_settings()
        database = database or DatabaseSessionFactory.from_settings(settings)
        sessions = database.session_factory
        timeout = settings.STORE_TIMEOUT_SECONDS

        alerts = AlertDispatcher(
            sessions,
            persist_attempts=settings.ALERT_PERSIST_ATTEMPTS,
            timeout_seconds=timeout,
        )
        return cls(
            settings=settings,
            database=database,
            schema=SchemaRegistry(database.engine),
            alerts=alerts,
            provisioning=ProvisioningOrchestrator(
                sessions,
                alert_channels=settings.DEFAULT_ALERT_CHANNELS,
                atomic=settings.PROVISIONING_ATOMIC,
                timeout_seconds=timeout,
            ),
            monitor=HealthMonitor(
                sessions,
                alerts,
                timeout_seconds=timeout,
                concurrency=settings.HEALTH_CHECK_CONCURRENCY,
            ),
            backups=BackupService(
                sessions,
                recent_orders_limit=settings.BACKUP_RECENT_ORDERS_LIMIT,
                timeout_seconds=timeout,
            ),
            batch=BatchUpdateService(
                sessions,
                concurrency=settings.BATCH_UPDATE_CONCURRENCY,
                timeout_seconds=timeout,
            ),
        )

    async def close(self) -> None:
        await self.database.dispose()
