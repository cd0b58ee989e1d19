from .alert_dispatcher import ALERT_TEMPLATES, AlertDispatcher, AlertTemplate
from .backup_service import BackupService
from .batch_update_service import BatchUpdateService
from .health_monitor import HealthMonitor
from .provisioning_service import ProvisioningOrchestrator, ProvisioningStep

__all__ = [
    "ALERT_TEMPLATES",
    "AlertDispatcher",
    "AlertTemplate",
    "BackupService",
    "BatchUpdateService",
    "HealthMonitor",
    "ProvisioningOrchestrator",
    "ProvisioningStep",
]
