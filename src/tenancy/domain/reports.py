"""
Result documents returned by the tenancy services.

Every orchestration entry point returns one of these instead of raising, so
partial failures are always visible to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .value_objects import CheckStatus, StepStatus


@dataclass(frozen=True, slots=True)
class CollectionOutcome:
    name: str
    status: StepStatus
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.message:
            data["message"] = self.message
        return data


@dataclass(frozen=True, slots=True)
class StepResult:
    step: str
    status: StepStatus
    error: Optional[str] = None
    rows: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "status": self.status.value, "error": self.error, "rows": self.rows}


@dataclass(frozen=True, slots=True)
class ProvisioningReport:
    success: bool
    tenant_id: str
    steps: Tuple[StepResult, ...]
    error: Optional[str] = None
    error_code: Optional[str] = None
    rolled_back: bool = False

    @property
    def failed_step(self) -> Optional[str]:
        for step in self.steps:
            if step.status is StepStatus.ERROR:
                return step.step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "tenantId": self.tenant_id,
            "error": self.error,
            "errorCode": self.error_code,
            "rolledBack": self.rolled_back,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True, slots=True)
class HealthCheckResult:
    check: str
    status: CheckStatus
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status is CheckStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {"check": self.check, "status": self.status.value, "details": self.details}


@dataclass(frozen=True, slots=True)
class HealthReport:
    tenant_id: str
    timestamp: str
    checks: Tuple[HealthCheckResult, ...]
    overall_status: CheckStatus
    alert_id: Optional[int] = None

    @property
    def problems(self) -> List[HealthCheckResult]:
        return [c for c in self.checks if not c.is_healthy]

    def check(self, name: str) -> Optional[HealthCheckResult]:
        return next((c for c in self.checks if c.check == name), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "timestamp": self.timestamp,
            "checks": [c.to_dict() for c in self.checks],
            "overallStatus": self.overall_status.value,
        }


@dataclass(frozen=True, slots=True)
class FleetHealthReport:
    reports: Tuple[HealthReport, ...]
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: Tuple[str, ...] = ()

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reports": [r.to_dict() for r in self.reports],
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
        }


@dataclass(frozen=True, slots=True)
class BatchUpdateResult:
    tenant_id: str
    success: bool
    error: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"tenantId": self.tenant_id, "success": self.success, "error": self.error, "skipped": self.skipped}


@dataclass(frozen=True, slots=True)
class BackupResult:
    filename: str
    data: str
    size: int
    timestamp: str
    document: Dict[str, Any]
    degraded: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "data": self.data,
            "size": self.size,
            "timestamp": self.timestamp,
            "degraded": list(self.degraded),
        }
