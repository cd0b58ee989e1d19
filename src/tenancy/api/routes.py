from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from tenancy.container import TenancyContainer
from tenancy.domain.reports import CollectionOutcome
from tenancy.domain.value_objects import StepStatus

from .schemas import AlertResponse, BatchUpdateRequest, FleetHealthRequest, ShopSetupRequest

router = APIRouter(prefix="/api/v1/tenancy", tags=["tenancy"])


def get_container(request: Request) -> TenancyContainer:
    return request.app.state.tenancy


def _outcomes(outcomes: List[CollectionOutcome]) -> Dict[str, Any]:
    return {
        "success": all(o.status is StepStatus.SUCCESS for o in outcomes),
        "collections": [o.to_dict() for o in outcomes],
    }


@router.post("/database/init")
async def init_database(container: TenancyContainer = Depends(get_container)):
    return _outcomes(await container.schema.initialize_database())


@router.post("/shops", status_code=status.HTTP_201_CREATED)
async def setup_shop(
    payload: ShopSetupRequest,
    response: Response,
    container: TenancyContainer = Depends(get_container),
):
    """
    Provision a shop. The body always carries per-step outcomes. A shop whose
    tenant row could not be created answers 409; a failure in a later step
    answers 500.
    """
    report = await container.provisioning.setup_new_shop(payload.to_domain())
    if not report.success:
        response.status_code = (
            status.HTTP_409_CONFLICT
            if report.failed_step in (None, "create_tenant")
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return report.to_dict()


@router.patch("/shops/batch")
async def batch_update_shops(payload: BatchUpdateRequest, container: TenancyContainer = Depends(get_container)):
    results = await container.batch.batch_update_shops([u.to_domain() for u in payload.updates])
    return {"results": [r.to_dict() for r in results]}


@router.get("/shops/{tenant_id}/health")
async def shop_health(tenant_id: str, container: TenancyContainer = Depends(get_container)):
    report = await container.monitor.check_shop_health(tenant_id, require_tenant=True)
    return {**report.to_dict(), "alertId": report.alert_id}


@router.post("/shops/health")
async def fleet_health(
    payload: Optional[FleetHealthRequest] = None,
    container: TenancyContainer = Depends(get_container),
):
    tenant_ids = payload.tenant_ids if payload is not None else None
    return (await container.monitor.check_all_shops(tenant_ids)).to_dict()


@router.get("/shops/{tenant_id}/backup")
async def backup_shop(tenant_id: str, container: TenancyContainer = Depends(get_container)):
    return (await container.backups.backup_shop(tenant_id)).to_dict()


@router.get("/shops/{tenant_id}/alerts", response_model=List[AlertResponse])
async def list_alerts(
    tenant_id: str,
    unacknowledged: bool = Query(default=False),
    container: TenancyContainer = Depends(get_container),
):
    return await container.alerts.list_alerts(tenant_id, unacknowledged_only=unacknowledged)


@router.post("/alerts/{alert_id}/ack", response_model=AlertResponse)
async def acknowledge_alert(alert_id: int, container: TenancyContainer = Depends(get_container)):
    return await container.alerts.acknowledge_alert(alert_id)


@router.get("/_health/db")
async def db_health(container: TenancyContainer = Depends(get_container)):
    return {"status": "ok", "responseTimeMs": await container.monitor.ping_store()}
