import asyncio

import pytest
from sqlalchemy import update

from shared.exceptions import TenantNotFound
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from tenancy.application.services import AlertDispatcher, HealthMonitor
from tenancy.domain.value_objects import AlertType, CheckStatus
from tenancy.infrastructure.models import MonitoringConfigORM
from tenancy.infrastructure.tenant_store import TenantStore


async def _alerts(database, tenant_id):
    async with database.get_session() as session:
        return await TenantStore(session).list_alerts(tenant_id)


async def _store_alert_rules(database, tenant_id, rules):
    async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
        await uow.session.execute(
            update(MonitoringConfigORM).where(MonitoringConfigORM.tenant_id == tenant_id).values(alert_rules=rules)
        )
        await uow.commit()


async def test_freshly_provisioned_shop_is_healthy(container, provisioned, database):
    report = await container.monitor.check_shop_health(provisioned)

    assert report.overall_status is CheckStatus.HEALTHY
    assert [c.check for c in report.checks] == ["order_processing", "connectivity", "configuration"]
    assert all(c.status is CheckStatus.HEALTHY for c in report.checks)
    assert report.alert_id is None
    assert await _alerts(database, provisioned) == []


async def test_long_waiting_order_raises_single_health_alert(container, provisioned, add_order, database):
    await add_order(provisioned, minutes_ago=40)
    await add_order(provisioned, minutes_ago=2)

    report = await container.monitor.check_shop_health(provisioned)

    orders = report.check("order_processing")
    assert orders.status is CheckStatus.WARNING
    assert orders.details["pendingOrders"] == 2
    assert orders.details["longWaitingOrders"] == 1
    assert orders.details["thresholdMinutes"] == 30
    assert orders.details["oldestOrder"] is not None
    assert report.overall_status is CheckStatus.WARNING

    alerts = await _alerts(database, provisioned)
    assert len(alerts) == 1
    assert alerts[0].id == report.alert_id
    assert alerts[0].alert_type == AlertType.HEALTH_CHECK.value
    assert alerts[0].alert_data == [orders.to_dict()]
    assert alerts[0].alert_description.endswith(f" - {provisioned}")


async def test_orders_inside_threshold_are_healthy(container, provisioned, add_order):
    await add_order(provisioned, minutes_ago=20)

    report = await container.monitor.check_shop_health(provisioned)

    assert report.check("order_processing").status is CheckStatus.HEALTHY
    assert report.check("order_processing").details["longWaitingOrders"] == 0


async def test_waiting_threshold_comes_from_shop_alert_rules(container, provisioned, add_order, database):
    await _store_alert_rules(database, provisioned, {"max_waiting_time": 10})
    await add_order(provisioned, minutes_ago=20)

    report = await container.monitor.check_shop_health(provisioned)

    orders = report.check("order_processing")
    assert orders.status is CheckStatus.WARNING
    assert orders.details["thresholdMinutes"] == 10
    assert orders.details["longWaitingOrders"] == 1


async def test_unparseable_alert_rules_fall_back_to_defaults(container, provisioned, add_order, database):
    await _store_alert_rules(database, provisioned, {"max_waiting_time": 0, "alert_channels": ["pager"]})
    await add_order(provisioned, minutes_ago=40)

    report = await container.monitor.check_shop_health(provisioned)

    orders = report.check("order_processing")
    assert orders.status is CheckStatus.WARNING
    assert orders.details["thresholdMinutes"] == 30
    assert orders.details["longWaitingOrders"] == 1

    config = report.check("configuration")
    assert config.status is CheckStatus.WARNING
    assert config.details["invalidAlertRules"] is True
    assert config.details["missing"] == []


async def test_missing_configuration_is_a_warning(container, database):
    async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
        await TenantStore(uow.session).create_tenant({"tenant_id": "half_shop", "name": "Half"})
        await uow.commit()

    report = await container.monitor.check_shop_health("half_shop")

    config = report.check("configuration")
    assert config.status is CheckStatus.WARNING
    assert config.details["missing"] == ["monitoring_config", "settings"]
    assert report.alert_id is not None


async def test_failing_check_reports_error_and_others_still_run(container, provisioned, monkeypatch):
    async def broken(tenant_id):
        raise RuntimeError("config store exploded")

    monkeypatch.setattr(container.monitor, "check_config_health", broken)
    report = await container.monitor.check_shop_health(provisioned)

    config = report.check("configuration")
    assert config.status is CheckStatus.ERROR
    assert "exploded" in config.details["error"]
    assert report.check("order_processing").status is CheckStatus.HEALTHY
    assert report.check("connectivity").status is CheckStatus.HEALTHY
    assert report.overall_status is CheckStatus.WARNING


async def test_slow_check_times_out_as_error(database, provisioned, monkeypatch):
    alerts = AlertDispatcher(database.session_factory, persist_attempts=1)
    monitor = HealthMonitor(database.session_factory, alerts, timeout_seconds=0.05)

    async def slow(tenant_id):
        await asyncio.sleep(1)

    monkeypatch.setattr(monitor, "check_order_health", slow)
    report = await monitor.check_shop_health(provisioned)

    orders = report.check("order_processing")
    assert orders.status is CheckStatus.ERROR
    assert "timed out" in orders.details["error"]
    assert report.check("configuration").status is CheckStatus.HEALTHY


async def test_require_tenant(container):
    with pytest.raises(TenantNotFound):
        await container.monitor.check_shop_health("nobody", require_tenant=True)


async def test_fleet_pass_covers_active_shops(container, database, add_order, make_shop):
    for tenant_id in ("fleet_a", "fleet_b", "fleet_c"):
        assert (await container.provisioning.setup_new_shop(make_shop(tenant_id))).success
    await add_order("fleet_b", minutes_ago=45)
    async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
        await TenantStore(uow.session).deactivate_tenant("fleet_c")
        await uow.commit()

    fleet = await container.monitor.check_all_shops()

    assert [r.tenant_id for r in fleet.reports] == ["fleet_a", "fleet_b"]
    assert fleet.failed == {}
    assert fleet.cancelled is False
    status = {r.tenant_id: r.overall_status for r in fleet.reports}
    assert status == {"fleet_a": CheckStatus.HEALTHY, "fleet_b": CheckStatus.WARNING}


async def test_fleet_pass_honours_cancellation(container, provisioned):
    cancel = asyncio.Event()
    cancel.set()

    fleet = await container.monitor.check_all_shops([provisioned, "other"], cancel_event=cancel)

    assert fleet.reports == ()
    assert fleet.skipped == (provisioned, "other")
    assert fleet.cancelled is True
