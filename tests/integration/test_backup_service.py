import re
from decimal import Decimal

import pytest

from shared.exceptions import TenantNotFound
from shared.utils.serialization import loads
from tenancy.application.services import BackupService
from tenancy.infrastructure.tenant_store import TenantStore


async def test_backup_contains_every_section(container, provisioned, add_order):
    await add_order(provisioned, minutes_ago=10, order_no="A001")
    await add_order(provisioned, minutes_ago=1, order_no="A002")

    backup = await container.backups.backup_shop(provisioned)

    assert re.fullmatch(rf"backup_{provisioned}_\d{{4}}-\d{{2}}-\d{{2}}\.json", backup.filename)
    assert backup.size == len(backup.data)
    assert backup.degraded == ()

    document = loads(backup.data)
    assert document == backup.document
    assert set(document) == {"shop", "dishes", "settings", "recentOrders"}
    assert document["shop"]["tenant_id"] == provisioned
    assert len(document["dishes"]) == 3
    assert len(document["settings"]) == 4
    assert [o["order_no"] for o in document["recentOrders"]] == ["A002", "A001"]
    assert Decimal(document["dishes"][0]["price"]) == Decimal("18.50")


async def test_recent_orders_are_capped(database, provisioned, add_order):
    for minutes in (30, 20, 10):
        await add_order(provisioned, minutes_ago=minutes, order_no=f"N{minutes}")

    backup = await BackupService(database.session_factory, recent_orders_limit=2).backup_shop(provisioned)

    assert [o["order_no"] for o in backup.document["recentOrders"]] == ["N10", "N20"]


async def test_missing_tenant_is_an_error(container):
    with pytest.raises(TenantNotFound):
        await container.backups.backup_shop("nobody")


async def test_optional_section_failure_degrades_to_empty(container, provisioned, monkeypatch):
    async def broken(self, tenant_id):
        raise RuntimeError("settings unavailable")

    monkeypatch.setattr(TenantStore, "list_settings", broken)
    backup = await container.backups.backup_shop(provisioned)

    assert backup.degraded == ("settings",)
    assert backup.document["settings"] == []
    assert len(backup.document["dishes"]) == 3
    assert backup.to_dict()["degraded"] == ["settings"]
