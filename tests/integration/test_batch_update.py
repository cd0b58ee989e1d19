import asyncio

from tenancy.domain.entities import ShopUpdate
from tenancy.infrastructure.tenant_store import TenantStore


async def test_failures_do_not_block_other_updates(container, database, make_shop):
    for tenant_id in ("batch_a", "batch_c"):
        assert (await container.provisioning.setup_new_shop(make_shop(tenant_id))).success

    results = await container.batch.batch_update_shops(
        [
            ShopUpdate("batch_a", {"theme_color": "#111111"}),
            ShopUpdate("batch_missing", {"theme_color": "#222222"}),
            ShopUpdate("batch_c", {"theme_color": "#333333"}),
        ]
    )

    assert [r.tenant_id for r in results] == ["batch_a", "batch_missing", "batch_c"]
    assert [r.success for r in results] == [True, False, True]
    assert "not found" in results[1].error
    assert results[1].skipped is False

    async with database.get_session() as session:
        store = TenantStore(session)
        assert (await store.get_tenant("batch_a")).theme_color == "#111111"
        assert (await store.get_tenant("batch_c")).theme_color == "#333333"


async def test_mapping_input_and_field_whitelist(container, provisioned):
    results = await container.batch.batch_update_shops(
        [
            {"shopId": provisioned, "data": {"description": "Open late"}},
            {"tenant_id": provisioned, "data": {"tenant_id": "hijack"}},
        ]
    )

    assert results[0].success is True
    assert results[1].success is False
    assert results[1].error == "Fields cannot be updated"


async def test_cancelled_batch_skips_unscheduled_items(container, provisioned):
    cancel = asyncio.Event()
    cancel.set()

    results = await container.batch.batch_update_shops(
        [ShopUpdate(provisioned, {"name": "Renamed"})], cancel_event=cancel
    )

    assert results[0].success is False
    assert results[0].skipped is True
    assert results[0].to_dict() == {"tenantId": provisioned, "success": False, "error": "cancelled", "skipped": True}
