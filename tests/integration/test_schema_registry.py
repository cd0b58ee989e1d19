import pytest
from sqlalchemy import inspect

from shared.exceptions import UnknownCollection
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from tenancy.domain.value_objects import CollectionName, StepStatus
from tenancy.infrastructure.schema_registry import SchemaRegistry
from tenancy.infrastructure.tenant_store import TenantStore


async def _table_names(database):
    async with database.engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


async def test_initialize_database_creates_every_collection(database):
    registry = SchemaRegistry(database.engine)
    outcomes = await registry.initialize_database()

    assert [o.name for o in outcomes] == [c.value for c in CollectionName]
    assert all(o.status is StepStatus.SUCCESS for o in outcomes)
    assert set(await _table_names(database)) >= {c.value for c in CollectionName}


async def test_ensure_collection_is_idempotent_and_keeps_rows(container, database):
    async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
        await TenantStore(uow.session).create_tenant({"tenant_id": "keep_me", "name": "Keep"})
        await uow.commit()

    again = await container.schema.initialize_database()
    assert all(o.status is StepStatus.SUCCESS for o in again)
    outcome = await container.schema.ensure_collection("tenants")
    assert outcome.status is StepStatus.SUCCESS

    async with database.get_session() as session:
        assert (await TenantStore(session).get_tenant("keep_me")) is not None


async def test_unknown_collection_is_rejected(database):
    registry = SchemaRegistry(database.engine)
    with pytest.raises(UnknownCollection):
        await registry.ensure_collection("customers")
    with pytest.raises(UnknownCollection):
        registry.creation_statement("customers")


def test_creation_statement_declares_constraints(database):
    registry = SchemaRegistry(database.engine)
    ddl = registry.creation_statement(CollectionName.RECOMMENDATIONS)
    assert "CREATE TABLE recommendations" in ddl
    assert "UNIQUE" in ddl
    assert "ON DELETE CASCADE" in ddl
