from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict

import pytest
from httpx import ASGITransport, AsyncClient

from shared.config import Settings
from shared.infrastructure.database.session import DatabaseSessionFactory
from shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from shared.utils.clock import utcnow
from tenancy.container import TenancyContainer
from tenancy.infrastructure.tenant_store import TenantStore
from tenancy.main import create_app


def shop_payload(tenant_id: str = "shop_001", **overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "tenant_id": tenant_id,
        "name": "Noodle Corner",
        "slug": tenant_id.replace("_", "-"),
        "contact_name": "Lin",
        "contact_phone": "13800000000",
        "shop_type": "restaurant",
        "dishes": [
            {"id": 1, "name": "Beef Noodles", "price": "18.50", "category": "noodles", "emoji": "🍜", "tags": ["hot"]},
            {"id": 2, "name": "Dumplings", "price": "12.00", "category": "snacks", "emoji": "🥟", "tags": []},
            {"id": 3, "name": "Soy Milk", "price": "4.00", "category": "drinks", "emoji": "🥛", "tags": ["cold"]},
        ],
        "recommendDishes": [2, 1],
    }
    data.update(overrides)
    return data


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'tenancy.db'}",
        STORE_TIMEOUT_SECONDS=2.0,
        ALERT_PERSIST_ATTEMPTS=1,
        LOG_JSON=False,
    )


@pytest.fixture
async def database(settings):
    db = DatabaseSessionFactory.from_settings(settings)
    yield db
    await db.dispose()


@pytest.fixture
async def container(settings, database) -> TenancyContainer:
    container = TenancyContainer.build(settings, database)
    await container.schema.initialize_database()
    return container


@pytest.fixture
async def provisioned(container) -> str:
    report = await container.provisioning.setup_new_shop(shop_payload())
    assert report.success, report.error
    return report.tenant_id


@pytest.fixture
def add_order(database):
    async def _add(tenant_id: str, *, minutes_ago: int = 0, total: str = "10.00", **kwargs: Any):
        async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
            order = await TenantStore(uow.session).add_order(
                tenant_id,
                total_amount=Decimal(total),
                created_at=utcnow() - timedelta(minutes=minutes_ago),
                **kwargs,
            )
            await uow.commit()
            return order

    return _add


@pytest.fixture
async def app_client(container):
    app = create_app(container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def make_shop():
    return shop_payload
