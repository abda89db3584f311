import pytest
from fastapi.testclient import TestClient

from app.pvz_api.api.factory import create_app
from app.pvz_api.db.models import Base
from app.pvz_api.db.repo import (
    ProductRepository,
    PVZRepository,
    ReceptionRepository,
    UserRepository,
)
from app.pvz_api.db.session import create_engine_from_settings, create_session_factory
from app.pvz_api.services.locks import PickupPointLocks
from app.pvz_api.services.product_service import ProductService
from app.pvz_api.services.pvz_service import PVZService
from app.pvz_api.services.reception_service import ReceptionService
from app.pvz_api.services.user_service import UserService
from app.pvz_api.settings import Settings


@pytest.fixture
def settings():
    """Settings pointing at a private in-memory SQLite database."""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        CREATE_SCHEMA=True,
        AUTH_SECRET="test-secret",
    )


@pytest.fixture
async def session_factory(settings):
    engine = create_engine_from_settings(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def locks():
    return PickupPointLocks()


@pytest.fixture
def pvz_service(session_factory, locks):
    return PVZService(
        session_factory, PVZRepository(), ReceptionRepository(), ProductRepository(), locks
    )


@pytest.fixture
def reception_service(session_factory, locks):
    return ReceptionService(session_factory, PVZRepository(), ReceptionRepository(), locks)


@pytest.fixture
def product_service(session_factory, locks):
    return ProductService(
        session_factory, ProductRepository(), ReceptionRepository(), PVZRepository(), locks
    )


@pytest.fixture
def user_service(session_factory):
    return UserService(session_factory, UserRepository())


@pytest.fixture
async def pvz(pvz_service):
    """A freshly created pickup point in Moscow."""
    return await pvz_service.create_pvz("Москва")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def auth_headers(client, role):
    response = client.post("/dummyLogin", json={"role": role})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def moderator_headers(client):
    return auth_headers(client, "moderator")


@pytest.fixture
def employee_headers(client):
    return auth_headers(client, "employee")
