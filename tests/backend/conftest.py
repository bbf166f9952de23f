import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from roleguard.core import db as db_module
from roleguard.main import app
from roleguard.models.role import Role
from roleguard.models.user import User
from roleguard.services.identity_store import create_user
from roleguard.services.initialization import ensure_system_roles
from roleguard.services.permission_store import ensure_permission_catalog


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch and system roles and the
    permission catalogue are seeded.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()
    await ensure_system_roles()
    await ensure_permission_catalog()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database with the five system roles and the permission catalogue, no users.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def role_ids(db):
    """
    Map of role name -> role id (str) for the seeded system roles.
    """
    return {r.name: str(r.id) for r in await Role.all()}


@pytest_asyncio.fixture
async def make_user(db):
    """
    Factory fixture creating users with the given roles directly via the store.
    """

    async def _make_user(*role_names: str, password: str = "Passw0rd!23") -> tuple[User, str]:
        username = f"user_{uuid.uuid4().hex[:8]}"
        user = await create_user(
            username,
            f"{username}@example.com",
            password,
            list(role_names),
        )
        return user, password

    return _make_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(user: User, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": user.username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers


@pytest_asyncio.fixture
async def login_as(make_user, auth_header_factory):
    """
    Create a user holding `role_names` and return (user, headers).
    """

    async def _login_as(*role_names: str) -> tuple[User, dict[str, str]]:
        user, password = await make_user(*role_names)
        return user, await auth_header_factory(user, password)

    return _login_as
