import asyncio
import os
from datetime import date, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_homeland.db"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["SMS_PROVIDER"] = "none"

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from homeland.db.base import Base  # noqa: E402
from homeland.db.session import get_db, use_immediate_transactions  # noqa: E402
from homeland.db import crud_categories, crud_properties, crud_users  # noqa: E402
from homeland.main import app  # noqa: E402

# NullPool: every session opens a fresh connection on whichever event loop runs it
engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
use_immediate_transactions(engine)
TestingSessionLocal = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def override_get_db():
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


def run(coro):
    """Run a coroutine against the test database from synchronous test code."""
    return asyncio.run(coro)


async def _with_session(fn, *args, **kwargs):
    async with TestingSessionLocal() as db:
        return await fn(db, *args, **kwargs)


def db_call(fn, *args, **kwargs):
    return run(_with_session(fn, *args, **kwargs))


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    run(_reset_schema())
    yield
    run(_drop_schema())


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, password: str = "secret123", **extra) -> dict:
    payload = {
        "first_name": extra.pop("first_name", "Test"),
        "last_name": extra.pop("last_name", "User"),
        "email": email,
        "password": password,
        **extra,
    }
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def set_role(user_id: int, role: str) -> None:
    db_call(crud_users.update_user_role, user_id, role)


@pytest.fixture()
def admin_token(client) -> str:
    data = register(client, "admin@example.com", first_name="Ada", last_name="Admin")
    set_role(data["user"]["id"], "admin")
    # role lives in the DB; the token only carries the user id
    return data["access_token"]


@pytest.fixture()
def host(client) -> dict:
    data = register(
        client, "host@example.com", first_name="Hannah", last_name="Host", phone="0712345678"
    )
    set_role(data["user"]["id"], "host")
    return {"id": data["user"]["id"], "token": data["access_token"]}


@pytest.fixture()
def category_id() -> int:
    categories = db_call(crud_categories.upsert_categories, crud_categories.DEFAULT_CATEGORIES)
    return categories[0].id


def make_property(host_id: int, category_id: int, **overrides):
    data = {
        "host_id": host_id,
        "category_id": category_id,
        "title": "Seaside Cottage",
        "description": "Two rooms by the beach",
        "address": "1 Beach Road",
        "city": "Mombasa",
        "country": "Kenya",
        "price_per_night": 100,
        "max_guests": 4,
        "bedrooms": 2,
        "bathrooms": 1,
        "amenities": ["WiFi"],
        "images": [],
        "host_contact": "+254712345678",
        "pin_location": "https://maps.example.com/?q=-4.04,39.66",
        "approval_status": "approved",
    }
    data.update(overrides)
    return db_call(crud_properties.create_property, **data)


@pytest.fixture()
def listing(host, category_id):
    """An approved, active property owned by `host`, 100/night, up to 4 guests."""
    return make_property(host["id"], category_id)


def future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def booking_payload(property_id: int, check_in: str, check_out: str, **overrides) -> dict:
    payload = {
        "propertyId": property_id,
        "checkIn": check_in,
        "checkOut": check_out,
        "guestCount": 2,
        "guestFirstName": "Grace",
        "guestLastName": "Guest",
        "guestEmail": "grace@example.com",
        "guestPhone": "+254700111222",
    }
    payload.update(overrides)
    return payload
