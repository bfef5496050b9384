"""
Shared fixtures: an app bound to a fresh in-memory SQLite database per test,
an httpx client speaking ASGI to it, and factories for users and departments.
"""
from typing import Any, AsyncGenerator, Dict, Optional

import httpx
import pytest
import pytest_asyncio

from hospitalms.core.config import Settings
from hospitalms.core.security import create_access_token, hash_password
from hospitalms.main import create_app
from hospitalms.modules.departments import repository as dept_repo
from hospitalms.modules.users import repository as users_repo

# Monday; far enough ahead that "in the past" never triggers.
MONDAY = "2030-01-07"
SUNDAY = "2030-01-06"

PASSWORD = "Secret123"


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        APP_ENV="test",
        SQL_DSN="sqlite+aiosqlite:///:memory:",
        JWT_SECRET="test-secret",
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def app(cfg):
    application = create_app(cfg)
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c


def auth_headers(user, cfg: Settings) -> Dict[str, str]:
    token = create_access_token(subject=str(user.id), role=user.role, email=user.email, cfg=cfg)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(app, cfg):
    """
    Insert a user straight through the repository.
    Returns (user, headers) where headers carry a valid access token.
    """
    counter = {"n": 0}

    async def _make(
        role: str = "patient",
        *,
        email: Optional[str] = None,
        first_name: str = "Test",
        last_name: Optional[str] = None,
        **extra: Any,
    ):
        counter["n"] += 1
        n = counter["n"]
        async with app.state.db.sessionmaker() as session:
            user = await users_repo.create_user(
                session,
                email=email or f"{role}{n}@example.com",
                password_hash=hash_password(PASSWORD),
                first_name=first_name,
                last_name=last_name or f"{role.title()}{n}",
                role=role,
                **extra,
            )
            await session.commit()
        return user, auth_headers(user, cfg)

    return _make


@pytest.fixture
def make_department(app):
    async def _make(name: str = "Cardiology", description: str = ""):
        async with app.state.db.sessionmaker() as session:
            dept = await dept_repo.create(session, name=name, description=description)
            await session.commit()
        return dept

    return _make


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin", first_name="Ada", last_name="Admin")


@pytest_asyncio.fixture
async def patient(make_user):
    return await make_user("patient", first_name="Pat", last_name="Smith")


@pytest_asyncio.fixture
async def doctor(make_user):
    return await make_user(
        "doctor", first_name="Greg", last_name="House", specialization="Diagnostics"
    )
