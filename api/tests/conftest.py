import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import build_engine, build_sessionmaker, create_tables
from app.main import create_app

SECRET = "test-passcode"
EDGE_IP = "203.0.113.7"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}",
        ADMIN_PASSWORD=SECRET,
        BLOCKED_SITE_IDS=["broadcast"],
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": SECRET}


@pytest.fixture
def track(client: TestClient):
    """Post one visit report the way an edge proxy would forward it."""

    def _track(body: dict | None = None, ip: str | None = EDGE_IP, country: str | None = "DE"):
        headers = {}
        if ip is not None:
            headers["CF-Connecting-IP"] = ip
        if country is not None:
            headers["CF-IPCountry"] = country
        return client.post("/api/track", json={} if body is None else body, headers=headers)

    return _track


@pytest.fixture
def session_factory(settings: Settings):
    engine = build_engine(settings.DATABASE_URL)
    asyncio.run(create_tables(engine))
    yield build_sessionmaker(engine)
    asyncio.run(engine.dispose())
