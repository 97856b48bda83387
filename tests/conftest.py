from __future__ import annotations

import os
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import psycopg
import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from psycopg import sql
from sqlalchemy import text
from sqlalchemy.engine import make_url

from tattmap_api.auth.tokens import TokenClaims, create_access_token
from tattmap_api.db.models import User, UserRole
from tattmap_api.db.session import create_sessionmaker
from tattmap_api.domain.artist_profiles import upsert_for_current_user
from tattmap_api.main import create_app
from tattmap_api.settings import get_settings

REPO_ROOT = Path(__file__).resolve().parents[1]


def _normalize_psycopg_dsn(url: str) -> str:
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql://", 1)
    if url.startswith("postgresql+psycopg://"):
        return url.replace("postgresql+psycopg://", "postgresql://", 1)
    return url


def _get_test_database_url() -> str:
    explicit = os.environ.get("DATABASE_URL_TEST") or os.environ.get("TEST_DATABASE_URL")
    if explicit:
        return explicit
    url = make_url(get_settings().database_url)
    if not url.database:
        raise RuntimeError("DATABASE_URL must include a database name; set DATABASE_URL_TEST for tests.")
    return url.set(database=f"{url.database}_test").render_as_string(hide_password=False)


def _ensure_test_database_exists(test_url: str) -> None:
    url = make_url(test_url)
    admin_dsn = _normalize_psycopg_dsn(
        url.set(database="postgres").render_as_string(hide_password=False)
    )
    with psycopg.connect(admin_dsn, autocommit=True, connect_timeout=3) as conn:
        exists = conn.execute(
            "select 1 from pg_database where datname = %s",
            (url.database,),
        ).fetchone()
        if not exists:
            conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(url.database)))


@pytest.fixture(scope="session")
def alembic_config() -> Config:
    cfg = Config(str(REPO_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(REPO_ROOT / "src/tattmap_api/db/migrations"))
    cfg.set_main_option("prepend_sys_path", str(REPO_ROOT / "src"))
    return cfg


@pytest.fixture(scope="session")
def migrate_db(alembic_config: Config) -> str:
    """Point the app at the test database and migrate it; skip when Postgres is unreachable."""
    test_url = _get_test_database_url()
    try:
        _ensure_test_database_exists(test_url)
    except psycopg.OperationalError as exc:
        pytest.skip(f"PostGIS test database unavailable: {exc}")
    os.environ["DATABASE_URL"] = test_url
    get_settings.cache_clear()
    command.upgrade(alembic_config, "head")
    return test_url


@pytest.fixture(autouse=True)
def media_dir(tmp_path, monkeypatch) -> Path:
    monkeypatch.setenv("MEDIA_DIR", str(tmp_path / "media"))
    get_settings.cache_clear()
    yield tmp_path / "media"
    get_settings.cache_clear()


@pytest.fixture
def db_sessionmaker(migrate_db: str):
    create_sessionmaker.cache_clear()
    return create_sessionmaker(get_settings().database_url)


@pytest_asyncio.fixture
async def reset_db(db_sessionmaker):
    async with db_sessionmaker() as session:
        await session.execute(text("TRUNCATE likes, artists, users RESTART IDENTITY CASCADE"))
        await session.commit()
    yield


@pytest_asyncio.fixture
async def bare_client(media_dir):
    """App client for requests that never reach the database."""
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client(reset_db, media_dir):
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def _auth_headers(user_id: uuid.UUID, role: str = "USER") -> dict[str, str]:
    token = create_access_token(TokenClaims(user_id=user_id, role=role), get_settings())
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    return _auth_headers


@pytest.fixture
def profile_payload() -> Callable[..., dict[str, Any]]:
    return artist_payload


def artist_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "city": "Amsterdam",
        "country": "Netherlands",
        "country_code": "NL",
        "address": "Damstraat 21",
        "nickname": "eva.noir",
        "description": "Fine-line blackwork.",
        "styles": ["Blackwork"],
        "instagram": "eva.noir",
        "lat": 52.372776,
        "lon": 4.892222,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def create_user(db_sessionmaker, reset_db) -> Callable[..., Awaitable[User]]:
    async def _create(*, name: str | None = None, avatar: str | None = None) -> User:
        suffix = uuid.uuid4().hex[:12]
        async with db_sessionmaker() as session:
            user = User(
                google_id=f"google-{suffix}",
                email=f"{suffix}@example.com",
                name=name,
                avatar=avatar,
                role=UserRole.USER,
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest_asyncio.fixture
async def create_artist(db_sessionmaker, create_user) -> Callable[..., Awaitable[User]]:
    """Creates a user with an artist profile; keyword arguments override profile fields."""

    async def _create(**overrides: Any) -> User:
        user = await create_user(name=overrides.get("nickname"))
        async with db_sessionmaker() as session:
            await upsert_for_current_user(session, user.id, artist_payload(**overrides))
        return user

    return _create
