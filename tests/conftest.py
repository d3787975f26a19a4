import os
import tempfile

# Settings are read at import time; point the app at throwaway resources first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="parking-uploads-"))

import pytest
import httpx

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

# Import Base + all models so metadata is complete
from app.models.base import Base
from app.models.user import User
from app.models.parking import Parking  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401

from app.main import app
from app.core.db import get_db
from app.core.ids import gen_id
from app.services.auth import Identity, InvalidTokenError, VerifierUnavailableError, get_token_verifier
from app.services.storage import LocalImageStore, get_image_store
from app.services.users import UserDirectory


def _test_db_url() -> str:
    return os.getenv("DATABASE_URL_TEST", "sqlite+aiosqlite://")


class FakeVerifier:
    """
    "tok-<uid>" -> Identity(uid); "expired" -> rejected; "down" -> provider unreachable.
    """

    def __init__(self):
        self.seen: list[str] = []

    async def verify(self, token: str) -> Identity:
        self.seen.append(token)
        if token == "down":
            raise VerifierUnavailableError("connection refused")
        if not token.startswith("tok-"):
            raise InvalidTokenError("token expired")
        return Identity(uid=token[len("tok-"):], claims={"uid": token[len("tok-"):]})


@pytest.fixture
async def async_engine():
    engine = create_async_engine(
        _test_db_url(),
        poolclass=StaticPool,
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session


@pytest.fixture
def image_store(tmp_path) -> LocalImageStore:
    return LocalImageStore(str(tmp_path / "uploads"))


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
async def client(db_session: AsyncSession, image_store: LocalImageStore, verifier: FakeVerifier):
    """
    HTTP client wired to the test DB session, a fake token verifier and a tmp image store.
    """
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    app.dependency_overrides[get_image_store] = lambda: image_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def users(db_session) -> UserDirectory:
    return UserDirectory(db_session)


@pytest.fixture
async def seed_users(db_session):
    owner = User(id=gen_id("usr"), name="Lucia Owner", email="lucia@parking.io")
    renter = User(id=gen_id("usr"), name="Marco Renter", email="marco@parking.io")
    other = User(id=gen_id("usr"), name="Ines Other", email="ines@parking.io")

    db_session.add_all([owner, renter, other])
    await db_session.commit()

    return {"owner": owner, "renter": renter, "other": other}
