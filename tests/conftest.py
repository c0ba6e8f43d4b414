import os
import sys
from pathlib import Path

import pytest
import anyio
import httpx

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite:///" + str(BASE_DIR / "test.db"))
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("MAX_IMAGE_SIZE_KB", "64")

from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings
from app.core import db as db_module
from app.core.dependencies import get_db, get_storage
from app.core.storage import LocalBlobStore
from app.models import Base, Category, Product
from app.main import app

get_settings.cache_clear()

db_module._engine = None
db_module._SessionLocal = None
_db_path = BASE_DIR / "test.db"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _create_session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="session")
def engine():
    engine = db_module.build_engine(get_settings().DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if _db_path.exists():
        _db_path.unlink()


@pytest.fixture(scope="session")
def session_factory(engine):
    return _create_session_factory(engine)


@pytest.fixture(autouse=True)
def _clean_tables(session_factory):
    yield
    session = session_factory()
    try:
        session.query(Product).delete()
        session.query(Category).delete()
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage(tmp_path):
    return LocalBlobStore(tmp_path / "storage", get_settings().MEDIA_URL_PREFIX)


@pytest.fixture()
def client(session_factory, storage):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_storage] = lambda: storage

    class _SyncASGIClient:
        def __init__(self, fastapi_app):
            self._client = httpx.AsyncClient(
                transport=httpx.ASGITransport(app=fastapi_app),
                base_url="http://testserver",
            )

        def request(self, method: str, url: str, **kwargs):
            async def _do_request():
                return await self._client.request(method, url, **kwargs)

            return anyio.run(_do_request)

        def get(self, url: str, **kwargs):
            return self.request("GET", url, **kwargs)

        def post(self, url: str, **kwargs):
            return self.request("POST", url, **kwargs)

        def put(self, url: str, **kwargs):
            return self.request("PUT", url, **kwargs)

        def delete(self, url: str, **kwargs):
            return self.request("DELETE", url, **kwargs)

        def close(self):
            async def _do_close():
                await self._client.aclose()

            anyio.run(_do_close)

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            self.close()

    with _SyncASGIClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def category(db_session):
    category = Category(name="Lighting")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture()
def png_bytes():
    return PNG_BYTES
