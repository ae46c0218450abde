"""
Configuración de pytest y fixtures compartidas.

Cada test usa una base SQLite en memoria y un directorio temporal para el
content-data y las páginas JSON, así nunca se tocan los archivos de data/.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Generator

import pytest

# Antes de importar app.*: la configuración se lee al importar
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_MODE"] = "file"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.cache import TTLCache
from app.core.dependencies import get_storage_mode
from app.core.storage import StorageMode
from app.database import Base, get_db
from app.main import app
from app.services.content_store import ContentStoreReader
from app.services.content_sync import ContentSyncService
from app.services.json_page_service import JsonPageStore


class FakeClock:
    """Reloj manual para probar expiraciones sin dormir."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(default_ttl=60, time_func=clock)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Sesión sobre una base SQLite en memoria con todas las tablas creadas."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def content_dir(tmp_path: Path, monkeypatch) -> Path:
    """Directorio temporal con la carpeta pages/ y settings apuntando a él."""
    (tmp_path / "pages").mkdir()
    monkeypatch.setattr(settings, "CONTENT_DATA_PATH", str(tmp_path / "content-data.json"))
    monkeypatch.setattr(settings, "PAGES_DIR", str(tmp_path / "pages"))
    return tmp_path


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    def _write(path: Path, data: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_page(content_dir: Path, write_json) -> Callable[..., Path]:
    """Crea <pageId>.json con los campos básicos de un PageContent."""

    def _write(page_id: str, **fields: Any) -> Path:
        data: Dict[str, Any] = {
            "pageId": page_id,
            "title": page_id.capitalize(),
            "description": f"{page_id} page",
            "lastModified": "2025-01-15T09:00:00.000Z",
            "published": True,
        }
        data.update(fields)
        return write_json(content_dir / "pages" / f"{page_id}.json", data)

    return _write


@pytest.fixture
def storage_mode() -> StorageMode:
    return StorageMode.FILE


@pytest.fixture
def reader(content_dir: Path, storage_mode: StorageMode) -> ContentStoreReader:
    return ContentStoreReader(content_dir / "content-data.json", storage_mode)


@pytest.fixture
def page_store(content_dir: Path, storage_mode: StorageMode) -> JsonPageStore:
    return JsonPageStore(content_dir / "pages", storage_mode)


@pytest.fixture
def sync_service(db_session: Session, reader: ContentStoreReader, page_store: JsonPageStore, cache: TTLCache) -> ContentSyncService:
    return ContentSyncService(db_session, reader, page_store, cache)


@pytest.fixture
def client(db_session: Session, content_dir: Path, storage_mode: StorageMode) -> Generator[TestClient, None, None]:
    """TestClient con la base de datos y el modo de almacenamiento del test."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_mode] = lambda: storage_mode
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
