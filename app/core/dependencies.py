# app/core/dependencies.py
# Dependencias para inyectar la cache y los servicios de contenido en los routers

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.core.cache import TTLCache
from app.core.storage import StorageMode
from app.database import get_db
from app.services.content_store import ContentStoreReader
from app.services.content_sync import ContentSyncService
from app.services.hybrid_page_service import HybridPageService
from app.services.json_page_service import JsonPageStore


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_storage_mode(request: Request) -> StorageMode:
    return request.app.state.storage_mode


def get_content_reader(mode: StorageMode = Depends(get_storage_mode)) -> ContentStoreReader:
    return ContentStoreReader(settings.content_data_file, mode)


def get_json_page_store(mode: StorageMode = Depends(get_storage_mode)) -> JsonPageStore:
    return JsonPageStore(settings.pages_directory, mode)


def get_sync_service(
    db: Session = Depends(get_db),
    reader: ContentStoreReader = Depends(get_content_reader),
    pages: JsonPageStore = Depends(get_json_page_store),
    cache: TTLCache = Depends(get_cache),
) -> ContentSyncService:
    return ContentSyncService(db, reader, pages, cache)


def get_hybrid_page_service(
    db: Session = Depends(get_db),
    pages: JsonPageStore = Depends(get_json_page_store),
    cache: TTLCache = Depends(get_cache),
) -> HybridPageService:
    return HybridPageService(db, pages, cache)
