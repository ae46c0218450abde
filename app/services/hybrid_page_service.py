# app/services/hybrid_page_service.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache import TTLCache, CacheHit, CacheKeys, CacheSource
from app.core.core import utcnow, isoformat
from app.core.exceptions import BadRequestException
from app.models.page import Page, CONTENT_DATA_PAGE_ID
from app.schemas.page import PageStats
from app.services import page_service
from app.services.json_page_service import JsonPageStore

logger = logging.getLogger(__name__)


class _PageNotFound(Exception):
    """La página no está ni en la base de datos ni en JSON (no se cachea)."""


class HybridPageService:
    """
    Sirve el contenido de las páginas en este orden: cache, base de datos y,
    si la base no la tiene, el JSON estático.
    """

    def __init__(self, db: Session, pages: JsonPageStore, cache: TTLCache):
        self.db = db
        self.pages = pages
        self.cache = cache

    def _load(self, page_id: str) -> Tuple[Dict[str, Any], CacheSource]:
        if page_id == CONTENT_DATA_PAGE_ID:
            raise _PageNotFound(page_id)

        db_page = page_service.find_page_by_page_id(self.db, page_id)
        if db_page is not None and db_page.content:
            logger.debug(f"📊 Página '{page_id}' obtenida de la base de datos")
            return db_page.content, CacheSource.DATABASE

        json_page = self.pages.get_page(page_id)
        if json_page is not None:
            logger.debug(f"📄 Página '{page_id}' obtenida del JSON estático")
            return json_page, CacheSource.JSON

        raise _PageNotFound(page_id)

    def get_cached_page_content(self, page_id: str, ttl: Optional[float] = None) -> Optional[CacheHit[Dict[str, Any]]]:
        """
        Retorna el contenido con su origen y si vino de la cache, o None si la
        página no existe. Los errores de la base de datos no se reintentan: se
        propagan para que quien llama use su propio fallback.
        """
        try:
            return self.cache.get_or_set(CacheKeys.page(page_id), lambda: self._load(page_id), ttl)
        except _PageNotFound:
            return None

    def get_cached_page_content_or_static(self, page_id: str) -> Optional[CacheHit[Dict[str, Any]]]:
        """get_cached_page_content, pero si la base de datos falla sirve el JSON estático."""
        try:
            return self.get_cached_page_content(page_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Falló la base de datos para '{page_id}', usando JSON: {e}")

        data = self.pages.get_page(page_id)
        if data is None:
            return None
        return CacheHit(data=data, source=CacheSource.JSON, from_cache=False)

    def get_page_content(self, page_id: str) -> Optional[Dict[str, Any]]:
        """Versión sin cache que además tolera la caída de la base de datos."""
        if page_id == CONTENT_DATA_PAGE_ID:
            return None
        try:
            db_page = page_service.find_page_by_page_id(self.db, page_id)
            if db_page is not None and db_page.content:
                return db_page.content
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Falló la base de datos para '{page_id}', usando JSON: {e}")

        return self.pages.get_page(page_id)

    def update_page_content(self, page_id: str, content: Dict[str, Any]) -> Tuple[bool, bool]:
        """
        Guarda la página en la base de datos (la crea si no existe) y en su JSON
        cuando el disco es escribible. Retorna (database_updated, json_updated).
        """
        if page_id == CONTENT_DATA_PAGE_ID:
            raise BadRequestException(f"El pageId '{CONTENT_DATA_PAGE_ID}' está reservado")

        now = utcnow()
        updated = {**content, "pageId": page_id, "lastModified": isoformat(now)}

        database_updated = False
        try:
            existing = page_service.find_page_by_page_id(self.db, page_id)
            if existing is not None:
                existing.content = updated
                existing.last_modified = now
                if isinstance(updated.get("title"), str) and updated["title"]:
                    existing.title = updated["title"]
                if isinstance(updated.get("description"), str):
                    existing.description = updated["description"]
                if isinstance(updated.get("published"), bool):
                    existing.is_published = updated["published"]
            else:
                self.db.add(Page(
                    page_id=page_id,
                    title=updated.get("title") or "Untitled Page",
                    description=updated.get("description") or "No description",
                    is_published=bool(updated.get("published", False)),
                    content=updated,
                    last_modified=now,
                ))
            self.db.commit()
            database_updated = True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ No se pudo guardar la página '{page_id}' en la base de datos: {e}")

        json_updated = self.pages.update_page_by_filename(f"{page_id}.json", updated, modified_at=now)
        if not json_updated:
            logger.warning(f"⚠️ La página '{page_id}' quedó distinta entre JSON y base de datos")

        self.cache.delete(CacheKeys.page(page_id))
        self.cache.invalidate_by_pattern(r"^pages(:|$)")
        return database_updated, json_updated

    def get_all_pages(self) -> List[Dict[str, Any]]:
        pages: Dict[str, Dict[str, Any]] = {}

        try:
            for page in page_service.get_pages(self.db, limit=100)["data"]:
                pages[page["pageId"]] = {**page, "source": CacheSource.DATABASE.value}
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ No se pudieron leer las páginas de la base de datos: {e}")

        for info in self.pages.get_all_pages():
            if info.id in pages:
                continue
            pages[info.id] = {
                "id": info.id,
                "pageId": info.id,
                "title": info.title,
                "description": info.description,
                "lastModified": info.last_modified,
                "isPublished": info.published,
                "source": CacheSource.JSON.value,
            }

        return list(pages.values())

    def get_page_stats(self) -> PageStats:
        try:
            return page_service.get_page_stats(self.db)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Falló el conteo en la base de datos, usando JSON: {e}")
            return self.pages.get_page_stats()
