import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.cache import TTLCache, CacheKeys
from app.core.dependencies import get_cache, get_sync_service, get_hybrid_page_service
from app.schemas.page import PageCreate, PageUpdate
from app.services import page_service
from app.services.content_sync import ContentSyncService
from app.services.hybrid_page_service import HybridPageService

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/")
def get_pages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    published: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        result = page_service.get_pages(db, page=page, limit=limit, published=published, search=search)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Error al obtener las páginas.")
    return {"success": True, **result}

@router.get("/stats")
def get_page_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": page_service.get_page_stats(db)}

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_page(
    page_data: PageCreate,
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    page = page_service.create_page(db, page_data)
    logger.info(f"✅ Página '{page.page_id}' creada")
    cache.invalidate_by_pattern(r"^pages(:|$)")
    return {"success": True, "data": page_service.page_to_dict(page)}

@router.get("/{page_id}")
def get_page(page_id: str, db: Session = Depends(get_db)):
    page = page_service.get_page_by_id(db, page_id)
    return {"success": True, "data": page_service.page_to_dict(page)}

# Cambios que se reflejan en el <pageId>.json
MIRRORED_FIELDS = {"page_id", "title", "description", "is_published", "content"}

def _after_update(sync: ContentSyncService, cache: TTLCache, page, page_data: PageUpdate) -> bool:
    cache.delete(CacheKeys.page(page.page_id))
    cache.invalidate_by_pattern(r"^pages(:|$)")
    if not MIRRORED_FIELDS & page_data.model_dump(exclude_none=True).keys():
        return False
    # La base de datos ya quedó actualizada; el JSON es solo un espejo
    return sync.mirror_page(page)

@router.put("/{page_id}")
def update_page(
    page_id: str,
    page_data: PageUpdate,
    db: Session = Depends(get_db),
    sync: ContentSyncService = Depends(get_sync_service),
    cache: TTLCache = Depends(get_cache),
):
    page = page_service.update_page(db, page_id, page_data)
    mirrored = _after_update(sync, cache, page, page_data)
    return {
        "success": True,
        "data": page_service.page_to_dict(page),
        "jsonUpdated": mirrored,
        "message": "Página actualizada exitosamente.",
    }

@router.patch("/{page_id}")
def patch_page(
    page_id: str,
    page_data: PageUpdate,
    db: Session = Depends(get_db),
    sync: ContentSyncService = Depends(get_sync_service),
    cache: TTLCache = Depends(get_cache),
):
    page = page_service.patch_page(db, page_id, page_data)
    mirrored = _after_update(sync, cache, page, page_data)
    return {
        "success": True,
        "data": page_service.page_to_dict(page),
        "jsonUpdated": mirrored,
        "message": "Página actualizada exitosamente.",
    }

@router.get("/{page_id}/content")
def get_page_content(page_id: str, service: HybridPageService = Depends(get_hybrid_page_service)):
    """Contenido de la página por pageId, pasando por la cache (base de datos o JSON)."""
    result = service.get_cached_page_content_or_static(page_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Página '{page_id}' no encontrada")
    return {
        "success": True,
        "data": result.data,
        "fromCache": result.from_cache,
        "source": result.source.value,
    }
