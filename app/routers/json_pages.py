import logging
from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Dict, Any

from app.core.dependencies import get_hybrid_page_service
from app.models.page import CONTENT_DATA_PAGE_ID
from app.services.hybrid_page_service import HybridPageService
from app.services.json_page_service import page_id_from_filename

logger = logging.getLogger(__name__)
router = APIRouter()

def _require_json_filename(filename: str) -> str:
    if not filename.endswith(".json") or filename == ".json":
        raise HTTPException(status_code=400, detail="Formato de nombre de archivo inválido")
    page_id = page_id_from_filename(filename)
    # El content-data compartido no es una página
    if page_id == CONTENT_DATA_PAGE_ID:
        raise HTTPException(status_code=400, detail=f"El archivo '{filename}' está reservado")
    return page_id

@router.get("/")
def list_json_pages(service: HybridPageService = Depends(get_hybrid_page_service)):
    """Páginas de la base de datos más las que solo existen como JSON."""
    return {"success": True, "data": service.get_all_pages()}

@router.get("/stats")
def json_pages_stats(service: HybridPageService = Depends(get_hybrid_page_service)):
    return {"success": True, "data": service.get_page_stats()}

@router.get("/{filename}")
def get_json_page(
    filename: str,
    service: HybridPageService = Depends(get_hybrid_page_service),
):
    """Obtiene una página: cache, luego base de datos y por último el JSON estático."""
    page_id = _require_json_filename(filename)

    result = service.get_cached_page_content_or_static(page_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Página no encontrada")

    return {
        "success": True,
        "data": result.data,
        "fromCache": result.from_cache,
        "source": result.source.value,
    }

@router.put("/{filename}")
def update_json_page(
    filename: str,
    content: Dict[str, Any] = Body(...),
    service: HybridPageService = Depends(get_hybrid_page_service),
):
    """Guarda la página en la base de datos y, si el disco lo permite, en su JSON."""
    page_id = _require_json_filename(filename)
    database_updated, json_updated = service.update_page_content(page_id, content)

    if not database_updated:
        raise HTTPException(status_code=500, detail=f"No se pudo actualizar la página '{page_id}' en la base de datos")

    message = (
        f"Página '{page_id}' actualizada en base de datos y JSON"
        if json_updated
        else f"Página '{page_id}' actualizada solo en la base de datos (falló el JSON)"
    )
    return {
        "success": True,
        "message": message,
        "databaseUpdated": database_updated,
        "jsonUpdated": json_updated,
    }
