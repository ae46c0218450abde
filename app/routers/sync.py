# app/routers/sync.py

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from app.core.cache import TTLCache, PAGE_KEY_PATTERNS
from app.core.core import utcnow, isoformat
from app.core.dependencies import get_cache, get_sync_service
from app.schemas.sync import SyncDirection, SyncRequest, SyncResult
from app.services.content_sync import ContentSyncService

logger = logging.getLogger(__name__)
router = APIRouter()

MESSAGES = {
    SyncDirection.JSON_TO_DB: "JSON sincronizado a la base de datos",
    SyncDirection.DB_TO_JSON: "Base de datos sincronizada a los archivos JSON",
    SyncDirection.BOTH: "Sincronización completa en ambas direcciones",
}

@router.post("/")
def run_sync(
    request: SyncRequest = SyncRequest(),
    sync: ContentSyncService = Depends(get_sync_service),
    cache: TTLCache = Depends(get_cache),
):
    """
    Sincroniza páginas entre JSON y base de datos.
    direction: json-to-db | db-to-json | both (por defecto db-to-json).
    """
    result = SyncResult(message=MESSAGES[request.direction])

    try:
        if request.run_validation:
            result.validation = sync.validate_data_consistency()
            if not result.validation.consistent:
                logger.warning(f"⚠️ Inconsistencias encontradas: {result.validation.issues}")

        if request.direction in (SyncDirection.JSON_TO_DB, SyncDirection.BOTH):
            result.reports.append(sync.sync_all_json_to_database())
        if request.direction in (SyncDirection.DB_TO_JSON, SyncDirection.BOTH):
            result.reports.append(sync.sync_database_to_json())
    except SQLAlchemyError as e:
        logger.error(f"❌ Falló la sincronización {request.direction.value}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de base de datos durante la sincronización.",
        )
    finally:
        # Sin esto el sitio y el admin siguen viendo páginas viejas (solo en este proceso)
        for pattern in PAGE_KEY_PATTERNS:
            cache.invalidate_by_pattern(pattern)

    return {
        "success": True,
        "data": result.model_dump(mode="json"),
        "timestamp": isoformat(utcnow()),
    }

@router.get("/")
def get_sync_status(sync: ContentSyncService = Depends(get_sync_service)):
    """Reporte de consistencia entre JSON y base de datos (no modifica nada)."""
    validation = sync.validate_data_consistency()
    return {
        "success": True,
        "data": {
            "consistent": validation.consistent,
            "issues": validation.issues,
            "timestamp": isoformat(utcnow()),
        },
    }
