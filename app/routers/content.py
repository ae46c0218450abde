from fastapi import APIRouter, Body, Depends, HTTPException, status
from typing import Dict, Any, Optional
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.dependencies import get_content_reader, get_sync_service
from app.core.exceptions import ContentSyncError
from app.core.core import utcnow, isoformat
from app.schemas.content import ContentPatch, DepartmentList
from app.services.content_store import ContentStoreReader, filter_content
from app.services.content_sync import ContentSyncService
from app.services.departments import get_departments

router = APIRouter()

@router.get("/")
def get_website_content(
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    reader: ContentStoreReader = Depends(get_content_reader),
):
    """Obtiene el content-data completo, o solo una sección con ?type=jobs|services|benefits."""
    content = reader.read_content_data(db)
    return {"success": True, "data": filter_content(content, type)}

@router.put("/")
def update_website_content(
    update_data: Dict[str, Any] = Body(...),
    sync: ContentSyncService = Depends(get_sync_service),
):
    """Mezcla el body sobre el content-data y lo guarda en el almacenamiento que corresponda."""
    try:
        sync.update_content_data(update_data)
    except ContentSyncError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return {
        "success": True,
        "message": "Contenido actualizado y sincronizado exitosamente.",
        "timestamp": isoformat(utcnow()),
    }

@router.patch("/")
def patch_website_content(
    patch: ContentPatch,
    sync: ContentSyncService = Depends(get_sync_service),
):
    """Reemplaza una sola sección del content-data (ej: {"type": "services", "data": [...]})."""
    try:
        sync.update_content_data({patch.type: patch.data})
    except ContentSyncError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return {
        "success": True,
        "message": f"Sección '{patch.type}' actualizada exitosamente.",
        "timestamp": isoformat(utcnow()),
    }

departments_router = APIRouter()

@departments_router.get("/", response_model=DepartmentList)
def list_departments(
    include_all: bool = False,
    db: Session = Depends(get_db),
    reader: ContentStoreReader = Depends(get_content_reader),
):
    content = reader.read_content_data(db)
    return {"success": True, "data": get_departments(content, include_all=include_all)}
