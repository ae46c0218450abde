# app/services/content_store.py
"""
Lectura y escritura del content-data (departamentos, servicios, beneficios, etc.).

El documento puede estar en el archivo JSON, en la fila centinela de la tabla
pages (pageId = "content-data") o en ambos, y las dos copias pueden diferir
hasta que corra una sincronización.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.core import utcnow
from app.core.storage import StorageMode
from app.models.page import Page, CONTENT_DATA_PAGE_ID

logger = logging.getLogger(__name__)

# Secciones que devuelve GET /content?type=...
CONTENT_VIEWS = {
    "jobs": ("jobOpenings", "departments", "jobTypes", "locations", "experienceLevels"),
    "services": ("services",),
    "benefits": ("benefits", "companyCulture"),
}


def read_json_object(path: Path) -> Optional[Dict[str, Any]]:
    """Lee un archivo JSON. Retorna None si no existe, no se puede parsear o no es un objeto."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"No se pudo leer {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def write_json_object(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def filter_content(blob: Dict[str, Any], kind: Optional[str]) -> Dict[str, Any]:
    keys = CONTENT_VIEWS.get(kind or "")
    if keys is None:
        return blob
    return {key: blob.get(key) or [] for key in keys}


class ContentStoreReader:
    def __init__(self, content_path: Path, mode: StorageMode):
        self.content_path = content_path
        self.mode = mode

    def read_file(self) -> Dict[str, Any]:
        return read_json_object(self.content_path) or {}

    def read_database(self, db: Optional[Session]) -> Optional[Dict[str, Any]]:
        """Contenido de la fila centinela, o None si no existe o no es un objeto."""
        if db is None:
            return None
        try:
            row = db.query(Page).filter(Page.page_id == CONTENT_DATA_PAGE_ID).first()
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ No se pudo leer content-data de la base de datos: {e}")
            return None
        if row is None or not isinstance(row.content, dict):
            return None
        return dict(row.content)

    def read_content_data(self, db: Optional[Session] = None) -> Dict[str, Any]:
        """
        Retorna el content-data vigente. Nunca lanza excepción: cualquier fuente
        que falle cuenta como vacía.

        - Modo database: el archivo es la base y lo de la base de datos se superpone.
        - Modo file: si el archivo tiene datos, gana el archivo y no se consulta la base.
        - Modo file con archivo vacío: se usa la copia de la base de datos.
        """
        file_data = self.read_file()

        if self.mode.is_read_only:
            db_data = self.read_database(db)
            if db_data:
                return {**file_data, **db_data}
            return file_data

        if file_data:
            return file_data

        return self.read_database(db) or {}

    def write_file(self, blob: Dict[str, Any]) -> None:
        write_json_object(self.content_path, blob)

    def write_database(self, db: Session, blob: Dict[str, Any]) -> None:
        """Guarda el documento en la fila centinela (la crea si hace falta). Hace commit."""
        row = db.query(Page).filter(Page.page_id == CONTENT_DATA_PAGE_ID).first()
        now = utcnow()
        if row is None:
            row = Page(
                page_id=CONTENT_DATA_PAGE_ID,
                title="Content Data",
                description="Contenido compartido del sitio",
                is_published=False,
                content=blob,
                last_modified=now,
            )
            db.add(row)
        else:
            row.content = blob
            row.last_modified = now
        db.commit()
