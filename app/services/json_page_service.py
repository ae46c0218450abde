# app/services/json_page_service.py

import errno
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core.core import utcnow, isoformat
from app.core.storage import StorageMode
from app.models.page import CONTENT_DATA_PAGE_ID
from app.schemas.page import JsonPageInfo, PageStats
from app.services.content_store import read_json_object, write_json_object

logger = logging.getLogger(__name__)


def page_id_from_filename(filename: str) -> str:
    return filename[: -len(".json")] if filename.endswith(".json") else filename


def transform_json_to_page_content(data: Dict[str, Any], fallback_page_id: str = "home") -> Dict[str, Any]:
    """Completa los campos obligatorios de un PageContent y conserva el resto del documento."""
    return {
        "pageId": data["pageId"] if isinstance(data.get("pageId"), str) else fallback_page_id,
        "title": data["title"] if isinstance(data.get("title"), str) else "",
        "description": data["description"] if isinstance(data.get("description"), str) else "",
        "lastModified": data["lastModified"] if isinstance(data.get("lastModified"), str) else isoformat(utcnow()),
        "published": data["published"] if isinstance(data.get("published"), bool) else False,
        **data,
    }


class JsonPageStore:
    """Un archivo <pageId>.json por página dentro de pages_dir."""

    def __init__(self, pages_dir: Path, mode: StorageMode):
        self.pages_dir = pages_dir
        self.mode = mode

    def path_for(self, filename: str) -> Path:
        name = Path(filename).name
        if not name.endswith(".json"):
            name = f"{name}.json"
        return self.pages_dir / name

    def list_page_files(self) -> List[str]:
        try:
            files = sorted(p.name for p in self.pages_dir.glob("*.json") if p.is_file())
        except OSError as e:
            logger.error(f"❌ No se pudo leer el directorio de páginas {self.pages_dir}: {e}")
            return []
        return [f for f in files if page_id_from_filename(f) != CONTENT_DATA_PAGE_ID]

    def get_page_by_filename(self, filename: str) -> Optional[Dict[str, Any]]:
        return read_json_object(self.path_for(filename))

    def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        return self.get_page_by_filename(f"{page_id}.json")

    def write_page(self, page_id: str, content: Dict[str, Any]) -> None:
        """Escribe el documento tal cual. Lanza OSError si el disco no lo permite."""
        write_json_object(self.path_for(page_id), content)

    def update_page_by_filename(self, filename: str, content: Dict[str, Any], modified_at: Optional[datetime] = None) -> bool:
        """
        Reemplaza el archivo con el contenido dado y sella lastModified
        (con modified_at si se indica, para que coincida con la fila de la base).
        En modo database no toca el disco y se considera exitoso.
        """
        if self.mode.is_read_only:
            logger.debug(f"📝 Modo database: se omite la escritura de {filename}")
            return True

        updated = {**content, "lastModified": isoformat(modified_at or utcnow())}
        try:
            write_json_object(self.path_for(filename), updated)
            return True
        except OSError as e:
            if e.errno == errno.EROFS:
                logger.warning(f"⚠️ Disco de solo lectura, se omite {filename}: {e}")
                return True
            logger.error(f"❌ Error al actualizar {filename}: {e}")
            return False

    def get_all_pages(self) -> List[JsonPageInfo]:
        pages = []
        for filename in self.list_page_files():
            page_id = page_id_from_filename(filename)
            data = self.get_page_by_filename(filename)
            if data is None:
                logger.error(f"❌ No se pudo cargar {filename}")
                pages.append(JsonPageInfo(
                    id=page_id,
                    filename=filename,
                    title="Error Loading Page",
                    description="Failed to load page content",
                    last_modified=isoformat(utcnow()),
                    published=False,
                    status="error",
                ))
                continue

            pages.append(JsonPageInfo(
                id=str(data.get("pageId") or page_id),
                filename=filename,
                title=str(data.get("title") or "Untitled Page"),
                description=str(data.get("description") or "No description available"),
                last_modified=str(data.get("lastModified") or isoformat(utcnow())),
                published=bool(data.get("published", False)),
            ))

        return sorted(pages, key=lambda p: p.title.lower())

    def get_page_stats(self) -> PageStats:
        pages = self.get_all_pages()
        published = sum(1 for p in pages if p.published)
        return PageStats(total=len(pages), published=published, unpublished=len(pages) - published)
