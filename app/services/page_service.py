# app/services/page_service.py

import math
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.core import utcnow, parse_datetime
from app.core.exceptions import NotFoundException, ConflictException, BadRequestException
from app.models.page import Page, CONTENT_DATA_PAGE_ID
from app.schemas.page import PageCreate, PageUpdate, PageResponse, PageStats

# Campos del documento JSON que también son columnas de la tabla pages
PAGE_METADATA_KEYS = ("pageId", "title", "description", "lastModified", "published")


def page_to_dict(page: Page) -> Dict[str, Any]:
    return PageResponse.model_validate(page).model_dump(by_alias=True, mode="json")


def _pages_query(db: Session):
    # La fila centinela del content-data no es una página del sitio
    return db.query(Page).filter(Page.page_id != CONTENT_DATA_PAGE_ID)


def create_page(db: Session, data: PageCreate) -> Page:
    if data.page_id == CONTENT_DATA_PAGE_ID:
        raise BadRequestException(f"El pageId '{CONTENT_DATA_PAGE_ID}' está reservado")

    existing = db.query(Page).filter(Page.page_id == data.page_id).first()
    if existing:
        raise ConflictException(f"Ya existe una página con pageId '{data.page_id}'")

    page = Page(
        page_id=data.page_id,
        title=data.title,
        description=data.description,
        is_published=data.is_published,
        content=data.content,
        last_modified=utcnow(),
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    return page


def get_pages(
    db: Session,
    page: int = 1,
    limit: int = 10,
    published: Optional[bool] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query = _pages_query(db)

    if published is not None:
        query = query.filter(Page.is_published == published)

    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            Page.title.ilike(pattern),
            Page.description.ilike(pattern),
            Page.page_id.ilike(pattern),
        ))

    total = query.count()
    pages = (
        query.order_by(Page.updated_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "data": [page_to_dict(p) for p in pages],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_page_by_id(db: Session, id: str) -> Page:
    page = db.query(Page).filter(Page.id == id).first()
    if not page:
        raise NotFoundException(f"Página con ID '{id}' no encontrada")
    return page


def find_page_by_page_id(db: Session, page_id: str) -> Optional[Page]:
    return db.query(Page).filter(Page.page_id == page_id).first()


def get_page_by_page_id(db: Session, page_id: str) -> Page:
    page = find_page_by_page_id(db, page_id)
    if not page:
        raise NotFoundException(f"Página con pageId '{page_id}' no encontrada")
    return page


def _apply_changes(db: Session, page: Page, changes: Dict[str, Any]) -> Page:
    new_page_id = changes.get("page_id")
    if new_page_id and new_page_id != page.page_id:
        conflicting = db.query(Page).filter(Page.page_id == new_page_id).first()
        if conflicting or new_page_id == CONTENT_DATA_PAGE_ID:
            raise ConflictException(f"Ya existe una página con pageId '{new_page_id}'")

    for field, value in changes.items():
        setattr(page, field, value)
    page.last_modified = utcnow()

    db.commit()
    db.refresh(page)
    return page


def update_page(db: Session, id: str, data: PageUpdate) -> Page:
    """Actualización completa: se aplican todos los campos enviados con valor."""
    page = get_page_by_id(db, id)
    return _apply_changes(db, page, data.model_dump(exclude_none=True))


def patch_page(db: Session, id: str, data: PageUpdate) -> Page:
    """Actualización parcial: solo los campos presentes en el body."""
    page = get_page_by_id(db, id)
    changes = data.model_dump(exclude_unset=True)
    # title, pageId e isPublished no admiten null
    for field in ("page_id", "title", "is_published"):
        if field in changes and changes[field] is None:
            del changes[field]
    return _apply_changes(db, page, changes)


def _stored_content(page: Page, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Contenido a guardar en la columna content de una fila existente.
    Los metadatos ya viven en sus columnas: solo se conservan los que el
    contenido de la fila ya tenía.
    """
    current = page.content if isinstance(page.content, dict) else {}
    stored = {
        key: value for key, value in document.items()
        if key not in PAGE_METADATA_KEYS or key in current
    }
    if not stored and page.content is None:
        return None
    return stored


def upsert_page(db: Session, content: Dict[str, Any]) -> str:
    """
    Crea o actualiza la fila de la página a partir de un PageContent.
    Retorna "created", "updated" o "unchanged". Si nada cambió no se escribe.
    """
    page_id = content["pageId"]
    values = {
        "title": content.get("title") or "",
        "description": content.get("description") or "",
        "is_published": bool(content.get("published", False)),
        "last_modified": parse_datetime(content.get("lastModified")) or utcnow(),
        "content": content,
    }

    page = find_page_by_page_id(db, page_id)
    if page is None:
        db.add(Page(page_id=page_id, **values))
        db.commit()
        return "created"

    values["content"] = _stored_content(page, content)

    if all(getattr(page, field) == value for field, value in values.items()):
        return "unchanged"

    for field, value in values.items():
        setattr(page, field, value)
    db.commit()
    return "updated"


def get_page_stats(db: Session) -> PageStats:
    total = _pages_query(db).count()
    published = _pages_query(db).filter(Page.is_published.is_(True)).count()
    return PageStats(total=total, published=published, unpublished=total - published)
