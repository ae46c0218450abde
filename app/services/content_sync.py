# app/services/content_sync.py
"""
Sincronización entre los archivos JSON y la base de datos.

Hay entornos con disco escribible (el JSON se versiona con git) y entornos
serverless donde el disco es de solo lectura y todo se escribe en la base de
datos. Este servicio reconcilia las dos copias sin que el resto del código
tenga que saber en cuál de los dos entornos corre.

No hay commit en dos fases: si una de las dos escrituras falla la otra no se
revierte, se registra un warning y la diferencia queda hasta el próximo sync.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache import TTLCache, CacheKeys, CONTENT_KEY_PATTERN, PAGE_KEY_PATTERNS
from app.core.core import utcnow, isoformat, parse_datetime, to_record, to_string_list
from app.core.exceptions import ContentSyncError
from app.models.department import Department
from app.models.job_opening import JobOpening
from app.models.page import Page, CONTENT_DATA_PAGE_ID
from app.schemas.sync import SyncDirection, SyncReport, ConsistencyReport
from app.services import page_service
from app.services.content_store import ContentStoreReader
from app.services.departments import normalize_departments
from app.services.json_page_service import JsonPageStore, page_id_from_filename, transform_json_to_page_content

logger = logging.getLogger(__name__)

# Diferencia de lastModified tolerada entre el JSON y la base de datos
MODIFIED_TOLERANCE_SECONDS = 1.0


class ContentSyncService:
    def __init__(
        self,
        db: Session,
        reader: ContentStoreReader,
        pages: JsonPageStore,
        cache: Optional[TTLCache] = None,
    ):
        self.db = db
        self.reader = reader
        self.pages = pages
        self.cache = cache
        self.mode = reader.mode

    # ------------------------------------------------------------------
    # content-data
    # ------------------------------------------------------------------

    def update_content_data(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mezcla `updates` sobre el content-data y lo guarda donde se pueda escribir.
        Lanza ContentSyncError si falla el almacenamiento principal.
        """
        if self.mode.is_read_only:
            merged = {**self.reader.read_content_data(self.db), **updates}
            try:
                self.reader.write_database(self.db, merged)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ No se pudo guardar content-data en la base de datos: {e}")
                raise ContentSyncError(f"Error al guardar content-data en la base de datos: {e}")
        else:
            merged = {**self.reader.read_file(), **updates}
            try:
                self.reader.write_file(merged)
            except OSError as e:
                logger.error(f"❌ No se pudo escribir {self.reader.content_path}: {e}")
                raise ContentSyncError(f"Error al escribir content-data: {e}")
            self._refresh_database_mirror(merged)

        if isinstance(updates.get("jobOpenings"), list):
            self._sync_job_openings(updates["jobOpenings"])
        if isinstance(updates.get("departments"), list):
            self._sync_departments(updates["departments"])

        if self.cache is not None:
            self.cache.invalidate_by_pattern(CONTENT_KEY_PATTERN)

        logger.info(f"✅ content-data actualizado ({', '.join(sorted(updates)) or 'sin cambios'})")
        return merged

    def _refresh_database_mirror(self, blob: Dict[str, Any]) -> None:
        # Solo se mantiene la copia de la base si ya existe
        try:
            if self.reader.read_database(self.db) is not None:
                self.reader.write_database(self.db, blob)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ content-data guardado en archivo pero no en la base de datos: {e}")

    def _sync_job_openings(self, job_openings: List[Any]) -> None:
        for job in job_openings:
            record = to_record(job)
            job_id = record.get("id")
            if not isinstance(job_id, str) or not job_id:
                continue

            values = {
                "title": record["title"] if isinstance(record.get("title"), str) else "Untitled Job",
                "department": record["department"] if isinstance(record.get("department"), str) else "general",
                "location": record["location"] if isinstance(record.get("location"), str) else "Remote",
                "type": record["jobType"] if isinstance(record.get("jobType"), str) else "Full-time",
                "experience": record["experience"] if isinstance(record.get("experience"), str) else "",
                "salary": record["salaryRange"] if isinstance(record.get("salaryRange"), str) else "",
                "description": record["description"] if isinstance(record.get("description"), str) else "",
                "requirements": to_string_list(record.get("requirements")),
                "responsibilities": to_string_list(record.get("responsibilities")),
                "skills": to_string_list(record.get("skills")),
                "benefits": to_string_list(record.get("benefits")),
                "is_active": record["published"] if isinstance(record.get("published"), bool) else True,
                "application_deadline": parse_datetime(record.get("applicationDeadline")),
                "posted_date": parse_datetime(record.get("lastModified")) or utcnow(),
                "company_id": record["companyId"] if isinstance(record.get("companyId"), str) else "main",
            }

            try:
                existing = self.db.query(JobOpening).filter(JobOpening.id == job_id).first()
                if existing is None:
                    self.db.add(JobOpening(id=job_id, **values))
                else:
                    for field, value in values.items():
                        setattr(existing, field, value)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ No se pudo sincronizar la vacante '{values['title']}': {e}")

    def _sync_departments(self, departments: List[Any]) -> None:
        options = normalize_departments(departments)
        keys = {option["key"] for option in options}
        try:
            existing = {d.key: d for d in self.db.query(Department).all()}
            for option in options:
                row = existing.get(option["key"])
                if row is None:
                    self.db.add(Department(key=option["key"], label=option["label"]))
                elif row.label != option["label"]:
                    row.label = option["label"]
            for key, row in existing.items():
                if key not in keys:
                    self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ No se pudieron sincronizar los departamentos: {e}")

    # ------------------------------------------------------------------
    # Páginas
    # ------------------------------------------------------------------

    def update_page_content(self, page_id: str, updates: Dict[str, Any]) -> bool:
        """
        Copia el contenido de una página a su archivo <pageId>.json.
        Es best-effort: la escritura en la base de datos la hace quien llama,
        así que un fallo aquí solo se registra.
        """
        if self.mode.is_read_only:
            return True

        existing = self.pages.get_page(page_id) or {}
        updated = {**existing, **updates, "pageId": page_id, "lastModified": isoformat(utcnow())}
        try:
            self.pages.write_page(page_id, updated)
        except OSError as e:
            logger.warning(f"⚠️ No se pudo actualizar el JSON de la página '{page_id}': {e}")
            return False
        finally:
            self._invalidate_page(page_id)
        return True

    def sync_all_json_to_database(self) -> SyncReport:
        """Lee todos los <pageId>.json y hace upsert por pageId. Correrlo dos veces no cambia nada."""
        report = SyncReport(direction=SyncDirection.JSON_TO_DB)

        for filename in self.pages.list_page_files():
            report.processed += 1
            page_id = page_id_from_filename(filename)
            data = self.pages.get_page_by_filename(filename)
            if data is None:
                report.failed += 1
                report.errors.append(f"No se pudo leer {filename}")
                logger.error(f"❌ No se pudo leer {filename}")
                continue

            if not isinstance(data.get("lastModified"), str):
                data = {**data, "lastModified": self._file_modified_at(filename)}
            content = transform_json_to_page_content(data, fallback_page_id=page_id)

            try:
                outcome = page_service.upsert_page(self.db, content)
            except SQLAlchemyError as e:
                self.db.rollback()
                report.failed += 1
                report.errors.append(f"Error al sincronizar {filename}: {e}")
                logger.error(f"❌ Error al sincronizar {filename}: {e}")
                continue

            if outcome == "created":
                report.created += 1
            elif outcome == "updated":
                report.updated += 1
            else:
                report.unchanged += 1

        self._invalidate_pages()
        logger.info(
            f"✅ JSON -> DB: {report.processed} archivos, {report.created} creadas, "
            f"{report.updated} actualizadas, {report.failed} con error"
        )
        return report

    def sync_database_to_json(self) -> SyncReport:
        """Escribe (o sobrescribe) un <pageId>.json por cada página de la base de datos."""
        report = SyncReport(direction=SyncDirection.DB_TO_JSON)

        if self.mode.is_read_only:
            logger.info("📝 Modo database: se omite DB -> JSON")
            report.skipped = True
            return report

        pages = self.db.query(Page).filter(Page.page_id != CONTENT_DATA_PAGE_ID).all()
        for page in pages:
            report.processed += 1
            document = self._page_document(page)
            existing = self.pages.get_page(page.page_id)
            if existing == document:
                report.unchanged += 1
                continue
            try:
                self.pages.write_page(page.page_id, document)
            except OSError as e:
                report.failed += 1
                report.errors.append(f"Error al escribir {page.page_id}.json: {e}")
                logger.error(f"❌ Error al escribir {page.page_id}.json: {e}")
                continue
            if existing is None:
                report.created += 1
            else:
                report.updated += 1

        self._invalidate_pages()
        logger.info(f"✅ DB -> JSON: {report.processed} páginas, {report.failed} con error")
        return report

    def validate_data_consistency(self) -> ConsistencyReport:
        """Compara archivos y base de datos sin modificar ninguno de los dos."""
        issues: List[str] = []
        files = self.pages.list_page_files()
        file_page_ids = set()

        try:
            for filename in files:
                page_id = page_id_from_filename(filename)
                file_page_ids.add(page_id)

                data = self.pages.get_page_by_filename(filename)
                if data is None:
                    issues.append(f"No se pudo leer el JSON de la página '{page_id}'")
                    continue

                db_page = page_service.find_page_by_page_id(self.db, page_id)
                if db_page is None:
                    issues.append(f"La página '{page_id}' existe en JSON pero no en la base de datos")
                    continue

                json_modified = parse_datetime(data.get("lastModified")) or datetime(1970, 1, 1)
                db_modified = db_page.last_modified
                if abs((json_modified - db_modified).total_seconds()) > MODIFIED_TOLERANCE_SECONDS:
                    issues.append(
                        f"La página '{page_id}' tiene lastModified distinto "
                        f"(JSON: {isoformat(json_modified)}, DB: {isoformat(db_modified)})"
                    )

                if data.get("title") != db_page.title:
                    issues.append(
                        f"La página '{page_id}' tiene títulos distintos "
                        f"(JSON: \"{data.get('title') or ''}\", DB: \"{db_page.title}\")"
                    )

            db_pages = self.db.query(Page.page_id).filter(Page.page_id != CONTENT_DATA_PAGE_ID).all()
            for (page_id,) in db_pages:
                if page_id not in file_page_ids:
                    issues.append(f"La página '{page_id}' existe en la base de datos pero no en los archivos JSON")
        except SQLAlchemyError as e:
            self.db.rollback()
            issues.append(f"Falló la validación contra la base de datos: {e}")

        return ConsistencyReport(consistent=not issues, issues=issues)

    # ------------------------------------------------------------------

    def _page_document(self, page: Page) -> Dict[str, Any]:
        # Las columnas mandan sobre los metadatos que pueda traer el contenido
        return {
            **(page.content or {}),
            "title": page.title,
            "description": page.description,
            "lastModified": isoformat(page.last_modified),
            "published": page.is_published,
            "pageId": page.page_id,
        }

    def mirror_page(self, page: Page) -> bool:
        """
        Reescribe <pageId>.json con la fila tal como quedó en la base de datos
        (contenido, título, descripción, publicación y lastModified).
        Best-effort como update_page_content.
        """
        if self.mode.is_read_only:
            return True

        try:
            self.pages.write_page(page.page_id, self._page_document(page))
        except OSError as e:
            logger.warning(f"⚠️ No se pudo actualizar el JSON de la página '{page.page_id}': {e}")
            return False
        finally:
            self._invalidate_page(page.page_id)
        return True

    def _file_modified_at(self, filename: str) -> str:
        try:
            timestamp = self.pages.path_for(filename).stat().st_mtime
        except OSError:
            return isoformat(utcnow())
        return isoformat(datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None))

    def _invalidate_page(self, page_id: str) -> None:
        if self.cache is not None:
            self.cache.delete(CacheKeys.page(page_id))
            self.cache.invalidate_by_pattern(r"^pages(:|$)")

    def _invalidate_pages(self) -> None:
        if self.cache is not None:
            for pattern in PAGE_KEY_PATTERNS:
                self.cache.invalidate_by_pattern(pattern)
