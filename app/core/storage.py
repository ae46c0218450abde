# app/core/storage.py

import logging
import os
from enum import Enum
from typing import Mapping, Optional

from app.config import Settings

logger = logging.getLogger(__name__)

# Variables que delatan un hosting serverless/edge con disco de solo lectura
READ_ONLY_PLATFORM_MARKERS = (
    "VERCEL",
    "VERCEL_ENV",
    "VERCEL_URL",
    "NEXT_PUBLIC_VERCEL_URL",
    "NETLIFY",
    "NETLIFY_ENV",
    "AWS_LAMBDA_FUNCTION_NAME",
    "LAMBDA_RUNTIME_DIR",
    "FUNCTION_TARGET",
)


class StorageMode(str, Enum):
    FILE = "file"          # el JSON en disco es la fuente de verdad
    DATABASE = "database"  # disco de solo lectura, todo se escribe en la base de datos

    @property
    def is_read_only(self) -> bool:
        return self is StorageMode.DATABASE


def resolve_storage_mode(settings: Settings, environ: Optional[Mapping[str, str]] = None) -> StorageMode:
    """
    Decide una sola vez, al arrancar, dónde vive el contenido editable.

    Orden de prioridad:
    1. STORAGE_MODE explícito.
    2. READ_ONLY_FILE_SYSTEM (true => database, false => file).
    3. Marcadores de plataformas serverless en el entorno.
    4. Producción con base de datos remota, solo si INFER_READ_ONLY_FROM_DATABASE_URL está activo.
    """
    env = os.environ if environ is None else environ

    if settings.STORAGE_MODE:
        return StorageMode(settings.STORAGE_MODE.strip().lower())

    if settings.READ_ONLY_FILE_SYSTEM is not None:
        return StorageMode.DATABASE if settings.READ_ONLY_FILE_SYSTEM else StorageMode.FILE

    for marker in READ_ONLY_PLATFORM_MARKERS:
        if env.get(marker):
            logger.info(f"🔒 Plataforma de solo lectura detectada ({marker})")
            return StorageMode.DATABASE

    if (
        settings.INFER_READ_ONLY_FROM_DATABASE_URL
        and settings.ENVIRONMENT.lower() == "production"
        and "localhost" not in settings.DATABASE_URL
    ):
        logger.warning("⚠️ Modo database inferido a partir de DATABASE_URL; conviene fijar STORAGE_MODE")
        return StorageMode.DATABASE

    return StorageMode.FILE
