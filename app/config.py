# app/config.py

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import List, Optional

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./content.db"

    # Entorno (development / production)
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Contenido en disco
    CONTENT_DATA_PATH: str = "data/content-data.json"
    PAGES_DIR: str = "data/pages"

    # Modo de almacenamiento: "file", "database" o vacío para detectarlo
    STORAGE_MODE: Optional[str] = None
    READ_ONLY_FILE_SYSTEM: Optional[bool] = None
    # Heurística heredada: producción + base de datos remota => solo lectura
    INFER_READ_ONLY_FROM_DATABASE_URL: bool = False

    # Cache
    CACHE_TTL_SECONDS: float = 300.0

    # CORS
    FRONTEND_URLS: str = "http://localhost:5173,http://localhost:3000"

    @property
    def allowed_origins(self) -> List[str]:
        urls = self.FRONTEND_URLS.split(",")
        all_urls = []
        for url in urls:
            url = url.strip()
            if url:
                all_urls.append(url)
                # Añadir versión HTTPS si es HTTP
                if url.startswith("http://"):
                    all_urls.append(url.replace("http://", "https://"))
        return all_urls

    @property
    def content_data_file(self) -> Path:
        return self._resolve(self.CONTENT_DATA_PATH)

    @property
    def pages_directory(self) -> Path:
        return self._resolve(self.PAGES_DIR)

    @staticmethod
    def _resolve(value: str) -> Path:
        path = Path(value)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path

    class Config:
        env_file = ".env"

settings = Settings()
