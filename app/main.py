# En main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.database import engine, Base
from app.config import settings
from app.core.cache import TTLCache
from app.core.storage import resolve_storage_mode
from app.routers import content, sync, pages, json_pages
from app import models  # registra las tablas en Base.metadata

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)

    # Se resuelven una sola vez al arrancar y se comparten por app.state
    app.state.storage_mode = resolve_storage_mode(settings)
    app.state.cache = TTLCache(default_ttl=settings.CACHE_TTL_SECONDS)
    logger.info(f"🚀 Modo de almacenamiento: {app.state.storage_mode.value}")

    yield

    app.state.cache.clear()


app = FastAPI(
    title="Content Sync API",
    description="API de contenido del sitio: páginas, content-data y sincronización JSON/base de datos",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configuración CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    max_age=600,
)

# Routers
app.include_router(content.router, prefix="/content", tags=["Contenido Dinámico"])
app.include_router(content.departments_router, prefix="/departments", tags=["Departamentos"])
app.include_router(pages.router, prefix="/pages", tags=["Páginas"])
app.include_router(json_pages.router, prefix="/json-pages", tags=["Páginas JSON"])
app.include_router(sync.router, prefix="/sync", tags=["Sincronización"])

@app.get("/")
def read_root():
    return {
        "mensaje": "Content Sync API funcionando correctamente",
        "version": "1.0.0"
    }

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "Content Sync API",
        "storage_mode": app.state.storage_mode.value,
        "cache": app.state.cache.get_stats(),
    }
