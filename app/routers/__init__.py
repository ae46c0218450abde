from .content import router as content_router, departments_router
from .pages import router as pages_router
from .json_pages import router as json_pages_router
from .sync import router as sync_router

__all__ = [
    "content_router", "departments_router", "pages_router", "json_pages_router", "sync_router"
]
