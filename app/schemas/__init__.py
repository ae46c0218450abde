from .page import *
from .content import *
from .sync import *

__all__ = [
    # Páginas
    "PageBase", "PageCreate", "PageUpdate", "PageResponse", "PageStats", "JsonPageInfo",

    # Contenido
    "ContentPatch", "DepartmentOption", "DepartmentList",

    # Sincronización
    "SyncDirection", "SyncRequest", "SyncReport", "ConsistencyReport", "SyncResult",
]
