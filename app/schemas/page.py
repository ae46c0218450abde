from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

class PageBase(BaseModel):
    page_id: str = Field(..., alias="pageId", min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$")
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    is_published: bool = Field(False, alias="isPublished")
    content: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True

class PageCreate(PageBase):
    pass

class PageUpdate(BaseModel):
    page_id: Optional[str] = Field(None, alias="pageId", min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$")
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_published: Optional[bool] = Field(None, alias="isPublished")
    content: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True

class PageResponse(BaseModel):
    id: str
    page_id: str = Field(..., alias="pageId")
    title: str
    description: str
    is_published: bool = Field(..., alias="isPublished")
    content: Optional[Dict[str, Any]] = None
    last_modified: datetime = Field(..., alias="lastModified")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

class PageStats(BaseModel):
    total: int
    published: int
    unpublished: int

class JsonPageInfo(BaseModel):
    """Resumen de un archivo de página en disco."""
    id: str
    filename: str
    title: str
    description: str
    last_modified: str = Field(..., alias="lastModified")
    published: bool
    status: str = "ok"  # ok | error

    class Config:
        populate_by_name = True
