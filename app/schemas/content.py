from pydantic import BaseModel, Field
from typing import Any, List

class ContentPatch(BaseModel):
    """Esquema para actualizar una sola sección del content-data (ej: 'services')."""
    type: str = Field(..., min_length=1)
    data: Any

class DepartmentOption(BaseModel):
    key: str
    label: str

class DepartmentList(BaseModel):
    success: bool = True
    data: List[DepartmentOption]
