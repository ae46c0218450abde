from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional

class SyncDirection(str, Enum):
    JSON_TO_DB = "json-to-db"
    DB_TO_JSON = "db-to-json"
    BOTH = "both"

class SyncRequest(BaseModel):
    # Por defecto la dirección que no pisa la base de datos
    direction: SyncDirection = SyncDirection.DB_TO_JSON
    run_validation: bool = Field(False, alias="validate")

    class Config:
        populate_by_name = True

class SyncReport(BaseModel):
    direction: SyncDirection
    processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped: bool = False
    errors: List[str] = []

class ConsistencyReport(BaseModel):
    consistent: bool
    issues: List[str] = []

class SyncResult(BaseModel):
    message: str
    reports: List[SyncReport] = []
    validation: Optional[ConsistencyReport] = None
