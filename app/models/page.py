import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from app.database import Base
from app.core.core import utcnow

# pageId reservado para guardar el content-data completo cuando el disco es de solo lectura
CONTENT_DATA_PAGE_ID = "content-data"

class Page(Base):
    __tablename__ = "pages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    page_id = Column(String(100), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    content = Column(JSON, nullable=True)  # documento PageContent completo
    is_published = Column(Boolean, default=False, nullable=False)
    last_modified = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
