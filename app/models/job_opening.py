from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from app.database import Base
from app.core.core import utcnow

class JobOpening(Base):
    __tablename__ = "job_openings"

    id = Column(String(100), primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    department = Column(String(100), nullable=False, default="general")
    location = Column(String(255), nullable=False, default="Remote")
    type = Column(String(50), nullable=False, default="Full-time")
    experience = Column(String(100), default="")
    salary = Column(String(100), default="")
    description = Column(Text, default="")
    requirements = Column(JSON, default=list)
    responsibilities = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    benefits = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    application_deadline = Column(DateTime, nullable=True)
    posted_date = Column(DateTime, default=utcnow)
    company_id = Column(String(100), default="main")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
