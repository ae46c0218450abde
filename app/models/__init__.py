from .page import Page, CONTENT_DATA_PAGE_ID
from .job_opening import JobOpening
from .department import Department

__all__ = [
    "Page", "JobOpening", "Department", "CONTENT_DATA_PAGE_ID"
]
