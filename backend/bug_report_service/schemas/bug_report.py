from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from bug_report_service.storage.models import BugReportStatus


class BugReportSubmission(BaseModel):
    """Raw form fields sent by the client; stored verbatim, never validated."""

    os: Optional[str] = None
    java: Optional[str] = None
    version: Optional[str] = None
    log: Optional[str] = None


class BugReportRead(BaseModel):
    id: int
    os: Optional[str] = None
    java: Optional[str] = None
    version: Optional[str] = None
    log: Optional[str] = None
    count: int
    status: int
    date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BugReportStatusUpdate(BaseModel):
    status: BugReportStatus

    @field_validator("status", mode="before")
    def _normalize_status(cls, v):
        if hasattr(v, "value"):
            return v.value
        return v
