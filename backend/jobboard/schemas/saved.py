"""Saved jobs and saved searches."""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from jobboard.models.saved import AlertFrequency


class SaveJobRequest(BaseModel):
    job_id: UUID


class SavedJobResponse(BaseModel):
    id: UUID
    job_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SavedSearchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    filters: Dict[str, Any] = Field(default_factory=dict)
    alert_frequency: Optional[AlertFrequency] = None


class SavedSearchResponse(BaseModel):
    id: UUID
    name: str
    filters: Dict[str, Any]
    alert_frequency: Optional[AlertFrequency] = None
    last_alert_sent: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
