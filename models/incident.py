from datetime import datetime
from typing import List, Optional

from pydantic import Field

from models.base import CamelModel
from models.enums import SharedStatus


class IncidentLocation(CamelModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    state: str


class IncidentMetadata(CamelModel):
    duration: Optional[float] = None
    interaction_type: str
    officer_badge_numbers: Optional[List[str]] = None
    vehicle_info: Optional[str] = None
    notes: Optional[str] = None


class IncidentMetadataPatch(CamelModel):
    duration: Optional[float] = None
    interaction_type: Optional[str] = None
    officer_badge_numbers: Optional[List[str]] = None
    vehicle_info: Optional[str] = None
    notes: Optional[str] = None


class CreateIncidentRequest(CamelModel):
    incident_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    timestamp: datetime
    location: IncidentLocation
    recording_url: Optional[str] = None
    summary: str
    shared_status: SharedStatus = SharedStatus.PRIVATE
    metadata: IncidentMetadata


class UpdateIncidentRequest(CamelModel):
    incident_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1, description="Owner of the incident")
    summary: Optional[str] = None
    shared_status: Optional[SharedStatus] = None
    metadata: Optional[IncidentMetadataPatch] = None
