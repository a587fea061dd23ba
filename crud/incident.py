"""
IncidentRepository for user-recorded incident logs
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import Incident
from utils.shared_utils import isoformat, utc_now


def serialize_incident(incident: Incident) -> dict:
    return {
        "incidentId": incident.incident_id,
        "userId": incident.user_id,
        "timestamp": isoformat(incident.timestamp),
        "location": incident.location,
        "recordingUrl": incident.recording_url,
        "summary": incident.summary,
        "sharedStatus": incident.shared_status,
        "metadata": incident.incident_metadata or {},
    }


class IncidentRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, incident_id: str) -> Optional[Incident]:
        result = await self.db.execute(
            select(Incident).where(Incident.incident_id == incident_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str, limit: int = 10, offset: int = 0) -> List[Incident]:
        """One page of a user's incidents, newest first."""
        result = await self.db.execute(
            select(Incident)
            .where(Incident.user_id == user_id)
            .order_by(Incident.timestamp.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, values: dict) -> Incident:
        now = utc_now()
        incident = Incident(created_at=now, updated_at=now, **values)
        self.db.add(incident)
        await self.db.flush()
        return incident

    async def update(self, incident: Incident, updates: dict) -> Incident:
        for key, value in updates.items():
            setattr(incident, key, value)
        incident.updated_at = utc_now()
        await self.db.flush()
        return incident
