"""
Incident Service - user incident logs
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crud.incident import IncidentRepository, serialize_incident
from models.incident import CreateIncidentRequest, UpdateIncidentRequest
from utils.shared_utils import to_naive_utc

logger = logging.getLogger(__name__)


def _database_error(message: str):
    return {"error": "database_error", "message": message, "status": 500, "is_error": True}


class IncidentService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.incidents = IncidentRepository(db)

    async def list_incidents(self, user_id: str, limit: int = 10, offset: int = 0):
        """
        One page of a user's incidents, newest first.

        Returns:
            {"data": [...], "total": <size of the page>}
        """
        try:
            incidents = await self.incidents.list_for_user(user_id, limit, offset)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list incidents for user {user_id}: {e}", exc_info=True)
            return _database_error("Failed to fetch incidents")

        data = [serialize_incident(incident) for incident in incidents]
        return {"data": data, "total": len(data), "is_error": False}

    async def create_incident(self, request: CreateIncidentRequest):
        values = {
            "incident_id": request.incident_id,
            "user_id": request.user_id,
            "timestamp": to_naive_utc(request.timestamp),
            "location": request.location.model_dump(by_alias=True, exclude_none=True, mode="json"),
            "recording_url": request.recording_url,
            "summary": request.summary,
            "shared_status": request.shared_status.value,
            "incident_metadata": request.metadata.model_dump(by_alias=True, exclude_none=True, mode="json"),
        }
        try:
            incident = await self.incidents.create(values)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return {"error": "conflict", "message": "Incident already exists", "status": 409, "is_error": True}
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create incident {request.incident_id}: {e}", exc_info=True)
            return _database_error("Failed to create incident")

        logger.info(f"Incident {incident.incident_id} logged for user {incident.user_id}")
        return {"data": serialize_incident(incident), "is_error": False}

    async def update_incident(self, request: UpdateIncidentRequest):
        """
        Update summary, sharing and metadata of an incident the caller owns.
        Metadata keys are merged into the stored metadata.
        """
        incident = await self.incidents.get(request.incident_id)
        if incident is None:
            return {"error": "not_found", "message": "Incident not found", "status": 404, "is_error": True}
        if incident.user_id != request.user_id:
            logger.warning(f"User {request.user_id} attempted to update incident {request.incident_id}")
            return {"error": "forbidden", "message": "Incident belongs to another user", "status": 403, "is_error": True}

        updates = {}
        if request.summary is not None:
            updates["summary"] = request.summary
        if request.shared_status is not None:
            updates["shared_status"] = request.shared_status.value
        if request.metadata is not None:
            merged = dict(incident.incident_metadata or {})
            merged.update(request.metadata.model_dump(by_alias=True, exclude_unset=True, mode="json"))
            updates["incident_metadata"] = merged

        try:
            incident = await self.incidents.update(incident, updates)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update incident {request.incident_id}: {e}", exc_info=True)
            return _database_error("Failed to update incident")

        return {"data": serialize_incident(incident), "is_error": False}
