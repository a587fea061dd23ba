"""
Incidents Router - log, list and update recorded police interactions
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.utils.responses import success_response, error_response
from database import get_db
from models.incident import CreateIncidentRequest, UpdateIncidentRequest
from services.incident_service import IncidentService

router = APIRouter(prefix="/api/incidents", tags=["incidents"])


@router.get("")
async def list_incidents(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """A page of the user's incidents, newest first"""
    if not user_id:
        return error_response("validation_error", status=400, message="User ID is required")

    result = await IncidentService(db).list_incidents(user_id, limit, offset)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], total=result["total"])


@router.post("")
async def create_incident(request: CreateIncidentRequest, db: AsyncSession = Depends(get_db)):
    result = await IncidentService(db).create_incident(request)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Incident logged successfully", status=201)


@router.put("")
async def update_incident(request: UpdateIncidentRequest, db: AsyncSession = Depends(get_db)):
    """Only summary, sharedStatus and metadata can change after logging"""
    result = await IncidentService(db).update_incident(request)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Incident updated successfully")
