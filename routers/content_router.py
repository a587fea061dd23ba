"""
Content Router - state rights guides and interaction scripts
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.utils.responses import success_response, error_response
from database import get_db
from models.content import GuideSchema, ScriptSchema
from models.enums import GuideType, Language
from services.content_service import ContentService

router = APIRouter(prefix="/api", tags=["content"])


@router.get("/guides")
async def list_guides(
    state: Optional[str] = Query(default=None),
    language: Optional[Language] = Query(default=None),
    guide_type: Optional[GuideType] = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    """Guides filtered by state, language and type, most recently updated first"""
    result = await ContentService(db).list_guides(
        state,
        language.value if language else None,
        guide_type.value if guide_type else None,
    )
    return success_response(result["data"], source=result["source"])


@router.post("/guides")
async def create_guide(request: GuideSchema, db: AsyncSession = Depends(get_db)):
    result = await ContentService(db).create_guide(request)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Guide created", status=201)


@router.get("/scripts")
async def list_scripts(
    scenario: Optional[str] = Query(default=None),
    language: Optional[Language] = Query(default=None),
    state: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Scripts for a scenario; a state filter also matches scripts marked ALL"""
    result = await ContentService(db).list_scripts(
        scenario,
        language.value if language else None,
        state,
    )
    return success_response(result["data"], source=result["source"])


@router.post("/scripts")
async def create_script(request: ScriptSchema, db: AsyncSession = Depends(get_db)):
    result = await ContentService(db).create_script(request)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Script created", status=201)
