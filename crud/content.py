"""
ContentRepository for read-mostly guides and scripts
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import Guide, Script
from utils.shared_utils import utc_now


def serialize_guide(guide: Guide) -> dict:
    return {
        "guideId": guide.guide_id,
        "state": guide.state,
        "language": guide.language,
        "content": guide.content,
        "type": guide.type,
        "lastUpdated": guide.last_updated,
    }


def serialize_script(script: Script) -> dict:
    return {
        "scriptId": script.script_id,
        "scenario": script.scenario,
        "language": script.language,
        "content": script.content,
        "stateApplicability": script.state_applicability or [],
    }


def script_applies_to_state(state_applicability: List[str], state: Optional[str]) -> bool:
    """A script applies when no state is asked for, or it lists the state or "ALL"."""
    if not state:
        return True
    applicability = state_applicability or []
    return "ALL" in applicability or state in applicability


class ContentRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_guides(
        self,
        state: Optional[str] = None,
        language: Optional[str] = None,
        guide_type: Optional[str] = None,
    ) -> List[Guide]:
        """Guides matching every given filter, most recently updated first."""
        query = select(Guide)
        if state:
            query = query.where(Guide.state == state)
        if language:
            query = query.where(Guide.language == language)
        if guide_type:
            query = query.where(Guide.type == guide_type)
        result = await self.db.execute(query.order_by(Guide.last_updated.desc()))
        return list(result.scalars().all())

    async def list_scripts(
        self,
        scenario: Optional[str] = None,
        language: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[Script]:
        """
        Scripts matching the filters, newest first.
        The state filter runs in Python since applicability is a JSON list.
        """
        query = select(Script)
        if scenario:
            query = query.where(Script.scenario == scenario)
        if language:
            query = query.where(Script.language == language)
        result = await self.db.execute(query.order_by(Script.created_at.desc()))
        return [
            script for script in result.scalars().all()
            if script_applies_to_state(script.state_applicability, state)
        ]

    async def create_guide(self, values: dict) -> Guide:
        guide = Guide(created_at=utc_now(), **values)
        self.db.add(guide)
        await self.db.flush()
        return guide

    async def create_script(self, values: dict) -> Script:
        now = utc_now()
        script = Script(created_at=now, updated_at=now, **values)
        self.db.add(script)
        await self.db.flush()
        return script
