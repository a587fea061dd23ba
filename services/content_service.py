"""
Content Service - rights guides and response scripts
Reads fall back to the built-in dataset when the database is unavailable.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from content_fallback import SAMPLE_GUIDES, SAMPLE_SCRIPTS
from crud.content import ContentRepository, script_applies_to_state, serialize_guide, serialize_script
from models.content import GuideSchema, ScriptSchema

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_FALLBACK = "fallback"


def filter_fallback_guides(
    state: Optional[str] = None,
    language: Optional[str] = None,
    guide_type: Optional[str] = None,
) -> List[dict]:
    guides = [
        guide for guide in SAMPLE_GUIDES
        if (not state or guide["state"] == state)
        and (not language or guide["language"] == language)
        and (not guide_type or guide["type"] == guide_type)
    ]
    return sorted(guides, key=lambda guide: guide["lastUpdated"], reverse=True)


def filter_fallback_scripts(
    scenario: Optional[str] = None,
    language: Optional[str] = None,
    state: Optional[str] = None,
) -> List[dict]:
    return [
        script for script in SAMPLE_SCRIPTS
        if (not scenario or script["scenario"] == scenario)
        and (not language or script["language"] == language)
        and script_applies_to_state(script["stateApplicability"], state)
    ]


class ContentService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.content = ContentRepository(db)

    async def list_guides(
        self,
        state: Optional[str] = None,
        language: Optional[str] = None,
        guide_type: Optional[str] = None,
    ):
        """
        Guides matching the filters.

        Returns:
            {"data": [...], "source": "database" | "fallback"}
        """
        try:
            guides = await self.content.list_guides(state, language, guide_type)
            return {"data": [serialize_guide(g) for g in guides], "source": SOURCE_DATABASE}
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Guide lookup failed, serving fallback content: {e}")
            return {"data": filter_fallback_guides(state, language, guide_type), "source": SOURCE_FALLBACK}

    async def list_scripts(
        self,
        scenario: Optional[str] = None,
        language: Optional[str] = None,
        state: Optional[str] = None,
    ):
        """
        Scripts matching the filters.

        Returns:
            {"data": [...], "source": "database" | "fallback"}
        """
        try:
            scripts = await self.content.list_scripts(scenario, language, state)
            return {"data": [serialize_script(s) for s in scripts], "source": SOURCE_DATABASE}
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Script lookup failed, serving fallback content: {e}")
            return {"data": filter_fallback_scripts(scenario, language, state), "source": SOURCE_FALLBACK}

    async def create_guide(self, guide: GuideSchema):
        values = {
            "guide_id": guide.guide_id,
            "state": guide.state,
            "language": guide.language.value,
            "type": guide.type.value,
            "content": guide.content.model_dump(by_alias=True, mode="json"),
            "last_updated": guide.last_updated,
        }
        return await self._create(self.content.create_guide, values, serialize_guide, "Guide")

    async def create_script(self, script: ScriptSchema):
        values = {
            "script_id": script.script_id,
            "scenario": script.scenario,
            "language": script.language.value,
            "content": script.content.model_dump(by_alias=True, mode="json"),
            "state_applicability": script.state_applicability,
        }
        return await self._create(self.content.create_script, values, serialize_script, "Script")

    async def _create(self, create, values: dict, serialize, label: str):
        try:
            record = await create(values)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return {"error": "conflict", "message": f"{label} already exists", "status": 409, "is_error": True}
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create {label.lower()}: {e}", exc_info=True)
            return {
                "error": "database_error",
                "message": f"Failed to create {label.lower()}",
                "status": 500,
                "is_error": True,
            }

        data = serialize(record)
        logger.info(f"{label} created: {data.get('guideId') or data.get('scriptId')}")
        return {"data": data, "is_error": False}
