from typing import List

from pydantic import Field

from models.base import CamelModel
from models.enums import GuideType, Importance, Language


class GuideSection(CamelModel):
    title: str
    content: str
    importance: Importance


class GuideContent(CamelModel):
    title: str
    summary: str
    sections: List[GuideSection]


class GuideSchema(CamelModel):
    guide_id: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=8)
    language: Language
    content: GuideContent
    type: GuideType
    last_updated: str


class ScriptContent(CamelModel):
    title: str
    situation: str
    do_say: List[str]
    dont_say: List[str]
    key_points: List[str]


class ScriptSchema(CamelModel):
    script_id: str = Field(..., min_length=1)
    scenario: str = Field(..., min_length=1)
    language: Language
    content: ScriptContent
    state_applicability: List[str]
