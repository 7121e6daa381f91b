from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from marketlens.models.base import MongoBaseModel
from marketlens.models.segment import ParseStrategy


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    segment_label: str = ""
    # Free-form annotation from the speaker label, e.g. "34, Marketing Manager"
    demographics_note: str = ""

class Response(BaseModel):
    model_config = ConfigDict(frozen=True)

    participant_name: str
    text: str

class Exchange(BaseModel):
    """One moderator question and the participant responses that followed it."""
    model_config = ConfigDict(frozen=True)

    question: str = ""
    responses: List[Response] = Field(default_factory=list)

class FocusGroupTranscript(MongoBaseModel):
    """
    A simulated focus-group discussion for one segment of a project.
    Same retention and immutability policy as SegmentationResult.
    """
    project_id: str
    segmentation_id: Optional[str] = None
    segment_name: str
    discussion_question: str = ""

    participants: List[Participant] = Field(..., min_length=1)
    exchanges: List[Exchange] = Field(..., min_length=1)
    summary: str = ""

    raw_text: str
    provider: str
    model_name: str
    used_fallback: bool = False
    parse_strategy: ParseStrategy = ParseStrategy.PRIMARY
