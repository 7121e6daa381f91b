from enum import StrEnum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from marketlens.models.base import MongoBaseModel


class ParseStrategy(StrEnum):
    """Which parser tier produced a result."""
    PRIMARY = "primary"
    HEADINGS = "headings"
    SYNTHETIC = "synthetic"

class Segment(BaseModel):
    """
    One customer segment parsed from an LLM completion.
    Immutable once created; a re-run produces a new parse.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    # Cosmetic placeholder from a round-robin bucket; not derived from content
    size: str = ""

    demographics: Dict[str, str] = Field(default_factory=dict)
    psychographics: Dict[str, str] = Field(default_factory=dict)
    behaviors: Dict[str, str] = Field(default_factory=dict)

    pain_points: List[str] = Field(default_factory=list)
    motivations: List[str] = Field(default_factory=list)
    purchase_triggers: List[str] = Field(default_factory=list)
    marketing_strategies: List[str] = Field(default_factory=list)

class SegmentationResult(MongoBaseModel):
    """
    One generation run for a project. Append-only: a project accumulates
    several over time and the UI shows the latest.
    """
    project_id: str
    segments: List[Segment] = Field(..., min_length=1)
    summary: str = ""

    # Untouched completion, retained for audit
    raw_text: str

    provider: str
    model_name: str
    used_fallback: bool = False
    parse_strategy: ParseStrategy = ParseStrategy.PRIMARY

    def find_segment(self, name: str) -> Optional[Segment]:
        """Case-insensitive lookup by segment name."""
        wanted = name.strip().lower()
        for segment in self.segments:
            if segment.name.lower() == wanted:
                return segment
        return None
