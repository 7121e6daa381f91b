from enum import StrEnum
from typing import Optional
from pydantic import BaseModel, Field
from marketlens.models.base import MongoBaseModel


class BusinessType(StrEnum):
    B2B = "B2B"
    B2C = "B2C"

class ProjectStatus(StrEnum):
    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

class SegmentWeights(BaseModel):
    """
    Relative emphasis (out of 100) the user wants on each segmentation lens.
    The sum is intended to be 100 but is not enforced.
    """
    demographics: float = Field(default=25, ge=0)
    psychographics: float = Field(default=25, ge=0)
    behaviors: float = Field(default=25, ge=0)
    geography: float = Field(default=25, ge=0)

class BusinessContext(BaseModel):
    """The client's business as entered at project creation. Read-only input to the pipeline."""
    business_type: BusinessType
    industry: str
    region: str = "US"
    name: Optional[str] = None
    description: Optional[str] = None
    objective: Optional[str] = None
    weights: SegmentWeights = Field(default_factory=SegmentWeights)

class Project(MongoBaseModel):
    """
    A segmentation project: the business context plus pipeline status.
    Generated results live in their own append-only collections.
    """
    context: BusinessContext
    status: ProjectStatus = ProjectStatus.DRAFT
    error_message: Optional[str] = None

    # Preferred vendor/model for generation runs; the gateway may fall back
    llm_provider: Optional[str] = None
    model_name: Optional[str] = None

    latest_segmentation_id: Optional[str] = None
