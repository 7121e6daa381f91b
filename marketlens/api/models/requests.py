"""
Pydantic models for API request bodies and response shapes.
"""
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field

from marketlens.models.document import SourceDocument
from marketlens.models.project import BusinessContext, BusinessType, SegmentWeights

ProviderName = Literal["openai", "anthropic"]


class ProjectCreate(BaseModel):
    """New project: the business context plus optional vendor preferences."""
    context: BusinessContext
    llm_provider: Optional[ProviderName] = Field(None, description="Preferred vendor for generation runs")
    model_name: Optional[str] = Field(None, description="Preferred model for the chosen vendor")


class ProjectUpdate(BaseModel):
    """Partial update; only fields that are set are changed."""
    business_type: Optional[BusinessType] = None
    industry: Optional[str] = None
    region: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    objective: Optional[str] = None
    weights: Optional[SegmentWeights] = None

    llm_provider: Optional[ProviderName] = None
    model_name: Optional[str] = None

    def context_changes(self) -> Dict[str, Any]:
        return self.model_dump(
            exclude_unset=True,
            exclude={"llm_provider", "model_name"},
        )

    def preference_changes(self) -> Dict[str, Any]:
        return self.model_dump(
            exclude_unset=True,
            include={"llm_provider", "model_name"},
        )


class GenerationOptions(BaseModel):
    provider: Optional[ProviderName] = None
    model_name: Optional[str] = None


class FocusGroupRequest(GenerationOptions):
    segment_name: str = Field(..., min_length=1)
    discussion_question: Optional[str] = Field(None, description="Topic the moderator opens with")


def document_response(document: SourceDocument) -> Dict[str, Any]:
    """Document as returned by the API: never includes the raw upload bytes."""
    return document.model_dump(mode="json", exclude={"content"})
